"""CLI integration tests using Click's CliRunner."""

from __future__ import annotations

import json
import logging
import subprocess
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from branchflow import cli as cli_module
from branchflow import templates_data as td
from branchflow.cli import cli
from branchflow.install_support import CheckResult
from branchflow.install_support.vcs import NotAVersionControlledTree
from branchflow.logging import LOG_FILENAME
from branchflow.options import InstallOptions


class Installer:
    """Records what the patched environment probes were asked to do."""

    def __init__(self, root: Path, git_dir: Path) -> None:
        self.root = root
        self.git_dir = git_dir
        self.checked: list[InstallOptions] = []
        self.uipro_calls: list[Path] = []

    def check(self, options: InstallOptions, client: Any = None) -> list[CheckResult]:
        self.checked.append(options)
        if options.skip_embedding_check:
            return [CheckResult("Embedding provider", "skipped", "Skipped embedding provider check (--skip-ollama)")]
        return [CheckResult("Ollama server", "advisory", "Not running at http://localhost:11434", "Start it with: ollama serve")]

    def uipro(self, project_root: Path) -> CheckResult:
        self.uipro_calls.append(project_root)
        return CheckResult("UI/UX Pro", "ok", "UI/UX Pro initialized for Claude")

    def config(self) -> dict[str, Any]:
        return json.loads((self.root / ".branch-flow" / "config.json").read_text())


@pytest.fixture(autouse=True)
def _reset_install_log() -> Iterator[None]:
    yield
    logger = logging.getLogger("branchflow")
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)


@pytest.fixture
def installer(monkeypatch: pytest.MonkeyPatch, project_root: Path, tmp_path: Path) -> Installer:
    git_dir = tmp_path / "gitdir"
    git_dir.mkdir()
    fake = Installer(project_root, git_dir)
    monkeypatch.chdir(project_root)
    monkeypatch.setattr(cli_module, "find_project_root", lambda cwd: project_root)
    monkeypatch.setattr(cli_module, "find_git_dir", lambda root: git_dir)
    monkeypatch.setattr(cli_module, "detect_base_branch", lambda root: "main")
    monkeypatch.setattr(cli_module, "check_embedding_provider", fake.check)
    monkeypatch.setattr(cli_module, "install_uipro", fake.uipro)
    return fake


class TestHelp:
    @pytest.mark.parametrize(
        "args",
        [
            ["--help"],
            ["--personal", "--help"],
            ["--help", "--provider", "llamacpp"],
            ["--bogus", "--help"],
            ["--help", "--provider"],
            ["--model", "--help"],
        ],
    )
    def test_help_exits_zero_and_writes_nothing(
        self, cli_runner: CliRunner, installer: Installer, take_snapshot: Callable[..., dict], args: list[str]
    ) -> None:
        result = cli_runner.invoke(cli, args)
        assert result.exit_code == 0, result.output
        assert "--non-interactive" in result.output
        assert "Unknown models default to 768 dimensions." in result.output
        assert take_snapshot(installer.root) == {}
        assert installer.checked == []

    def test_help_lists_every_flag(self, cli_runner: CliRunner, installer: Installer) -> None:
        result = cli_runner.invoke(cli, ["--help"])
        for flag in (
            "--provider",
            "--model",
            "--ollama-url",
            "--llamacpp-url",
            "--context7-key",
            "--team",
            "--personal",
            "--uipro",
            "--skip-uipro",
            "--skip-ollama",
            "--skip-context7",
            "-y",
        ):
            assert flag in result.output

    def test_version(self, cli_runner: CliRunner, installer: Installer, take_snapshot: Callable[..., dict]) -> None:
        result = cli_runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "branch-flow-install" in result.output
        assert take_snapshot(installer.root) == {}

    def test_short_h_is_not_help(self, cli_runner: CliRunner, installer: Installer) -> None:
        result = cli_runner.invoke(cli, ["-h"])
        assert result.exit_code == 1


class TestUsageErrors:
    def test_unknown_flag(self, cli_runner: CliRunner, installer: Installer, take_snapshot: Callable[..., dict]) -> None:
        result = cli_runner.invoke(cli, ["--bogus"])
        assert result.exit_code == 1
        assert "Unknown option: --bogus" in result.output
        assert take_snapshot(installer.root) == {}

    def test_missing_option_value(self, cli_runner: CliRunner, installer: Installer) -> None:
        result = cli_runner.invoke(cli, ["--model"])
        assert result.exit_code == 1

    def test_bad_provider(self, cli_runner: CliRunner, installer: Installer, take_snapshot: Callable[..., dict]) -> None:
        result = cli_runner.invoke(cli, ["--provider", "openai", "-y"])
        assert result.exit_code == 1
        assert "Invalid value for --provider: 'openai'" in result.output
        assert take_snapshot(installer.root) == {}

    @pytest.mark.parametrize("url", ["http://localhost:abc", "http://[::1"])
    def test_bad_url_rejected_before_scaffolding(
        self, cli_runner: CliRunner, installer: Installer, take_snapshot: Callable[..., dict], url: str
    ) -> None:
        result = cli_runner.invoke(cli, ["--llamacpp-url", url, "--provider", "llamacpp", "-y"])
        assert result.exit_code == 1
        assert "Invalid value for --llamacpp-url" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)
        assert take_snapshot(installer.root) == {}
        assert installer.checked == []

    def test_bad_env_mode(
        self, cli_runner: CliRunner, installer: Installer, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("BF_INSTALL_MODE", "everyone")
        result = cli_runner.invoke(cli, ["-y"])
        assert result.exit_code == 1
        assert "BF_INSTALL_MODE" in result.output

    def test_team_and_personal_conflict(self, cli_runner: CliRunner, installer: Installer) -> None:
        result = cli_runner.invoke(cli, ["--team", "--personal", "-y"])
        assert result.exit_code == 1
        assert "choose one install mode" in result.output

    def test_not_a_git_repo(
        self,
        cli_runner: CliRunner,
        installer: Installer,
        monkeypatch: pytest.MonkeyPatch,
        take_snapshot: Callable[..., dict],
    ) -> None:
        def _no_repo(cwd: Path) -> Path:
            raise NotAVersionControlledTree(cwd, "fatal: not a git repository")

        monkeypatch.setattr(cli_module, "find_project_root", _no_repo)
        result = cli_runner.invoke(cli, ["-y"])
        assert result.exit_code == 1
        assert "Not a git repository" in result.output
        assert "Please run this from within a git repository." in result.output
        assert take_snapshot(installer.root) == {}
        assert take_snapshot(installer.git_dir) == {}


class TestInstall:
    def test_mxbai_personal_non_interactive(self, cli_runner: CliRunner, installer: Installer) -> None:
        result = cli_runner.invoke(cli, ["--provider", "ollama", "--model", "mxbai-embed-large", "--personal", "-y"])
        assert result.exit_code == 0, result.output
        config = installer.config()
        assert config["embedding"]["dimensions"] == 1024
        assert config["installMode"] == "personal"
        gitignore = (installer.root / ".gitignore").read_text()
        assert td.PERSONAL_GITIGNORE_BLOCK in gitignore
        assert "Branch Flow installed successfully!" in result.output
        assert "Embedding model: mxbai-embed-large (1024 dims)" in result.output

    def test_custom_model_defaults_to_768(self, cli_runner: CliRunner, installer: Installer) -> None:
        result = cli_runner.invoke(cli, ["--model", "custom-foo", "-y"])
        assert result.exit_code == 0, result.output
        assert installer.config()["embedding"]["dimensions"] == 768
        assert installer.config()["embedding"]["model"] == "custom-foo"

    def test_advisory_check_does_not_fail(self, cli_runner: CliRunner, installer: Installer) -> None:
        result = cli_runner.invoke(cli, ["-y"])
        assert result.exit_code == 0
        assert "-> Start it with: ollama serve" in result.output
        assert len(installer.checked) == 1

    def test_skip_ollama(self, cli_runner: CliRunner, installer: Installer) -> None:
        result = cli_runner.invoke(cli, ["-y", "--skip-ollama"])
        assert result.exit_code == 0
        assert installer.checked[0].skip_embedding_check
        assert "Checking Ollama availability" not in result.output

    def test_context7_key_goes_to_mcp_only(self, cli_runner: CliRunner, installer: Installer) -> None:
        result = cli_runner.invoke(cli, ["-y", "--context7-key", "ctx-abc"])
        assert result.exit_code == 0
        mcp = json.loads((installer.root / ".claude" / "mcp.json").read_text())
        assert mcp["mcpServers"]["context7"]["env"]["CONTEXT7_API_KEY"] == "ctx-abc"
        assert "ctx-abc" not in (installer.root / ".branch-flow" / "config.json").read_text()
        assert "Context7: Configured" in result.output

    def test_uipro_flag(self, cli_runner: CliRunner, installer: Installer) -> None:
        result = cli_runner.invoke(cli, ["-y", "--uipro"])
        assert result.exit_code == 0
        assert installer.uipro_calls == [installer.root]
        assert "UI/UX Pro: Installed" in result.output

    def test_uipro_not_run_by_default(self, cli_runner: CliRunner, installer: Installer) -> None:
        cli_runner.invoke(cli, ["-y"])
        assert installer.uipro_calls == []

    def test_env_configuration(
        self, cli_runner: CliRunner, installer: Installer, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("BF_INTERACTIVE", "false")
        monkeypatch.setenv("BF_EMBEDDING_PROVIDER", "llamacpp")
        monkeypatch.setenv("BF_EMBEDDING_MODEL", "bge-small-en-v1.5.Q8_0.gguf")
        result = cli_runner.invoke(cli, [])
        assert result.exit_code == 0, result.output
        assert installer.config()["embedding"]["provider"] == "llamacpp"
        assert installer.config()["embedding"]["dimensions"] == 384

    def test_interactive_run(self, cli_runner: CliRunner, installer: Installer) -> None:
        # mode=personal, provider=ollama, model=mxbai-embed-large, no Context7, no UI/UX Pro
        result = cli_runner.invoke(cli, [], input="2\n1\n2\nn\nn\n")
        assert result.exit_code == 0, result.output
        assert "How do you want to install Branch Flow?" in result.output
        assert "Select Ollama Embedding Model:" in result.output
        config = installer.config()
        assert config["installMode"] == "personal"
        assert config["embedding"]["model"] == "mxbai-embed-large"
        assert config["embedding"]["dimensions"] == 1024

    def test_rerun_is_idempotent(
        self, cli_runner: CliRunner, installer: Installer, take_snapshot: Callable[..., dict]
    ) -> None:
        regenerated = (".branch-flow/config.json", ".branch-flow/current-task.json")
        assert cli_runner.invoke(cli, ["-y", "--personal"]).exit_code == 0
        first = take_snapshot(installer.root, exclude=regenerated)
        assert cli_runner.invoke(cli, ["-y", "--personal"]).exit_code == 0
        assert take_snapshot(installer.root, exclude=regenerated) == first

    def test_install_log_written_outside_tree(self, cli_runner: CliRunner, installer: Installer) -> None:
        cli_runner.invoke(cli, ["-y"])
        for handler in logging.getLogger("branchflow").handlers:
            handler.flush()
        log_path = installer.git_dir / LOG_FILENAME
        assert log_path.exists()
        assert not (installer.root / LOG_FILENAME).exists()
        messages = [json.loads(line)["msg"] for line in log_path.read_text().splitlines()]
        assert "Resolved install options" in messages
        assert "Scaffold op created" in messages

    def test_write_failure_exits_1(self, cli_runner: CliRunner, installer: Installer) -> None:
        (installer.root / ".claude").write_text("in the way")
        result = cli_runner.invoke(cli, ["-y"])
        assert result.exit_code == 1
        assert "Failed to write" in result.output
        assert not (installer.root / ".branch-flow" / "config.json").exists()
        assert installer.checked == []


class TestRealRepository:
    def test_install_from_subdirectory(
        self,
        cli_runner: CliRunner,
        make_git_repo: Callable[..., Path],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        repo = make_git_repo("master")
        nested = repo / "docs"
        nested.mkdir()
        monkeypatch.chdir(nested)
        monkeypatch.setattr(cli_module, "check_embedding_provider", lambda options: [])

        result = cli_runner.invoke(cli, ["-y"])
        assert result.exit_code == 0, result.output
        assert (repo / ".branch-flow" / "config.json").exists()
        assert not (nested / ".branch-flow").exists()
        config = json.loads((repo / ".branch-flow" / "config.json").read_text())
        assert config["baseBranch"] == "master"
        assert (repo / ".git" / LOG_FILENAME).exists()

        status = subprocess.run(
            ["git", "status", "--porcelain", "--untracked-files=all"],
            cwd=repo,
            capture_output=True,
            text=True,
            check=True,
        ).stdout
        assert LOG_FILENAME not in status
        # team mode keeps the workflow files visible to git
        assert ".branch-flow/config.json" in status
        assert ".branch-flow/current-task.json" not in status
