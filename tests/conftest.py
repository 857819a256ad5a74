"""Shared pytest fixtures for installer tests."""

from __future__ import annotations

import shutil
import subprocess
from collections.abc import Callable, Iterable
from pathlib import Path

import pytest
from click.testing import CliRunner

_BF_ENV_VARS = (
    "BF_INSTALL_MODE",
    "BF_EMBEDDING_PROVIDER",
    "BF_EMBEDDING_MODEL",
    "BF_OLLAMA_URL",
    "BF_LLAMACPP_URL",
    "BF_CONTEXT7_API_KEY",
    "BF_SKIP_OLLAMA_CHECK",
    "BF_SKIP_CONTEXT7",
    "BF_SKIP_UIPRO",
    "BF_INSTALL_UIPRO",
    "BF_INTERACTIVE",
)


class ScriptedPrompter:
    """Prompter that replays canned answers and records everything shown."""

    def __init__(self, answers: Iterable[str] = ()) -> None:
        self.answers = list(answers)
        self.questions: list[str] = []
        self.messages: list[str] = []

    def ask(self, text: str, default: str = "") -> str:
        self.questions.append(text)
        if not self.answers:
            return default
        return self.answers.pop(0)

    def notify(self, message: str) -> None:
        self.messages.append(message)


@pytest.fixture(autouse=True)
def _clean_bf_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's own BF_* settings out of the tests."""
    for name in _BF_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_prompter() -> Callable[..., ScriptedPrompter]:
    """Factory: ``make_prompter("2", "", "y")``."""

    def _make(*answers: str) -> ScriptedPrompter:
        return ScriptedPrompter(answers)

    return _make


@pytest.fixture
def cli_runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()


def _git(repo: Path, *args: str) -> None:
    subprocess.run(
        ["git", "-C", str(repo), "-c", "user.name=Test", "-c", "user.email=test@example.com", "-c", "commit.gpgsign=false", *args],
        check=True,
        capture_output=True,
    )


@pytest.fixture
def make_git_repo(tmp_path: Path) -> Callable[..., Path]:
    """Factory creating a real git repo with one commit on *branch* (None = no commits)."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    def _make(branch: str | None = "main", name: str = "repo") -> Path:
        repo = tmp_path / name
        repo.mkdir()
        _git(repo, "init", "-q")
        if branch is not None:
            _git(repo, "symbolic-ref", "HEAD", f"refs/heads/{branch}")
            _git(repo, "commit", "--allow-empty", "-q", "-m", "init")
        return repo

    return _make


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """An empty directory standing in for a repository root."""
    root = tmp_path / "project"
    root.mkdir()
    return root


def snapshot(root: Path, *, exclude: Iterable[str] = ()) -> dict[str, bytes | None]:
    """Map every path under *root* to its bytes (None for directories)."""
    skipped = set(exclude)
    state: dict[str, bytes | None] = {}
    for path in sorted(root.rglob("*")):
        rel = path.relative_to(root).as_posix()
        if rel in skipped:
            continue
        state[rel] = None if path.is_dir() else path.read_bytes()
    return state


@pytest.fixture
def take_snapshot() -> Callable[..., dict[str, bytes | None]]:
    return snapshot
