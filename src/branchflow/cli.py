"""CLI for the Branch Flow installer.

Run from anywhere inside a git working tree; everything is installed at
the repository root.

Usage:
    branch-flow-install                          # Interactive install
    branch-flow-install -y                       # Defaults for anything unset
    branch-flow-install --personal --provider llamacpp
    branch-flow-install --model mxbai-embed-large --context7-key KEY -y

Environment variables (overridden by flags):
    BF_INSTALL_MODE        team or personal
    BF_EMBEDDING_PROVIDER  ollama or llamacpp
    BF_EMBEDDING_MODEL     Embedding model
    BF_OLLAMA_URL          Ollama URL (default: http://localhost:11434)
    BF_LLAMACPP_URL        llama.cpp URL (default: http://localhost:8080)
    BF_CONTEXT7_API_KEY    Context7 API key
    BF_SKIP_OLLAMA_CHECK   Skip the embedding provider check
    BF_SKIP_CONTEXT7       Skip Context7 setup
    BF_SKIP_UIPRO          Skip UI/UX Pro setup
    BF_INSTALL_UIPRO       Set to 'yes' to install UI/UX Pro
    BF_INTERACTIVE         Set to 'false' to skip prompts
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any, NoReturn

import click

from branchflow import __version__
from branchflow.catalog import PROVIDER_LABELS
from branchflow.install_support.providers import check_embedding_provider
from branchflow.install_support.uipro import install_uipro
from branchflow.install_support.vcs import (
    NotAVersionControlledTree,
    detect_base_branch,
    find_git_dir,
    find_project_root,
)
from branchflow.logging import setup_logging
from branchflow.options import FlagValues, InvalidOption, is_interactive, resolve_options
from branchflow.report import render_report
from branchflow.scaffold import FilesystemWriteFailure, scaffold

logger = logging.getLogger(__name__)

_EPILOG = """\b
Install modes:
  --team      Commits .branch-flow/ and .claude/commands/ to the repo
  --personal  Adds Branch Flow files to .gitignore

\b
Embedding models:
  ollama    nomic-embed-text (768), mxbai-embed-large (1024), all-minilm (384),
            snowflake-arctic-embed (1024), bge-m3 (1024)
  llamacpp  nomic-embed-text-v1.5 (768), bge-small-en-v1.5 (384),
            all-MiniLM-L6-v2 (384), bge-base-en-v1.5 (768)
  Unknown models default to 768 dimensions.
"""


class UnknownFlag(click.UsageError):
    """An option the installer does not recognize."""

    exit_code = 1

    def __init__(self, option_name: str, ctx: click.Context | None = None) -> None:
        self.option_name = option_name
        super().__init__(f"Unknown option: {option_name}", ctx=ctx)


class _InstallerCommand(click.Command):
    """Command whose usage errors exit 1 and whose ``--help`` always wins."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        # "--help" is never consumed as an option value.
        if "--help" in args:
            click.echo(ctx.get_help(), color=ctx.color)
            ctx.exit(0)
        try:
            return super().parse_args(ctx, args)
        except click.NoSuchOption as exc:
            raise UnknownFlag(exc.option_name, ctx=ctx) from exc
        except click.UsageError as exc:
            exc.exit_code = 1
            raise


class ClickPrompter:
    """Prompter backed by the terminal."""

    def ask(self, text: str, default: str = "") -> str:
        answer: str = click.prompt(text, default=default, show_default=False)
        return answer

    def notify(self, message: str) -> None:
        click.echo(message)


def _fail(message: str, hint: str = "") -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    if hint:
        click.echo(hint, err=True)
    sys.exit(1)


@click.command(cls=_InstallerCommand, epilog=_EPILOG, context_settings={"help_option_names": ["--help"]})
@click.version_option(version=__version__, prog_name="branch-flow-install")
@click.option("--provider", default=None, metavar="PROVIDER", help="Embedding provider: ollama or llamacpp")
@click.option("--model", default=None, metavar="MODEL", help="Embedding model (interactive if not set)")
@click.option("--ollama-url", default=None, metavar="URL", help="Ollama server URL (default: http://localhost:11434)")
@click.option("--llamacpp-url", default=None, metavar="URL", help="llama.cpp server URL (default: http://localhost:8080)")
@click.option("--context7-key", default=None, metavar="KEY", help="Context7 API key for documentation lookup")
@click.option("--team", is_flag=True, help="Commit Branch Flow to repo (share with team)")
@click.option("--personal", is_flag=True, help="Add Branch Flow to .gitignore (personal use only)")
@click.option("--uipro", is_flag=True, help="Install UI/UX Pro skill for design guidance (requires npm)")
@click.option("--skip-uipro", is_flag=True, help="Skip UI/UX Pro configuration")
@click.option("--skip-ollama", is_flag=True, help="Skip embedding provider availability check")
@click.option("--skip-context7", is_flag=True, help="Skip Context7 configuration")
@click.option("--non-interactive", "-y", "non_interactive", is_flag=True, help="Skip all prompts, use defaults")
def cli(team: bool, personal: bool, **kwargs: Any) -> None:
    """Install the Branch Flow workflow into the current git repository."""
    if team and personal:
        _fail(str(InvalidOption("--team/--personal", "both", "choose one install mode")))
    flags = FlagValues(install_mode="team" if team else "personal" if personal else None, **kwargs)
    env = dict(os.environ)

    try:
        project_root = find_project_root(Path.cwd())
    except NotAVersionControlledTree as e:
        _fail(str(e), "Please run this from within a git repository.")

    try:
        setup_logging(find_git_dir(project_root))
    except (NotAVersionControlledTree, OSError) as e:
        click.echo(f"Warning: install log disabled ({e})", err=True)

    prompter = ClickPrompter() if is_interactive(flags, env) else None
    if prompter is not None:
        click.echo("Branch Flow Installer - Single-Task Autonomous Development")
    try:
        options = resolve_options(flags, env, prompter)
    except InvalidOption as e:
        logger.error("Invalid option", extra={"error": str(e)})
        _fail(str(e), "Use --help for usage information")

    click.echo(f"Installing to: {project_root}")
    base_branch = detect_base_branch(project_root)
    click.echo(f"Detected base branch: {base_branch}")

    try:
        results = scaffold(options, project_root, base_branch)
    except FilesystemWriteFailure as e:
        logger.error("Install aborted", extra={"path": str(e.path), "error": str(e.cause)})
        _fail(str(e), "Installation aborted; files written before the failure were left in place.")

    if not options.skip_embedding_check:
        click.echo(f"Checking {PROVIDER_LABELS[options.embedding_provider]} availability...")
    checks = check_embedding_provider(options)

    uipro = None
    if options.install_uipro:
        click.echo("Installing UI/UX Pro...")
        uipro = install_uipro(project_root)

    click.echo("")
    click.echo(render_report(options, base_branch, results, checks, uipro), nl=False)


def main() -> None:
    """Console-script entry point."""
    cli()


if __name__ == "__main__":
    main()
