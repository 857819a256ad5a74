"""Filesystem scaffolding for Branch Flow.

Turns resolved :class:`~branchflow.options.InstallOptions` into an ordered
:class:`ScaffoldPlan` and executes it under the project root.

Every operation is idempotent:

- ``create-dir-if-absent``: ``mkdir -p``; existing directories untouched
- ``write-file-if-absent``: never clobbers user edits
- ``write-file-overwrite``: regenerated every run (config, task state)
- ``append-unique-block``: appends a block unless its marker is already present

A failed write aborts the rest of the plan. There is no rollback; whatever
was written before the failure stays on disk.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from branchflow import templates_data as td
from branchflow.options import InstallOptions

logger = logging.getLogger(__name__)

BRANCH_FLOW_DIR_NAME = ".branch-flow"
CONFIG_FILENAME = "config.json"
STATE_FILENAME = "current-task.json"
MCP_CONFIG_PATH = Path(".claude") / "mcp.json"
COMMANDS_DIR = Path(".claude") / "commands"
SKILLS_DIR = Path(".claude") / "skills"

BRANCH_FLOW_SUBDIRS = ("specs", "plans", "docs", "memory", "scripts", "ideas")

OpKind = Literal["create-dir-if-absent", "write-file-if-absent", "write-file-overwrite", "append-unique-block"]
Action = Literal["created", "overwritten", "appended", "unchanged"]


class FilesystemWriteFailure(OSError):
    """Raised when a scaffold operation cannot write to disk."""

    def __init__(self, path: Path, cause: OSError) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to write {path}: {cause.strerror or cause}")


@dataclass(frozen=True)
class ScaffoldOp:
    """A single filesystem operation. *path* is absolute."""

    kind: OpKind
    path: Path
    content: str = ""
    marker: str = ""
    # append-unique-block only: body to write when the file does not exist yet
    initial: str | None = None
    separator: str = "\n"


@dataclass(frozen=True)
class OpResult:
    op: ScaffoldOp
    action: Action


ScaffoldPlan = tuple[ScaffoldOp, ...]


# ---------------------------------------------------------------------------
# Config documents
# ---------------------------------------------------------------------------


def build_config(options: InstallOptions, base_branch: str) -> dict[str, Any]:
    """Build the ``.branch-flow/config.json`` record.

    The Context7 key is never included; it only goes to ``.claude/mcp.json``.
    """
    return {
        "baseBranch": base_branch,
        "branchPrefix": td.BRANCH_PREFIX,
        "installMode": options.install_mode,
        **td.WORKFLOW_DEFAULTS,
        "embedding": {
            "provider": options.embedding_provider,
            "model": options.embedding_model,
            "dimensions": options.embedding_dimensions,
            "ollama_url": options.ollama_url,
            "llamacpp_url": options.llamacpp_url,
            **td.EMBEDDING_DEFAULTS,
        },
        "features": {
            "context7": options.context7_configured,
            "uipro": options.install_uipro,
        },
        "index": td.INDEX_DEFAULTS,
    }


def build_mcp_config(api_key: str) -> dict[str, Any]:
    """Context7 MCP server entry for ``.claude/mcp.json``."""
    return {
        "mcpServers": {
            "context7": {
                "command": "npx",
                "args": ["-y", "@context7/mcp"],
                "env": {"CONTEXT7_API_KEY": api_key},
            }
        }
    }


def _json_text(data: dict[str, Any]) -> str:
    return json.dumps(data, indent=2) + "\n"


def read_config(branch_flow_dir: Path) -> dict[str, Any]:
    """Read ``config.json``. Returns an empty dict if missing or corrupt."""
    config_path = branch_flow_dir / CONFIG_FILENAME
    if not config_path.exists():
        return {}
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError, OSError) as exc:
        logger.warning("Failed to read %s, using defaults: %s", config_path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("%s is not a JSON object, using defaults", config_path)
        return {}
    return data


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------


def build_plan(options: InstallOptions, project_root: Path, base_branch: str) -> ScaffoldPlan:
    """Derive the ordered operation list. Pure: nothing touches the disk."""
    bf_dir = project_root / BRANCH_FLOW_DIR_NAME
    commands_dir = project_root / COMMANDS_DIR
    skill_dir = project_root / SKILLS_DIR / td.SKILL_NAME

    ops: list[ScaffoldOp] = [ScaffoldOp("create-dir-if-absent", bf_dir / sub) for sub in BRANCH_FLOW_SUBDIRS]
    ops.append(ScaffoldOp("create-dir-if-absent", commands_dir))
    ops.append(ScaffoldOp("create-dir-if-absent", skill_dir))

    ops.append(ScaffoldOp("write-file-overwrite", bf_dir / CONFIG_FILENAME, _json_text(build_config(options, base_branch))))
    ops.append(ScaffoldOp("write-file-overwrite", bf_dir / STATE_FILENAME, _json_text(td.IDLE_TASK)))

    # A supplied key replaces the file; without one, never clobber a key added by hand.
    mcp_kind: OpKind = "write-file-overwrite" if options.context7_configured else "write-file-if-absent"
    ops.append(ScaffoldOp(mcp_kind, project_root / MCP_CONFIG_PATH, _json_text(build_mcp_config(options.context7_api_key))))

    for filename, body in td.MEMORY_FILES.items():
        ops.append(ScaffoldOp("write-file-if-absent", bf_dir / "memory" / filename, body))

    ops.append(ScaffoldOp("write-file-if-absent", commands_dir / "README.md", td.COMMANDS_README_MD))
    for name, summary, body in td.COMMANDS:
        ops.append(ScaffoldOp("write-file-if-absent", commands_dir / f"bf-{name}.md", td.command_body(name, summary, body)))
    ops.append(ScaffoldOp("write-file-if-absent", skill_dir / "SKILL.md", td.SKILL_MD))

    ops.append(
        ScaffoldOp(
            "append-unique-block",
            project_root / "CLAUDE.md",
            td.CLAUDE_MD_SECTION,
            marker=td.INSTRUCTIONS_MARKER,
            initial=td.CLAUDE_MD_DOCUMENT,
            separator="\n---\n\n",
        )
    )

    if options.install_mode == "personal":
        block, marker = td.PERSONAL_GITIGNORE_BLOCK, td.PERSONAL_GITIGNORE_MARKER
    else:
        block, marker = td.TEAM_GITIGNORE_BLOCK, td.TEAM_GITIGNORE_MARKER
    ops.append(ScaffoldOp("append-unique-block", project_root / ".gitignore", block, marker=marker))

    return tuple(ops)


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


def _write_atomic(path: Path, content: str) -> None:
    """Write content to path atomically via temp file + os.replace()."""
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp.write_text(content, encoding="utf-8")
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise


def _append_unique(op: ScaffoldOp) -> Action:
    """Append *op.content* unless the marker is present.

    User files are round-tripped with ``surrogateescape`` so bytes that are
    not valid UTF-8 survive unchanged.
    """
    if not op.path.exists():
        op.path.write_text(op.initial if op.initial is not None else op.content, encoding="utf-8")
        return "created"
    content = op.path.read_text(encoding="utf-8", errors="surrogateescape")
    if op.marker in content:
        return "unchanged"
    if content and not content.endswith("\n"):
        content += "\n"
    content += op.separator + op.content
    op.path.write_text(content, encoding="utf-8", errors="surrogateescape")
    return "appended"


def _apply(op: ScaffoldOp) -> Action:
    if op.kind == "create-dir-if-absent":
        if op.path.is_dir():
            return "unchanged"
        op.path.mkdir(parents=True, exist_ok=True)
        return "created"
    if op.kind == "write-file-if-absent":
        if op.path.exists():
            return "unchanged"
        op.path.write_text(op.content, encoding="utf-8")
        return "created"
    if op.kind == "write-file-overwrite":
        existed = op.path.exists()
        _write_atomic(op.path, op.content)
        return "overwritten" if existed else "created"
    return _append_unique(op)


def execute_plan(plan: ScaffoldPlan) -> list[OpResult]:
    """Run *plan* in order.

    Raises:
        FilesystemWriteFailure: on the first OSError; later ops are not run.
    """
    results: list[OpResult] = []
    for op in plan:
        try:
            action = _apply(op)
        except OSError as exc:
            logger.error("Scaffold op failed", extra={"op": op.kind, "path": str(op.path), "error": str(exc)})
            raise FilesystemWriteFailure(op.path, exc) from exc
        logger.info("Scaffold op %s", action, extra={"op": op.kind, "path": str(op.path)})
        results.append(OpResult(op, action))
    return results


def scaffold(options: InstallOptions, project_root: Path, base_branch: str) -> list[OpResult]:
    """Build and execute the plan for *project_root*."""
    return execute_plan(build_plan(options, project_root, base_branch))
