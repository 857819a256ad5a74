# src/branchflow/templates_data.py
"""File bodies written by the scaffolder.

Logic lives in scaffold.py; this file is pure data. Every template is a
complete file body (trailing newline included) or a JSON-compatible dict.
"""

from __future__ import annotations

from typing import Any

BRANCH_PREFIX = "bf/"

# ---------------------------------------------------------------------------
# config.json defaults
# ---------------------------------------------------------------------------

WORKFLOW_DEFAULTS: dict[str, Any] = {
    "autoCommit": True,
    "requireTests": True,
    "requireLint": True,
    "autoMerge": False,
    "prTemplate": True,
    "nextSpecId": 1,
}

EMBEDDING_DEFAULTS: dict[str, Any] = {
    "batch_size": 10,
    "chunk_size": 1000,
    "chunk_overlap": 200,
}

INDEX_DEFAULTS: dict[str, Any] = {
    "include_extensions": [
        ".py", ".js", ".ts", ".tsx", ".jsx", ".go", ".rs", ".java",
        ".cpp", ".c", ".h", ".hpp", ".cs", ".rb", ".php", ".swift",
        ".kt", ".scala", ".md", ".txt", ".json", ".yaml", ".yml",
    ],
    "exclude_patterns": [
        "node_modules", ".git", "__pycache__", ".branch-flow/index",
        "dist", "build", ".next", "target", "vendor", ".venv", "venv",
        ".cache", "coverage", ".nyc_output", ".pytest_cache", ".claude",
        ".cursor", ".vscode", ".quasar", ".idea", ".eclipse",
    ],
    "exclude_files": [
        "package-lock.json", "yarn.lock", "pnpm-lock.yaml", "composer.lock",
        "Gemfile.lock", "Cargo.lock", "poetry.lock", "Pipfile.lock",
        ".DS_Store", ".gitignore", ".editorconfig",
    ],
    "max_file_size_kb": 500,
    "index_memory": True,
    "index_specs": True,
    "index_codebase": True,
}  # fmt: skip

IDLE_TASK: dict[str, Any] = {
    "specId": None,
    "status": "idle",
    "lastCompleted": None,
}

# ---------------------------------------------------------------------------
# Memory notes
# ---------------------------------------------------------------------------

PROJECT_CONTEXT_MD = """\
# Project Context

## Overview
[Analyze and describe the project - what it does, tech stack, structure]

## Architecture
[Key architectural patterns and decisions]

## Conventions
[Coding standards, naming conventions, file organization]

## Testing
[Test framework, coverage requirements, testing patterns]

## Dependencies
[Key dependencies and their purposes]

---
*Last updated: Run /bf:init to auto-populate*
"""

DECISIONS_MD = """\
# Technical Decisions

A log of significant technical decisions made during development.

## Template

### [Date] - [Decision Title]
**Context:** Why this decision was needed
**Decision:** What was decided
**Rationale:** Why this choice was made
**Consequences:** Expected impact

---
"""

LEARNINGS_MD = """\
# Learnings

Insights and lessons learned from completed tasks.

## What Works Well
- [patterns that succeed]

## What to Avoid
- [patterns that cause issues]

## Tips & Tricks
- [useful techniques discovered]

---
*Updated after each completed task*
"""

MEMORY_FILES: dict[str, str] = {
    "project-context.md": PROJECT_CONTEXT_MD,
    "decisions.md": DECISIONS_MD,
    "learnings.md": LEARNINGS_MD,
}

# ---------------------------------------------------------------------------
# Slash commands
# ---------------------------------------------------------------------------

# (name, summary, body) -- written to .claude/commands/bf-<name>.md
COMMANDS: tuple[tuple[str, str, str], ...] = (
    (
        "init",
        "Initialize project context",
        "Analyze the codebase and fill in `.branch-flow/memory/project-context.md`.\n"
        "Record the tech stack, architecture, conventions and test setup.",
    ),
    (
        "spec",
        "Create task specification",
        "Write a spec for the task in $ARGUMENTS to `.branch-flow/specs/`, using the\n"
        "`nextSpecId` counter from `.branch-flow/config.json`, then increment it.",
    ),
    (
        "plan",
        "Generate implementation plan",
        "Read the active spec and write a step-by-step plan to `.branch-flow/plans/`.",
    ),
    (
        "build",
        "Start implementation",
        "Create a branch named with the configured `branchPrefix`, mark the task\n"
        "`in_progress` in `.branch-flow/current-task.json` and implement the plan.",
    ),
    (
        "review",
        "Run QA validation",
        "Run the project's tests and linters and check the work against the spec.",
    ),
    (
        "merge",
        "Complete and merge",
        "Merge the task branch into the base branch, reset the task state to idle\n"
        "and record learnings in `.branch-flow/memory/learnings.md`.",
    ),
    (
        "status",
        "Show current status",
        "Summarize `.branch-flow/current-task.json` and the active spec and plan.",
    ),
    (
        "abort",
        "Abandon task",
        "Abandon the active task and reset `.branch-flow/current-task.json` to idle.",
    ),
    (
        "search",
        "Semantic search",
        "Search the project index for $ARGUMENTS using `.branch-flow/scripts/`.",
    ),
    (
        "similar",
        "Find similar files",
        "Find files similar to $ARGUMENTS using the project index.",
    ),
    (
        "index",
        "Rebuild search index",
        "Rebuild `.branch-flow/index/` using the embedding settings in config.json.",
    ),
    (
        "docs",
        "Fetch library documentation",
        "Look up documentation for $ARGUMENTS through the Context7 MCP server.",
    ),
)


def command_body(name: str, summary: str, body: str) -> str:
    """Render one slash-command file."""
    return f"---\ndescription: {summary}\n---\n\n# /bf:{name}\n\n{body}\n"


COMMANDS_README_MD = """\
# Branch Flow Commands

These commands are part of the Branch Flow workflow system.

## Available Commands

- `/bf:init` - Initialize Branch Flow
- `/bf:spec` - Create task specification
- `/bf:plan` - Generate implementation plan
- `/bf:build` - Start implementation
- `/bf:review` - Run QA validation
- `/bf:merge` - Complete and integrate
- `/bf:status` - Show current status
- `/bf:abort` - Abandon task
- `/bf:search` - Semantic search
- `/bf:similar` - Find similar files
- `/bf:index` - Rebuild search index
- `/bf:docs` - Fetch library documentation

## Installation

Re-run `branch-flow-install` to restore any command file that was deleted.
Existing command files are never overwritten.
"""

SKILL_NAME = "branch-flow"

SKILL_MD = """\
---
name: branch-flow
description: Single-task, branch-based development workflow driven by /bf commands
---

# Branch Flow

Work on exactly one task at a time. Every task gets a spec in
`.branch-flow/specs/` and a plan in `.branch-flow/plans/` before any code
is written. Keep `.branch-flow/current-task.json` in sync with what you are
doing, and record decisions and learnings in `.branch-flow/memory/`.
"""

# ---------------------------------------------------------------------------
# CLAUDE.md
# ---------------------------------------------------------------------------

INSTRUCTIONS_MARKER = "<!-- branch-flow:instructions -->"
INSTRUCTIONS_END_MARKER = "<!-- /branch-flow:instructions -->"

CLAUDE_MD_SECTION = f"""\
{INSTRUCTIONS_MARKER}
## Branch Flow

This project uses Branch Flow for autonomous development.

Commands: `/bf:init`, `/bf:spec`, `/bf:plan`, `/bf:build`, `/bf:review`, `/bf:merge`, `/bf:status`, `/bf:abort`

See `.branch-flow/` for specs, plans, and memory.
{INSTRUCTIONS_END_MARKER}
"""

CLAUDE_MD_DOCUMENT = f"""\
# Project Instructions

{INSTRUCTIONS_MARKER}
## Branch Flow

This project uses **Branch Flow**, a single-task, branch-based autonomous development workflow.

### Quick Start

```
/bf:init     # Initialize (already done)
/bf:spec     # Create a new task
/bf:plan     # Generate implementation plan
/bf:build    # Start building
/bf:review   # Run QA validation
/bf:merge    # Complete and integrate
```

### Directory Structure

```
.branch-flow/
|-- config.json       # Configuration
|-- current-task.json # Active task state
|-- specs/            # Task specifications
|-- plans/            # Implementation plans
`-- memory/           # Persistent context
```

### Workflow

1. One task at a time
2. Every task has a spec and plan
3. QA validation before merge
4. Memory updated after completion
{INSTRUCTIONS_END_MARKER}
"""

# ---------------------------------------------------------------------------
# .gitignore
# ---------------------------------------------------------------------------

# Team installs commit the workflow; only transient files are ignored.
TEAM_GITIGNORE_MARKER = ".branch-flow/current-task.json"
TEAM_GITIGNORE_BLOCK = """\
# Branch Flow (transient files only)
.branch-flow/current-task.json
.branch-flow/index/
"""

# Substring match: any earlier Branch Flow block (team or personal) counts.
PERSONAL_GITIGNORE_MARKER = "Branch Flow"
PERSONAL_GITIGNORE_BLOCK = f"""\
# Branch Flow (personal install - not committed to repo)
.branch-flow/
.claude/commands/bf-*
.claude/skills/{SKILL_NAME}/
"""
