"""Human-readable install summary.

Pure formatting over what already happened; no decisions are made here.
"""

from __future__ import annotations

from collections.abc import Sequence

from branchflow import templates_data as td
from branchflow.catalog import PROVIDER_LABELS
from branchflow.install_support import CheckResult
from branchflow.install_support.providers import llamacpp_server_hint
from branchflow.options import CONTEXT7_SIGNUP_URL, UIPRO_MANUAL_COMMAND, InstallOptions
from branchflow.scaffold import OpResult

_COMMAND_LIST = (
    ("init", "Initialize project context"),
    ("spec", "Create task specification"),
    ("plan", "Generate implementation plan"),
    ("build", "Start implementation"),
    ("review", "Run QA validation"),
    ("merge", "Complete and merge"),
    ("search", "Semantic search"),
    ("similar", "Find similar files"),
    ("index", "Rebuild search index"),
    ("docs", "Fetch library documentation"),
)


def context7_status(options: InstallOptions) -> str:
    if options.context7_configured:
        return "Configured"
    return "Not configured (add API key to .claude/mcp.json)"


def uipro_status(options: InstallOptions, uipro: CheckResult | None) -> str:
    if not options.install_uipro or uipro is None:
        return "Not installed (optional)"
    if uipro.status == "ok":
        return "Installed"
    if uipro.status == "partial":
        return "Partially installed (run: uipro init --ai claude)"
    return "Installation failed"


def _gitignore_note(options: InstallOptions, results: Sequence[OpResult]) -> str:
    for r in results:
        if r.op.path.name == ".gitignore" and r.action == "unchanged" and options.install_mode == "personal":
            return ".gitignore already contains Branch Flow entries; update it manually for personal mode."
    return ""


def render_report(
    options: InstallOptions,
    base_branch: str,
    results: Sequence[OpResult],
    checks: Sequence[CheckResult],
    uipro: CheckResult | None = None,
) -> str:
    """Render the end-of-install summary."""
    lines: list[str] = ["Branch Flow installed successfully!", ""]

    created = sum(1 for r in results if r.action == "created")
    changed = sum(1 for r in results if r.action in ("overwritten", "appended"))
    unchanged = sum(1 for r in results if r.action == "unchanged")
    commands = sum(1 for r in results if r.op.path.name.startswith("bf-") and r.op.path.suffix == ".md")
    lines.append(f"Files: {created} created, {changed} updated, {unchanged} unchanged")
    lines.append("   .branch-flow/  config.json, current-task.json, specs/, plans/, docs/, memory/, scripts/, ideas/")
    lines.append(f"   .claude/       commands/ ({commands} commands), skills/{td.SKILL_NAME}/, mcp.json")
    lines.append("")

    mode_label = "Personal (gitignored, not committed)" if options.install_mode == "personal" else "Team (committed to repo)"
    lines.append("Configuration:")
    lines.append(f"   Base branch: {base_branch}")
    lines.append(f"   Branch prefix: {td.BRANCH_PREFIX}")
    lines.append(f"   Install mode: {mode_label}")
    lines.append(f"   Embedding provider: {options.embedding_provider}")
    lines.append(f"   Embedding model: {options.embedding_model} ({options.embedding_dimensions} dims)")
    lines.append(f"   Context7: {context7_status(options)}")
    lines.append(f"   UI/UX Pro: {uipro_status(options, uipro)}")
    note = _gitignore_note(options, results)
    if note:
        lines.append(f"   !! {note}")
    lines.append("")

    all_checks = [*checks, *([uipro] if uipro is not None else [])]
    if all_checks:
        lines.append("Checks:")
        for c in all_checks:
            lines.append(f"  {c.icon}  {c.name}: {c.message}")
            if c.fix_hint and not c.passed:
                lines.append(f"       -> {c.fix_hint}")
        lines.append("")

    label = PROVIDER_LABELS[options.embedding_provider]
    lines.append("Semantic Search:")
    lines.append(f"   Provider: {label} (server at {options.service_url})")
    if options.embedding_provider == "llamacpp":
        lines.append(f"   Start server: {llamacpp_server_hint(options.embedding_model)}")
        if options.model_download_url:
            lines.append(f"   Download model: {options.model_download_url}")
    else:
        lines.append("   To change models: ollama pull <model> then update config.json")
    lines.append("")

    lines.append("Documentation Lookup (Context7):")
    if options.context7_configured:
        lines.append("   Ready to use! Run /bf:docs <library>")
    else:
        lines.append(f"   Get your API key at: {CONTEXT7_SIGNUP_URL}")
        lines.append("   Add to .claude/mcp.json or run: export BF_CONTEXT7_API_KEY=your-key")
    if not options.install_uipro:
        lines.append(f"   UI/UX Pro can be added later with: {UIPRO_MANUAL_COMMAND}")
    lines.append("")

    lines.append("Next steps:")
    if options.embedding_provider == "llamacpp":
        lines.append("   1. Start llama.cpp server: llama-server -m <model.gguf> --embedding")
    else:
        lines.append("   1. Ensure Ollama is running: ollama serve")
    lines.append("   2. Run /bf:init to analyze your codebase")
    lines.append("   3. Run /bf:index to build search index")
    lines.append("   4. Create your first spec with /bf:spec")
    lines.append("")

    lines.append("Commands:")
    for name, desc in _COMMAND_LIST:
        lines.append(f"   /bf:{name:<8} - {desc}")

    return "\n".join(lines) + "\n"
