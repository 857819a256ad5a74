"""Optional UI/UX Pro install through npm.

Degrades to ``partial`` (installed but ``uipro init`` failed) or
``failed`` (npm missing, or the global install failed). Never raises.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path

from branchflow.install_support import CheckResult
from branchflow.options import UIPRO_MANUAL_COMMAND

logger = logging.getLogger(__name__)

NPM_TIMEOUT = 300
UIPRO_PACKAGE = "uipro-cli"
UIPRO_INIT_ARGS = ("init", "--ai", "claude")

CHECK_NAME = "UI/UX Pro"


def _run(args: list[str], cwd: Path) -> bool:
    try:
        result = subprocess.run(args, cwd=str(cwd), capture_output=True, text=True, timeout=NPM_TIMEOUT)
    except (subprocess.TimeoutExpired, OSError) as exc:
        logger.warning("%s failed: %s", " ".join(args), exc)
        return False
    if result.returncode != 0:
        logger.warning("%s exited %d: %s", " ".join(args), result.returncode, result.stderr.strip())
        return False
    return True


def install_uipro(project_root: Path) -> CheckResult:
    """Install ``uipro-cli`` globally, then initialize it for Claude in *project_root*."""
    npm = shutil.which("npm")
    if npm is None:
        return CheckResult(
            CHECK_NAME,
            "failed",
            "npm not found - cannot install UI/UX Pro",
            fix_hint=f"Install Node.js first, then run: {UIPRO_MANUAL_COMMAND}",
        )

    if not _run([npm, "install", "-g", UIPRO_PACKAGE], project_root):
        return CheckResult(
            CHECK_NAME,
            "failed",
            f"Failed to install {UIPRO_PACKAGE}",
            fix_hint=f"Try running manually: npm install -g {UIPRO_PACKAGE}",
        )

    uipro = shutil.which("uipro") or "uipro"
    init_cmd = " ".join(("uipro", *UIPRO_INIT_ARGS))
    if not _run([uipro, *UIPRO_INIT_ARGS], project_root):
        return CheckResult(
            CHECK_NAME,
            "partial",
            f"{UIPRO_PACKAGE} installed but initialization failed",
            fix_hint=f"Try running manually: {init_cmd}",
        )
    return CheckResult(CHECK_NAME, "ok", "UI/UX Pro initialized for Claude")
