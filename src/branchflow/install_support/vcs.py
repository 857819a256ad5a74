"""Git working-tree detection.

The only fatal environment check: the scaffolder needs a deterministic
project root, and the config needs the base branch name.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

GIT_TIMEOUT = 10

# Preference order for the base branch; the first one is also the fallback.
BASE_BRANCH_CANDIDATES = ("main", "master")


class NotAVersionControlledTree(Exception):
    """Raised when the installer is not run inside a git working tree."""

    def __init__(self, path: Path, detail: str = "") -> None:
        self.path = path
        self.detail = detail
        msg = f"Not a git repository: {path}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


def _git(cwd: Path, *args: str) -> subprocess.CompletedProcess[str]:
    git_bin = shutil.which("git")
    if git_bin is None:
        raise FileNotFoundError("git executable not found on PATH")
    return subprocess.run(
        [git_bin, *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        timeout=GIT_TIMEOUT,
    )


def find_project_root(cwd: Path | None = None) -> Path:
    """Return the top level of the git working tree containing *cwd*.

    Raises:
        NotAVersionControlledTree: git is missing, times out, or *cwd* is not in a work tree.
    """
    start = cwd or Path.cwd()
    try:
        result = _git(start, "rev-parse", "--show-toplevel")
    except (FileNotFoundError, subprocess.TimeoutExpired, OSError) as exc:
        raise NotAVersionControlledTree(start, str(exc)) from exc
    if result.returncode != 0 or not result.stdout.strip():
        raise NotAVersionControlledTree(start, result.stderr.strip())
    return Path(result.stdout.strip())


def find_git_dir(project_root: Path) -> Path:
    """Return the absolute ``.git`` directory (worktree-aware)."""
    try:
        result = _git(project_root, "rev-parse", "--absolute-git-dir")
    except (FileNotFoundError, subprocess.TimeoutExpired, OSError) as exc:
        raise NotAVersionControlledTree(project_root, str(exc)) from exc
    if result.returncode != 0:
        raise NotAVersionControlledTree(project_root, result.stderr.strip())
    return Path(result.stdout.strip())


def _branch_exists(project_root: Path, name: str) -> bool:
    try:
        result = _git(project_root, "show-ref", "--verify", "--quiet", f"refs/heads/{name}")
    except (FileNotFoundError, subprocess.TimeoutExpired, OSError):
        logger.debug("git show-ref failed for %s", name, exc_info=True)
        return False
    return result.returncode == 0


def detect_base_branch(project_root: Path) -> str:
    """Return ``main`` or ``master``, whichever exists first; ``main`` if neither."""
    for name in BASE_BRANCH_CANDIDATES:
        if _branch_exists(project_root, name):
            return name
    return BASE_BRANCH_CANDIDATES[0]
