"""Branch Flow installer: scaffolds the Branch Flow workflow into a git project."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("branch-flow-installer")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from branchflow.options import InstallOptions, resolve_options
from branchflow.scaffold import build_plan, execute_plan, scaffold

__all__ = ["InstallOptions", "__version__", "build_plan", "execute_plan", "resolve_options", "scaffold"]
