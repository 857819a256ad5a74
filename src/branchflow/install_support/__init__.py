"""Install support subpackage: environment probes and their shared result type."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ProbeStatus = Literal["ok", "advisory", "partial", "failed", "skipped"]

PROBE_TIMEOUT = 3.0
"""Seconds to wait on any network probe."""


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one advisory check. Advisory failures are values, never exceptions."""

    name: str
    status: ProbeStatus
    message: str
    fix_hint: str = ""

    @property
    def passed(self) -> bool:
        return self.status == "ok"

    @property
    def icon(self) -> str:
        if self.status == "ok":
            return "OK"
        if self.status == "skipped":
            return "--"
        return "!!"
