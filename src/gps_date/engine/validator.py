"""
Fix Validation

Decides whether a FixReport is trustworthy enough to set the clock from.
Rules, checked in order:

    1. the update must carry a time
    2. the receiver must have a fix
    3. at least one satellite must be in use - a receiver can report a
       "fix" computed from a cached almanac with no satellites locked

The accepted time is truncated to whole seconds.
"""

import math
from dataclasses import dataclass
from typing import Optional

from ..interfaces.fix_report import FixField, FixReport, FixStatus


REASON_NO_TIME = "no time field in this update"
REASON_NO_FIX = "no fix yet"
REASON_NO_SATELLITES = "zero satellites used"


@dataclass(frozen=True)
class Verdict:
    """Result of validating one report."""
    accepted: bool
    epoch_seconds: Optional[int] = None
    reason: Optional[str] = None

    @classmethod
    def accept(cls, epoch_seconds: int) -> "Verdict":
        return cls(accepted=True, epoch_seconds=epoch_seconds)

    @classmethod
    def reject(cls, reason: str) -> "Verdict":
        return cls(accepted=False, reason=reason)


def validate(report: FixReport) -> Verdict:
    """Map a FixReport to accept (with whole-second time) or reject (with reason)."""
    if not report.has(FixField.TIME) or report.time is None:
        return Verdict.reject(REASON_NO_TIME)

    if report.status == FixStatus.NO_FIX:
        return Verdict.reject(REASON_NO_FIX)

    if report.satellites_used == 0:
        return Verdict.reject(REASON_NO_SATELLITES)

    if not math.isfinite(report.time):
        return Verdict.reject(REASON_NO_TIME)

    return Verdict.accept(int(report.time))
