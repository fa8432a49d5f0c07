"""
Host Clock Setter

Steps CLOCK_REALTIME to a whole-second epoch value with clock_settime(2),
the same kernel facility settimeofday(2) uses. Needs CAP_SYS_TIME.

A failed set is reported, never retried: a privilege or kernel error will
not go away by trying again.
"""

import logging
import os
import time
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommitOutcome:
    """Result of one attempt to set the host clock."""
    success: bool
    epoch_seconds: int
    errno: Optional[int] = None
    message: str = ""

    @property
    def timestamp_text(self) -> str:
        """ctime()-style rendering of the committed time, without the newline."""
        try:
            return time.ctime(self.epoch_seconds)
        except (OverflowError, OSError, ValueError):
            return "<unknown>"


def _set_realtime(epoch_seconds: float):
    time.clock_settime(time.CLOCK_REALTIME, epoch_seconds)


class ClockSetter:
    """
    Applies a validated time to the host clock.

    Usage:
        outcome = ClockSetter().commit(1700000000)
        if not outcome.success:
            logger.error(f"Error setting RTC: {outcome.errno} ({outcome.message})")
    """

    def __init__(self, set_clock: Callable[[float], None] = _set_realtime):
        self._set_clock = set_clock

    def commit(self, epoch_seconds: int) -> CommitOutcome:
        """
        Set the host wall clock to epoch_seconds.

        Args:
            epoch_seconds: Whole seconds since the Unix epoch

        Returns:
            CommitOutcome with errno and message on failure
        """
        try:
            self._set_clock(float(epoch_seconds))
        except OSError as e:
            code = e.errno
            message = e.strerror or (os.strerror(code) if code else str(e))
            return CommitOutcome(False, epoch_seconds, code, message)
        except (OverflowError, ValueError) as e:
            return CommitOutcome(False, epoch_seconds, None, str(e))

        return CommitOutcome(True, epoch_seconds)
