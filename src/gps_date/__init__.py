"""
gps-date: set the system clock from gpsd once at boot

Run once early in boot. gps-date waits for gpsd, reads reports until one
carries a time backed by a real fix, sets the system clock from it and
exits. Ongoing discipline is left to chronyd/ntpd reading gpsd's SHM
refclock; they refuse to step a clock that is hours off (a board that
boots at 1970 with no network), which is the gap this fills.

Architecture:
    gpsd (JSON/TCP) → GpsDateSession → clock_settime(CLOCK_REALTIME) → exit

Version: 1.0.0
"""

__version__ = "1.0.0"

from .interfaces.fix_report import FixReport, FixStatus, FixField

__all__ = [
    "FixReport",
    "FixStatus",
    "FixField",
    "__version__",
]
