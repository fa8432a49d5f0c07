"""
Fix Report Data Models

A FixReport describes one update pushed by gpsd. The gpsd client builds a
fresh report for every JSON object it reads; the session validates it and
then throws it away. Nothing downstream keeps a history of reports.

gpsd JSON objects used:

    TPV  {"class":"TPV","mode":3,"status":2,"time":"2023-11-14T22:13:20.000Z",...}
    SKY  {"class":"SKY","uSat":7,"satellites":[{"PRN":5,"used":true},...]}

Fix status and satellites used are connection-scoped: a TPV updates the
status, a SKY updates the satellite count, and every report carries the
latest value of both. ``fields_present`` marks only what this update set.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum, Flag
from typing import Any, Dict, Optional


class FixStatus(int, Enum):
    """Fix quality as reported by gpsd."""
    NO_FIX = 0      # mode 0/1, or nothing heard yet
    FIX = 1         # 2D or 3D fix
    DGPS_FIX = 2    # differential fix


class FixField(Flag):
    """Which fields an update carried."""
    NONE = 0
    TIME = 1
    STATUS = 2
    SATELLITES = 4
    MODE = 8


@dataclass(frozen=True)
class FixReport:
    """One update from gpsd, read-only once built."""
    fields_present: FixField = FixField.NONE
    time: Optional[float] = None         # Seconds since epoch, fractional
    status: FixStatus = FixStatus.NO_FIX
    satellites_used: int = 0
    message_class: str = ""              # "TPV", "SKY", "VERSION", ...

    def has(self, field: FixField) -> bool:
        return bool(self.fields_present & field)


def parse_gpsd_time(value: Any) -> Optional[float]:
    """
    Convert a gpsd time value to epoch seconds.

    Current gpsd sends ISO-8601 UTC strings; protocol revisions before 3.10
    sent a float. Fractional seconds of any length are accepted.

    Args:
        value: "2023-11-14T22:13:20.000Z" or a number

    Returns:
        Epoch seconds, or None if the value cannot be parsed
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return float(value)
        except OverflowError:
            return None
    if not isinstance(value, str) or not value:
        return None

    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1]
    whole, _, fraction = text.partition('.')
    try:
        dt = datetime.strptime(whole, '%Y-%m-%dT%H:%M:%S').replace(tzinfo=timezone.utc)
        frac = float(f"0.{fraction}") if fraction else 0.0
    except ValueError:
        return None
    return dt.timestamp() + frac


def _count_used_satellites(sky: Dict[str, Any]) -> Optional[int]:
    if 'uSat' in sky:
        try:
            return max(0, int(sky['uSat']))
        except (TypeError, ValueError, OverflowError):
            return None
    satellites = sky.get('satellites')
    if isinstance(satellites, list):
        return sum(1 for sat in satellites if isinstance(sat, dict) and sat.get('used'))
    return None


class ReportDecoder:
    """
    Builds FixReports from decoded gpsd JSON objects.

    One decoder belongs to one connection; it holds the status and
    satellite count carried forward between updates, and is reset when
    the connection is re-established.
    """

    def __init__(self):
        self.status = FixStatus.NO_FIX
        self.satellites_used = 0

    def reset(self):
        self.status = FixStatus.NO_FIX
        self.satellites_used = 0

    def decode(self, message: Dict[str, Any]) -> FixReport:
        """Turn one gpsd JSON object into a FixReport."""
        fields = FixField.NONE
        fix_time = None
        message_class = str(message.get('class', ''))

        if message_class == 'TPV':
            mode = message.get('mode')
            if isinstance(mode, int):
                fields |= FixField.MODE | FixField.STATUS
                if mode < 2:
                    self.status = FixStatus.NO_FIX
                elif message.get('status') == 2:
                    self.status = FixStatus.DGPS_FIX
                else:
                    self.status = FixStatus.FIX

            fix_time = parse_gpsd_time(message.get('time'))
            if fix_time is not None:
                fields |= FixField.TIME

        elif message_class == 'SKY':
            used = _count_used_satellites(message)
            if used is not None:
                self.satellites_used = used
                fields |= FixField.SATELLITES

        return FixReport(
            fields_present=fields,
            time=fix_time,
            status=self.status,
            satellites_used=self.satellites_used,
            message_class=message_class,
        )
