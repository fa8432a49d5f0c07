"""
Pytest configuration and fixtures for gps-date tests.
"""

import pytest
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from gps_date.errors import ConnectFailure, ReadError
from gps_date.interfaces.fix_report import FixField, FixReport, FixStatus


class ScriptedConnection:
    """
    Stand-in for GpsdConnection that replays a script.

    Script items are FixReports (returned in order) or exceptions (raised).
    When the script runs out a ReadError is raised.
    """

    def __init__(self, script, log):
        self.script = list(script)
        self.log = log
        self.closed = False

    def reports(self, timeout=None):
        while True:
            self.log.append('read')
            if not self.script:
                raise ReadError("script exhausted")
            item = self.script.pop(0)
            if isinstance(item, BaseException):
                raise item
            yield item

    def close(self):
        self.log.append('close')
        self.closed = True


class ScriptedConnector:
    """
    connect_fn replacement.

    ``outcomes`` is consumed one per call: None means refuse with
    ConnectFailure, a list is the script for a new ScriptedConnection.
    """

    def __init__(self, outcomes, log=None):
        self.outcomes = list(outcomes)
        self.log = log if log is not None else []
        self.calls = 0
        self.connections = []

    def __call__(self):
        self.calls += 1
        self.log.append('connect')
        outcome = self.outcomes.pop(0) if self.outcomes else None
        if outcome is None:
            raise ConnectFailure(111, "Connection refused")
        conn = ScriptedConnection(outcome, self.log)
        self.connections.append(conn)
        return conn


class FakeClock:
    """Records clock_settime calls; optionally fails with an OSError."""

    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def __call__(self, epoch_seconds):
        self.calls.append(epoch_seconds)
        if self.error is not None:
            raise self.error


@pytest.fixture
def sleeps():
    """List that collects requested sleep durations."""
    return []


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def make_report():
    """Factory for FixReports with a valid fix unless overridden."""
    def _make(time=1700000000.0, status=FixStatus.FIX, satellites_used=4,
              fields=FixField.TIME | FixField.STATUS | FixField.MODE):
        return FixReport(
            fields_present=fields,
            time=time,
            status=status,
            satellites_used=satellites_used,
            message_class='TPV',
        )
    return _make
