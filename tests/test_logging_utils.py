"""
Tests for logging setup.
"""

import logging
from logging.handlers import SysLogHandler

from gps_date.logging_utils import NOTICE, make_syslog_handler


class TestNoticeLevel:
    """NOTICE sits between INFO and WARNING."""

    def test_level_registered(self):
        assert logging.getLevelName(NOTICE) == 'NOTICE'
        assert logging.INFO < NOTICE < logging.WARNING


class TestSyslogHandler:
    """Test syslog handler construction."""

    def test_missing_socket(self, tmp_path):
        assert make_syslog_handler(str(tmp_path / 'no-such-socket')) is None

    def test_notice_maps_to_syslog_notice(self, monkeypatch):
        monkeypatch.setattr(SysLogHandler, '__init__', lambda self, **kwargs: logging.Handler.__init__(self))
        monkeypatch.setattr('os.path.exists', lambda path: True)

        handler = make_syslog_handler('/dev/log')

        assert handler.mapPriority('NOTICE') == 'notice'
        assert handler.mapPriority('ERROR') == 'error'
        assert handler.ident.startswith('gpsdate[')
