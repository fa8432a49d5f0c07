"""
Logging helpers for gps-date.

Lines go to stderr with timestamps and, where a syslog socket
exists, to syslog under facility ``cron`` with ident ``gpsdate``. Python
has no NOTICE level, so one is registered between INFO and WARNING and
mapped to syslog's ``notice`` priority.
"""

import logging
import os
from logging.handlers import SysLogHandler
from typing import Optional

NOTICE = 25
logging.addLevelName(NOTICE, 'NOTICE')

SYSLOG_SOCKET = '/dev/log'
SYSLOG_IDENT = 'gpsdate'

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'


def make_syslog_handler(address: str = SYSLOG_SOCKET) -> Optional[SysLogHandler]:
    """
    Build a SysLogHandler on the local syslog socket.

    Returns:
        The handler, or None if no syslog daemon is listening
    """
    if not os.path.exists(address):
        return None
    try:
        handler = SysLogHandler(address=address, facility=SysLogHandler.LOG_CRON)
    except OSError:
        return None
    handler.priority_map = dict(handler.priority_map, NOTICE='notice')
    handler.ident = f"{SYSLOG_IDENT}[{os.getpid()}]: "
    handler.setFormatter(logging.Formatter('%(message)s'))
    return handler


def setup_logging(debug: bool = False, use_syslog: bool = True):
    """Configure the root logger."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if debug else logging.INFO)

    if use_syslog:
        handler = make_syslog_handler()
        if handler is not None:
            root.addHandler(handler)


def refresh_syslog_ident():
    """Re-stamp syslog handlers with the current pid after a fork."""
    for handler in logging.getLogger().handlers:
        if isinstance(handler, SysLogHandler):
            handler.ident = f"{SYSLOG_IDENT}[{os.getpid()}]: "


__all__ = ['NOTICE', 'setup_logging', 'make_syslog_handler', 'refresh_syslog_ident']
