"""
Detach from the controlling terminal.

gps-date connects to gpsd in the foreground so init can wait on it, then
detaches for the open-ended wait for a fix.
"""

import logging
import os
import sys

from .logging_utils import refresh_syslog_ident

logger = logging.getLogger(__name__)


def daemonize(workdir: str = '/tmp') -> bool:
    """
    Fork into the background and start a new session.

    The parent exits with status 0. In the child the umask is cleared,
    the working directory moved to ``workdir`` and stdio pointed at
    /dev/null.

    Returns:
        True if now detached, False if already a daemon (parent is init)
        or a step failed; on failure the process stays in the foreground
    """
    if os.getppid() == 1:
        logger.debug("Parent is init, already detached")
        return False

    sys.stdout.flush()
    sys.stderr.flush()

    try:
        pid = os.fork()
    except OSError as e:
        logger.warning(f"fork failed, staying in foreground: {e}")
        return False

    if pid > 0:
        os._exit(0)

    refresh_syslog_ident()
    os.umask(0)

    try:
        os.setsid()
        os.chdir(workdir)
    except OSError as e:
        logger.warning(f"Could not fully detach: {e}")
        return False

    devnull = os.open(os.devnull, os.O_RDWR)
    try:
        for fd in (0, 1, 2):
            os.dup2(devnull, fd)
    finally:
        if devnull > 2:
            os.close(devnull)

    return True
