"""Exception hierarchy for gps-date."""

from typing import Optional


class GpsDateError(Exception):
    """Base class for all gps-date errors."""


class ConfigError(GpsDateError):
    """Raised when configuration values are missing or out of range."""


class ConnectFailure(GpsDateError):
    """
    Raised when a session to gpsd cannot be opened.

    Carries the OS-level errno (None when there is none) and a readable reason.
    """

    def __init__(self, errno: Optional[int], reason: str):
        super().__init__(f"{reason} (errno {errno})" if errno is not None else reason)
        self.errno = errno
        self.reason = reason


class ConnectionLost(GpsDateError):
    """The stream from gpsd ended; the session must reconnect."""


class NoDataError(ConnectionLost):
    """Nothing arrived within the read timeout."""


class ReadError(ConnectionLost):
    """The read failed or gpsd closed the socket."""

    def __init__(self, reason: str, errno: Optional[int] = None):
        super().__init__(reason)
        self.errno = errno
        self.reason = reason


class RetriesExhausted(GpsDateError):
    """Every startup connection attempt failed."""

    def __init__(self, attempts: int, last_failure: Optional[ConnectFailure]):
        super().__init__(f"gave up after {attempts} attempts: {last_failure}")
        self.attempts = attempts
        self.last_failure = last_failure
