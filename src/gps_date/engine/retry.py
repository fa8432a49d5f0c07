"""
Connection Retry Policies

Two policies share one object:

- Startup: up to ``num_retries`` attempts, ``retry_sleep`` seconds apart.
  This runs in the foreground before detaching, so an init script that
  starts gps-date blocks until gpsd answers or the attempts run out.
- Reconnect: after a mid-stream drop, one attempt per call, sleeping
  ``reconnect_interval`` after a failure. The caller loops forever; there
  is no attempt limit and no backoff.
"""

import logging
import time
from typing import Callable, Optional, TypeVar

from ..errors import ConnectFailure, ConfigError, RetriesExhausted

logger = logging.getLogger(__name__)

T = TypeVar('T')

NUM_RETRIES = 60        # Startup connection attempts
RETRY_SLEEP = 1.0       # Seconds between startup attempts
RECONNECT_INTERVAL = 1.0


class RetryPolicy:
    """Bounded startup connect and unbounded paced reconnect."""

    def __init__(
        self,
        num_retries: int = NUM_RETRIES,
        retry_sleep: float = RETRY_SLEEP,
        reconnect_interval: float = RECONNECT_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
        announce: Optional[Callable[[str], None]] = print
    ):
        if num_retries < 1:
            raise ConfigError(f"num_retries must be at least 1, got {num_retries}")
        if retry_sleep < 0 or reconnect_interval < 0:
            raise ConfigError("retry sleep intervals must not be negative")

        self.num_retries = num_retries
        self.retry_sleep = retry_sleep
        self.reconnect_interval = reconnect_interval
        self._sleep = sleep
        self._announce = announce

    def connect_with_retries(self, connect_fn: Callable[[], T], target: str = "gpsd") -> T:
        """
        Call connect_fn until it succeeds or the attempts run out.

        Sleeps only between attempts: success on attempt k costs k-1 sleeps,
        exhaustion costs num_retries attempts and num_retries-1 sleeps.

        Args:
            connect_fn: Opens a connection or raises ConnectFailure
            target: Shown in the per-attempt progress line

        Returns:
            Whatever connect_fn returned on its first success

        Raises:
            RetriesExhausted: Every attempt failed
        """
        last_failure: Optional[ConnectFailure] = None

        for attempt in range(1, self.num_retries + 1):
            if self._announce:
                self._announce(f"Attempt #{attempt} to connect to gpsd at {target}...")
            try:
                return connect_fn()
            except ConnectFailure as e:
                last_failure = e
                logger.debug(f"Connect attempt {attempt}/{self.num_retries} failed: {e}")

            if attempt < self.num_retries:
                self._sleep(self.retry_sleep)

        raise RetriesExhausted(self.num_retries, last_failure)

    def reconnect_once(self, connect_fn: Callable[[], T]) -> Optional[T]:
        """
        Make a single reconnect attempt.

        Returns:
            The new connection, or None after sleeping the reconnect interval
        """
        try:
            return connect_fn()
        except ConnectFailure as e:
            logger.debug(f"Reconnect failed: {e}")
            self._sleep(self.reconnect_interval)
            return None
