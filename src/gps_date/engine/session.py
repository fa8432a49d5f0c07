"""
gps-date Session

Drives one run of the program:

    ESTABLISHING --(startup retries ok)--> [detach] --> CONNECTED
    ESTABLISHING --(retries exhausted)--> RetriesExhausted raised
    CONNECTED    --(valid fix)---------> commit clock --> return outcome
    CONNECTED    --(ConnectionLost)----> close --> RECONNECTING
    RECONNECTING --(attempt ok)--------> CONNECTED
    RECONNECTING --(attempt failed)----> sleep --> RECONNECTING

The session owns the only connection. It never exits the process; run()
hands the CommitOutcome back to main(), which picks the exit status.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from ..errors import ConnectionLost
from ..gpsd.connection import GpsdConnection
from ..interfaces.fix_report import FixField, FixReport
from ..logging_utils import NOTICE
from ..output.clock_setter import ClockSetter, CommitOutcome
from .retry import RetryPolicy
from .validator import REASON_NO_TIME, validate

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Session lifecycle states."""
    ESTABLISHING = "ESTABLISHING"
    CONNECTED = "CONNECTED"
    RECONNECTING = "RECONNECTING"


@dataclass(frozen=True)
class Committed:
    """The read loop applied a fix; the run is over."""
    outcome: CommitOutcome


@dataclass(frozen=True)
class StreamLost:
    """The read loop lost gpsd and the session must reconnect."""
    reason: str


ReadLoopResult = Union[Committed, StreamLost]


def _format_time(epoch: Optional[float]) -> str:
    if epoch is None:
        return "<no time>"
    try:
        return time.ctime(epoch)
    except (OverflowError, OSError, ValueError):
        return "<unknown>"


class GpsDateSession:
    """
    Connection, retry, validation and clock commit for one process lifetime.

    Usage:
        session = GpsDateSession(
            connect_fn=lambda: connect('localhost', '2947'),
            retry_policy=RetryPolicy(num_retries=60),
            clock_setter=ClockSetter(),
            detach=daemonize,
        )
        outcome = session.run()
    """

    def __init__(
        self,
        connect_fn: Callable[[], GpsdConnection],
        retry_policy: RetryPolicy,
        clock_setter: ClockSetter,
        detach: Optional[Callable[[], object]] = None,
        read_timeout: Optional[float] = None,
        target: str = "gpsd"
    ):
        """
        Args:
            connect_fn: Opens a streaming gpsd connection or raises ConnectFailure
            retry_policy: Startup and reconnect pacing
            clock_setter: Applies the accepted time
            detach: Called once after the first connection (None stays in foreground)
            read_timeout: Seconds to wait for each update; None waits forever
            target: Description of the gpsd endpoint for progress lines
        """
        self.connect_fn = connect_fn
        self.retry_policy = retry_policy
        self.clock_setter = clock_setter
        self.detach = detach
        self.read_timeout = read_timeout
        self.target = target

        self.state = SessionState.ESTABLISHING
        self.connection: Optional[GpsdConnection] = None
        self.reconnect_attempts = 0
        self.reports_seen = 0

    def run(self) -> CommitOutcome:
        """
        Run until a fix has been committed.

        Returns:
            The outcome of the single clock commit

        Raises:
            RetriesExhausted: No startup attempt reached gpsd
        """
        self.establish()

        if self.detach is not None:
            self.detach()

        while True:
            if self.state == SessionState.CONNECTED:
                result = self.read_until_commit()
                if isinstance(result, Committed):
                    return result.outcome
                logger.error(f"connection to gpsd was closed: {result.reason}, reconnecting")
            else:
                self.reconnect_step()

    def establish(self) -> "GpsDateSession":
        """Startup phase: bounded retries, then CONNECTED."""
        self.state = SessionState.ESTABLISHING
        self.connection = self.retry_policy.connect_with_retries(self.connect_fn, self.target)
        logger.info("(re)connected to gpsd")
        self.state = SessionState.CONNECTED
        return self

    def read_until_commit(self) -> ReadLoopResult:
        """
        CONNECTED state: consume reports until one is committed or the stream drops.

        On a dropped stream the connection is closed and the session moves
        to RECONNECTING.
        """
        conn = self.connection
        try:
            for report in conn.reports(self.read_timeout):
                self.reports_seen += 1
                outcome = self._consider(report)
                if outcome is not None:
                    return Committed(outcome)
        except ConnectionLost as e:
            self._drop_connection()
            return StreamLost(str(e))

        # reports() only ends by raising
        self._drop_connection()
        return StreamLost("report stream ended")

    def reconnect_step(self) -> bool:
        """
        RECONNECTING state: one attempt, sleeping the interval on failure.

        Returns:
            True if the session is CONNECTED again
        """
        self.reconnect_attempts += 1
        conn = self.retry_policy.reconnect_once(self.connect_fn)
        if conn is None:
            return False
        self.connection = conn
        self.state = SessionState.CONNECTED
        logger.info("(re)connected to gpsd")
        return True

    def _consider(self, report: FixReport) -> Optional[CommitOutcome]:
        timestr = _format_time(report.time)
        if report.has(FixField.TIME):
            logger.debug(
                f"{timestr}: fields={report.fields_present} "
                f"status={report.status.value} sats_used={report.satellites_used}"
            )

        verdict = validate(report)
        if not verdict.accepted:
            if verdict.reason == REASON_NO_TIME:
                logger.debug(f"{report.message_class or 'update'}: {verdict.reason}")
            else:
                logger.info(f"{timestr}: discarding; {verdict.reason}")
            return None

        outcome = self.clock_setter.commit(verdict.epoch_seconds)
        self.close()

        if outcome.success:
            logger.log(NOTICE, f"Successfully set RTC time to GPSD time: {outcome.timestamp_text}")
        else:
            logger.error(f"Error setting RTC: {outcome.errno} ({outcome.message})")
        return outcome

    def _drop_connection(self):
        if self.connection is not None:
            self.connection.close()
        self.connection = None
        self.state = SessionState.RECONNECTING

    def close(self):
        """Release the connection if one is still open."""
        if self.connection is not None:
            self.connection.close()
            self.connection = None
