"""
gpsd Connection

Opens a TCP session to gpsd, switches it to JSON watch mode and reads
one update at a time.

Protocol:
    client -> ?WATCH={"enable":true,"json":true};
    gpsd   -> {"class":"VERSION",...}\\n{"class":"DEVICES",...}\\n
              {"class":"WATCH",...}\\n{"class":"TPV",...}\\n ...

Every newline-terminated JSON object is one update. The standard libgps
main loop ignores the result of a failed read and only reacts to a wait
timeout, so a closed remote socket makes it spin. Here a failed read or an
orderly close from gpsd raises ReadError and a timeout raises NoDataError;
callers catch both as ConnectionLost.

Usage:
    conn = connect('localhost', '2947')
    for report in conn.reports():
        ...
"""

import errno as errno_codes
import json
import logging
import select
import socket
import time
from typing import Iterator, Optional, Union

from ..errors import ConnectFailure, NoDataError, ReadError
from ..interfaces.fix_report import FixReport, ReportDecoder

logger = logging.getLogger(__name__)


DEFAULT_GPSD_PORT = "2947"

# Streaming mode with structured (JSON) reports, no raw NMEA
WATCH_ENABLE_JSON = b'?WATCH={"enable":true,"json":true};\n'

# gpsd never sends a line longer than this (GPS_JSON_RESPONSE_MAX is 10240)
MAX_LINE_BYTES = 65536

RECV_SIZE = 4096


class GpsdConnection:
    """
    One open session to gpsd.

    Owns the socket, the receive buffer and the per-connection report
    decoder. close() is idempotent.
    """

    def __init__(self, sock: socket.socket, host: str, port: str):
        self.sock: Optional[socket.socket] = sock
        self.host = host
        self.port = port
        self._buffer = b''
        self._decoder = ReportDecoder()

    def __repr__(self) -> str:
        state = 'open' if self.sock is not None else 'closed'
        return f"<GpsdConnection {self.host}:{self.port} {state}>"

    @property
    def is_open(self) -> bool:
        return self.sock is not None

    def enable_streaming(self):
        """Ask gpsd to push JSON reports."""
        if self.sock is None:
            raise ReadError("connection is closed")
        try:
            self.sock.sendall(WATCH_ENABLE_JSON)
        except OSError as e:
            raise ReadError(f"failed to enable streaming: {e.strerror or e}", e.errno) from e

    def wait_and_read(self, timeout: Optional[float] = None) -> FixReport:
        """
        Block for the next update and return it as a FixReport.

        Args:
            timeout: Seconds to wait for data; None waits forever

        Returns:
            The FixReport for exactly one update

        Raises:
            NoDataError: Nothing arrived within the timeout
            ReadError: The read failed or gpsd closed the socket
        """
        deadline = None if timeout is None else time.monotonic() + timeout

        while True:
            line = self._pop_line()
            if line is not None:
                report = self._decode_line(line)
                if report is not None:
                    return report
                continue

            remaining = None
            if deadline is not None:
                remaining = max(0.0, deadline - time.monotonic())
            if not self._wait(remaining):
                raise NoDataError(f"no data from gpsd within {timeout}s")
            self._fill()

    def reports(self, timeout: Optional[float] = None) -> Iterator[FixReport]:
        """
        Lazily yield one FixReport per blocking read.

        The iterator never ends normally; it raises ConnectionLost when the
        stream is gone.
        """
        while True:
            yield self.wait_and_read(timeout)

    def close(self):
        """Release the session. Safe to call more than once."""
        sock, self.sock = self.sock, None
        self._buffer = b''
        self._decoder.reset()
        if sock is None:
            return
        try:
            sock.close()
        except OSError as e:
            logger.debug(f"Ignoring error closing gpsd socket: {e}")

    def _wait(self, timeout: Optional[float]) -> bool:
        if self.sock is None:
            raise ReadError("connection is closed")
        try:
            readable, _, _ = select.select([self.sock], [], [], timeout)
        except (OSError, ValueError) as e:
            raise ReadError(f"wait on gpsd socket failed: {e}", getattr(e, 'errno', None)) from e
        return bool(readable)

    def _fill(self):
        try:
            chunk = self.sock.recv(RECV_SIZE)
        except OSError as e:
            raise ReadError(f"read from gpsd failed: {e.strerror or e}", e.errno) from e
        if not chunk:
            raise ReadError("gpsd closed the connection")
        self._buffer += chunk
        if len(self._buffer) > MAX_LINE_BYTES and b'\n' not in self._buffer:
            raise ReadError(f"line from gpsd exceeds {MAX_LINE_BYTES} bytes", errno_codes.EMSGSIZE)

    def _pop_line(self) -> Optional[bytes]:
        line, sep, rest = self._buffer.partition(b'\n')
        if not sep:
            return None
        self._buffer = rest
        return line

    def _decode_line(self, line: bytes) -> Optional[FixReport]:
        text = line.strip()
        if not text:
            return None
        try:
            message = json.loads(text.decode('utf-8', errors='replace'))
        except (ValueError, RecursionError) as e:
            logger.warning(f"Skipping malformed line from gpsd: {e}")
            return None
        if not isinstance(message, dict):
            logger.warning(f"Skipping non-object JSON from gpsd: {text[:80]!r}")
            return None
        return self._decoder.decode(message)


def connect(
    host: str,
    port: Union[str, int] = DEFAULT_GPSD_PORT,
    timeout: Optional[float] = 10.0
) -> GpsdConnection:
    """
    Open a session to gpsd at host:port and enable JSON streaming.

    Args:
        host: gpsd host name or address
        port: gpsd TCP port or service name
        timeout: Connect timeout in seconds (None blocks)

    Returns:
        An open GpsdConnection

    Raises:
        ConnectFailure: gpsd is unreachable or refused the session
    """
    port = str(port)
    try:
        sock = socket.create_connection((host, port), timeout=timeout)
    except socket.gaierror as e:
        raise ConnectFailure(e.errno, f"can't resolve {host}:{port}: {e.strerror or e}") from e
    except socket.timeout as e:
        raise ConnectFailure(errno_codes.ETIMEDOUT, f"timed out connecting to {host}:{port}") from e
    except OSError as e:
        raise ConnectFailure(e.errno, e.strerror or str(e)) from e

    # Reads use select() for their timeouts
    sock.settimeout(None)
    conn = GpsdConnection(sock, host, port)
    try:
        conn.enable_streaming()
    except ReadError as e:
        conn.close()
        raise ConnectFailure(e.errno, e.reason) from e
    return conn
