"""
Tests for the gpsd connection.

Read-path tests use a socketpair; connect tests use a listening socket
on 127.0.0.1 standing in for gpsd.
"""

import socket
import threading

import pytest

from gps_date.errors import ConnectFailure, ConnectionLost, NoDataError, ReadError
from gps_date.gpsd.connection import WATCH_ENABLE_JSON, GpsdConnection, connect
from gps_date.interfaces.fix_report import FixField, FixStatus

TPV = b'{"class":"TPV","mode":3,"time":"2023-11-14T22:13:20.000Z"}\n'
SKY = b'{"class":"SKY","uSat":4}\n'


@pytest.fixture
def pair():
    """(GpsdConnection, peer socket) joined by a socketpair."""
    ours, theirs = socket.socketpair()
    conn = GpsdConnection(ours, 'localhost', '2947')
    yield conn, theirs
    conn.close()
    theirs.close()


class TestWaitAndRead:
    """Test one-update-per-call reads."""

    def test_reads_one_report(self, pair):
        conn, peer = pair
        peer.sendall(TPV)

        report = conn.wait_and_read(timeout=1.0)

        assert report.message_class == 'TPV'
        assert report.time == 1700000000.0
        assert report.status == FixStatus.FIX

    def test_two_updates_in_one_chunk(self, pair):
        conn, peer = pair
        peer.sendall(SKY + TPV)

        first = conn.wait_and_read(timeout=1.0)
        second = conn.wait_and_read(timeout=1.0)

        assert first.has(FixField.SATELLITES)
        assert second.has(FixField.TIME)
        assert second.satellites_used == 4

    def test_update_split_across_chunks(self, pair):
        conn, peer = pair
        peer.sendall(TPV[:20])

        def finish():
            peer.sendall(TPV[20:])

        timer = threading.Timer(0.05, finish)
        timer.start()
        try:
            report = conn.wait_and_read(timeout=2.0)
        finally:
            timer.join()

        assert report.time == 1700000000.0

    def test_malformed_line_skipped(self, pair):
        conn, peer = pair
        peer.sendall(b'{not json\n' + b'[1,2]\n' + TPV)

        report = conn.wait_and_read(timeout=1.0)
        assert report.message_class == 'TPV'

    @pytest.mark.parametrize("bad_line", [
        b'{"class":"SKY","uSat":1e400}\n',
        b'{"class":"TPV","mode":3,"time":' + b'9' * 400 + b'}\n',
        b'[' * 20000 + b']' * 20000 + b'\n',
    ], ids=["infinite-usat", "huge-numeric-time", "deep-nesting"])
    def test_undecodable_record_skipped(self, pair, bad_line):
        """A record the decoder cannot use is skipped, not raised."""
        conn, peer = pair
        peer.sendall(bad_line + TPV)

        reports = []
        while not reports or not reports[-1].has(FixField.TIME):
            reports.append(conn.wait_and_read(timeout=2.0))

        assert len(reports) <= 2
        assert reports[-1].time == 1700000000.0
        assert all(r.time is None for r in reports[:-1])

    def test_timeout_is_no_data(self, pair):
        conn, _ = pair
        with pytest.raises(NoDataError):
            conn.wait_and_read(timeout=0.05)

    def test_peer_close_is_read_error(self, pair):
        conn, peer = pair
        peer.close()
        with pytest.raises(ReadError):
            conn.wait_and_read(timeout=1.0)

    def test_read_after_close_is_read_error(self, pair):
        conn, _ = pair
        conn.close()
        with pytest.raises(ReadError):
            conn.wait_and_read(timeout=0.05)

    def test_both_failures_are_connection_lost(self):
        assert issubclass(NoDataError, ConnectionLost)
        assert issubclass(ReadError, ConnectionLost)


class TestReports:
    """Test the lazy report sequence."""

    def test_yields_until_stream_closes(self, pair):
        conn, peer = pair
        peer.sendall(SKY + TPV)
        peer.close()

        seen = []
        with pytest.raises(ReadError):
            for report in conn.reports(timeout=1.0):
                seen.append(report.message_class)

        assert seen == ['SKY', 'TPV']


class TestClose:
    """Test connection release."""

    def test_close_is_idempotent(self, pair):
        conn, _ = pair
        conn.close()
        conn.close()
        assert not conn.is_open


class TestConnect:
    """Test opening a session against a local listener."""

    def test_connect_sends_watch(self):
        server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        server.bind(('127.0.0.1', 0))
        server.listen(1)
        port = server.getsockname()[1]
        received = []

        def serve():
            client, _ = server.accept()
            with client:
                data = b''
                while not data.endswith(b'\n'):
                    chunk = client.recv(1024)
                    if not chunk:
                        break
                    data += chunk
                received.append(data)
                client.sendall(TPV)

        thread = threading.Thread(target=serve, daemon=True)
        thread.start()
        try:
            conn = connect('127.0.0.1', port, timeout=2.0)
            try:
                report = conn.wait_and_read(timeout=2.0)
            finally:
                conn.close()
        finally:
            thread.join(timeout=2.0)
            server.close()

        assert received == [WATCH_ENABLE_JSON]
        assert report.time == 1700000000.0
        assert conn.port == str(port)

    def test_refused_is_connect_failure(self):
        # Grab a free port, then close it so nothing is listening
        probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        probe.bind(('127.0.0.1', 0))
        port = probe.getsockname()[1]
        probe.close()

        with pytest.raises(ConnectFailure) as excinfo:
            connect('127.0.0.1', port, timeout=1.0)

        assert excinfo.value.errno is not None
        assert excinfo.value.reason
