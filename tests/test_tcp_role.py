import select
import socket
import time

import pytest

from srtlive.common import SlsError
from srtlive.tcp_role import TCPRole


@pytest.fixture
def server():
    srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    srv.bind(("127.0.0.1", 0))
    srv.listen(1)
    srv.settimeout(5)
    yield srv
    srv.close()


def _wait_writable(role):
    _, writable, _ = select.select([], [role.fileno()], [], 5)
    return bool(writable)


def _read_until(role, size, deadline=5.0):
    end = time.monotonic() + deadline
    while time.monotonic() < end:
        data = role.read(size)
        if data or not role.valid:
            return data
        time.sleep(0.01)
    return b""


def test_listener_accepts_connection():
    role = TCPRole()
    role.open_listener(0, 5)
    try:
        assert role.valid is True
        assert role.port > 0
        assert role.role_name == "tcp_role"
        with socket.create_connection(("127.0.0.1", role.port), timeout=5) as conn:
            assert conn.getpeername()[1] == role.port
    finally:
        role.close()
    assert role.valid is False
    assert role.fileno() == -1


def test_client_write_and_read(server):
    port = server.getsockname()[1]
    with TCPRole() as role:
        role.open_client("127.0.0.1", port)
        assert role.remote_host == "127.0.0.1"
        assert role.remote_port == port
        conn, _ = server.accept()
        with conn:
            assert _wait_writable(role)
            assert role.write(b"ping") == 4
            assert conn.recv(16) == b"ping"
            conn.sendall(b"pong")
            assert _read_until(role, 16) == b"pong"
            assert role.valid is True


def test_read_without_data_keeps_valid(server):
    port = server.getsockname()[1]
    with TCPRole() as role:
        role.open_client("127.0.0.1", port)
        conn, _ = server.accept()
        with conn:
            assert _wait_writable(role)
            assert role.read(100) == b""
            assert role.valid is True


def test_peer_close_invalidates(server):
    port = server.getsockname()[1]
    with TCPRole() as role:
        role.open_client("127.0.0.1", port)
        conn, _ = server.accept()
        assert _wait_writable(role)
        conn.close()
        assert _read_until(role, 100) == b""
        assert role.valid is False


def test_open_twice_raises(server):
    port = server.getsockname()[1]
    with TCPRole() as role:
        role.open_client("127.0.0.1", port)
        with pytest.raises(SlsError):
            role.open_client("127.0.0.1", port)
        assert role.valid is True


def test_invalid_host_raises():
    role = TCPRole()
    with pytest.raises(SlsError):
        role.open_client("not-an-address", 1)
    assert role.fileno() == -1
    assert role.valid is False


def test_read_and_write_when_closed_raise():
    role = TCPRole()
    with pytest.raises(SlsError):
        role.read(10)
    with pytest.raises(SlsError):
        role.write(b"x")


def test_context_manager_closes():
    with TCPRole() as role:
        role.open_listener(0, 1)
        assert role.fileno() >= 0
    assert role.fileno() == -1
    assert role.valid is False