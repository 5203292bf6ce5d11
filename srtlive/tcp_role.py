"""A plain TCP endpoint that either listens or connects without blocking."""

from __future__ import annotations

import errno
import logging
import socket

from .common import SlsError

logger = logging.getLogger(__name__)

_SEND_FLAGS = getattr(socket, "MSG_NOSIGNAL", 0)
_CONNECT_PENDING = {0, errno.EINPROGRESS, errno.EWOULDBLOCK, errno.EAGAIN}


class TCPRole:
    """One TCP socket opened as a listener or as a non-blocking client."""

    def __init__(self) -> None:
        self._sock: socket.socket | None = None
        self.port = 0
        self.remote_host = ""
        self.remote_port = 0
        self.valid = False
        self.role_name = "tcp_role"

    def __enter__(self) -> TCPRole:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _setup(self) -> socket.socket:
        if self._sock is not None:
            raise SlsError(f"setup, fd={self._sock.fileno()}, can't setup, already open.")
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        except OSError as exc:
            raise SlsError(f"setup, create sock failure: {exc}") from exc
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        except OSError as exc:
            sock.close()
            raise SlsError(f"setup, setsockopt reused failure: {exc}") from exc
        logger.info("setup, create sock ok, fd=%d.", sock.fileno())
        self._sock = sock
        return sock

    def open_listener(self, port: int, backlog: int) -> None:
        """Bind to port on all interfaces and listen; port 0 picks a free one."""
        sock = self._setup()
        try:
            sock.bind(("", port))
        except OSError as exc:
            self.close()
            raise SlsError(f"listen, bind failure, port={port}: {exc}") from exc
        self.port = sock.getsockname()[1]
        logger.info("listen, bind ok, fd=%d, port=%d.", sock.fileno(), self.port)
        try:
            sock.listen(backlog)
        except OSError as exc:
            self.close()
            raise SlsError(f"listen, listen failure, port={port}: {exc}") from exc
        logger.info("listen, listen ok, fd=%d, port=%d.", sock.fileno(), self.port)
        self.valid = True

    def open_client(self, host: str, port: int) -> None:
        """Start a non-blocking connection to the IPv4 address host:port."""
        try:
            socket.inet_aton(host)
        except (OSError, TypeError) as exc:
            raise SlsError(f"connect, invalid host='{host}'.") from exc
        sock = self._setup()
        # Non-blocking, so that a wrong host cannot block the caller.
        sock.setblocking(False)
        result = sock.connect_ex((host, port))
        if result not in _CONNECT_PENDING:
            self.close()
            raise SlsError(
                f"connect, failure, host={host}, port={port}, errno={result}."
            )
        logger.info("connect, ok, fd=%d, host=%s, port=%d.", sock.fileno(), host, port)
        self.remote_host = host
        self.remote_port = port
        self.valid = True

    def close(self) -> None:
        """Close the socket; closing twice does nothing."""
        if self._sock is None:
            return
        logger.info("close ok, fd=%d.", self._sock.fileno())
        self._sock.close()
        self._sock = None
        self.valid = False

    def _require_open(self) -> socket.socket:
        if self._sock is None:
            raise SlsError("socket is not open.")
        return self._sock

    def write(self, data: bytes) -> int:
        """Send data; return the number of bytes sent (0 if it would block)."""
        sock = self._require_open()
        try:
            return sock.send(data, _SEND_FLAGS)
        except BlockingIOError:
            logger.info("write, would block, fd=%d.", sock.fileno())
            return 0
        except OSError as exc:
            raise SlsError(f"write failed: {exc}") from exc

    def read(self, size: int) -> bytes:
        """Receive up to size bytes; b'' when nothing is available.

        A closed peer or a socket error marks the role as no longer valid.
        """
        sock = self._require_open()
        try:
            data = sock.recv(size)
        except BlockingIOError:
            return b""
        except OSError as exc:
            logger.info("read, invalid tcp: %s.", exc)
            self.valid = False
            return b""
        if not data:
            logger.info("read, invalid tcp, peer closed.")
            self.valid = False
        return data

    def fileno(self) -> int:
        """The socket's file descriptor, or -1 when closed."""
        return -1 if self._sock is None else self._sock.fileno()