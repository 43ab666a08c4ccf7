"""Thin socket wrappers for the intercom: TCP streams, a TCP listener and a UDP broadcaster."""

from __future__ import annotations

import logging
import socket

logger = logging.getLogger(__name__)

_INT_MAX = 2**31 - 1
_LISTEN_BACKLOG = 6


def _check_length(length: int) -> None:
    if length > _INT_MAX:
        raise ValueError(f"length {length} exceeds the maximum of {_INT_MAX}")


def _resolve_ipv4(hostname: str) -> str:
    try:
        infos = socket.getaddrinfo(hostname, None, socket.AF_INET, socket.SOCK_STREAM)
    except socket.gaierror as exc:
        raise ConnectionError(f"Failed to resolve hostname: {hostname}") from exc
    if not infos:
        raise ConnectionError(f"Failed to resolve hostname: {hostname}")
    return infos[0][4][0]


class TcpConnection:
    """A connected TCP stream with Nagle's algorithm disabled."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock

    @classmethod
    def connect(cls, hostname: str, port: int) -> TcpConnection:
        """Resolve ``hostname`` (IPv4 only) and open a connection to ``port``.

        Raises ``ConnectionError`` if the name cannot be resolved and
        ``OSError`` if the socket cannot be set up or connected.
        """
        address = _resolve_ipv4(hostname)
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.connect((address, port))
        except OSError:
            sock.close()
            raise
        logger.info("TcpConnection - Connected to %s:%d", hostname, port)
        return cls(sock)

    def read(self, length: int) -> bytes:
        """Read exactly ``length`` bytes.

        Raises ``ConnectionError`` if the peer closes the stream first.
        """
        _check_length(length)
        chunks = []
        remaining = length
        while remaining > 0:
            chunk = self._sock.recv(remaining)
            if not chunk:
                raise ConnectionError(
                    f"connection closed after {length - remaining} of {length} bytes"
                )
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def read_once(self, length: int) -> bytes | None:
        """Read at most ``length`` bytes in a single call.

        Returns ``None`` when nothing could be read (no data waiting on a
        non-blocking socket, or any other socket error) and ``b""`` when the
        peer has closed the connection.
        """
        _check_length(length)
        try:
            return self._sock.recv(length)
        except OSError:
            return None

    def write(self, data: bytes) -> int:
        """Write all of ``data`` and return the number of bytes written."""
        _check_length(len(data))
        self._sock.sendall(data)
        return len(data)

    def set_non_blocking(self) -> bool:
        """Switch the socket to non-blocking mode; return whether it worked."""
        try:
            self._sock.setblocking(False)
        except OSError:
            return False
        return True

    def fileno(self) -> int:
        """The socket's descriptor, or -1 once closed."""
        return self._sock.fileno()

    def close(self) -> None:
        self._sock.close()

    def __enter__(self) -> TcpConnection:
        return self

    def __exit__(self, *args) -> None:
        self.close()


class TcpConnectionListener:
    """A TCP server socket bound to all IPv4 interfaces."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock

    @classmethod
    def listen(cls, port: int) -> TcpConnectionListener:
        """Bind to ``port`` on every interface and start listening."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind(("0.0.0.0", port))
            sock.listen(_LISTEN_BACKLOG)
        except OSError:
            sock.close()
            raise
        logger.info("TcpConnectionListener - Listening on port %d", port)
        return cls(sock)

    @property
    def port(self) -> int:
        """The port the listener is bound to."""
        return self._sock.getsockname()[1]

    def accept(self) -> TcpConnection:
        """Wait for a client and return its connection with TCP_NODELAY set."""
        client, _ = self._sock.accept()
        try:
            client.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        except OSError:
            client.close()
            raise
        logger.info("TcpConnectionListener - Accepted connection")
        return TcpConnection(client)

    def stop(self) -> None:
        """Close the listening socket."""
        self._sock.close()

    def fileno(self) -> int:
        """The socket's descriptor, or -1 once stopped."""
        return self._sock.fileno()

    def __enter__(self) -> TcpConnectionListener:
        return self

    def __exit__(self, *args) -> None:
        self.stop()


class UdpSocket:
    """A broadcast-capable UDP socket bound to one port on every interface."""

    def __init__(self, sock: socket.socket, port: int) -> None:
        self._sock = sock
        self._port = port

    @classmethod
    def create(cls, port: int) -> UdpSocket:
        """Open a UDP socket with SO_BROADCAST and bind it to ``port``."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            sock.bind(("0.0.0.0", port))
        except OSError:
            sock.close()
            raise
        bound_port = sock.getsockname()[1]
        logger.info("UdpSocket - Listening on port %d", bound_port)
        return cls(sock, bound_port)

    @property
    def port(self) -> int:
        """The port the socket is bound to and sends to."""
        return self._port

    def broadcast(self, data: bytes) -> None:
        """Send ``data`` to the broadcast address on this socket's port.

        Failures are logged, not raised; oversized data is dropped.
        """
        if len(data) > _INT_MAX:
            return
        try:
            self._sock.sendto(data, ("<broadcast>", self._port))
        except OSError as exc:
            logger.error("UdpSocket - Failed to broadcast: %s", exc.strerror or exc)

    def receive_from(self, length: int) -> tuple[bytes, str]:
        """Receive one datagram of at most ``length`` bytes and its sender's IPv4 address."""
        _check_length(length)
        data, (host, _port) = self._sock.recvfrom(length)
        return data, host

    def send_to(self, data: bytes, address: str) -> int:
        """Send ``data`` to the dotted-quad ``address`` on this socket's port."""
        _check_length(len(data))
        try:
            socket.inet_pton(socket.AF_INET, address)
        except OSError as exc:
            raise ValueError(f"invalid IPv4 address: {address!r}") from exc
        return self._sock.sendto(data, (address, self._port))

    def close(self) -> None:
        self._sock.close()

    def __enter__(self) -> UdpSocket:
        return self

    def __exit__(self, *args) -> None:
        self.close()