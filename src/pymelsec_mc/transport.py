"""Blocking TCP transport: one connection, one request/response exchange at a time."""

import logging
import socket
import threading

from .consts import SOCK_BUFSIZE
from .errors import TransportError

logger = logging.getLogger(__name__)


class TcpTransport:
    """
    Thin socket wrapper used by MCClient.

    The connected flag is guarded by a lock so send()/close() may be called from a
    thread other than the one that connected. The lock does not serialize requests.
    """

    def __init__(self) -> None:
        self._sock: socket.socket | None = None
        self._lock = threading.Lock()
        self._connected = False
        self.host: str | None = None
        self.port: int | None = None
        self.read_timeout: float | None = None
        self.write_timeout: float | None = None

    @property
    def is_connected(self) -> bool:
        with self._lock:
            return self._connected

    def connect(self, host: str, port: int, read_timeout: float = 2.0, write_timeout: float = 2.0) -> None:
        """Open the TCP connection; connect itself uses the write timeout."""
        self.host = host
        self.port = port
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout
        try:
            sock = socket.create_connection((host, port), timeout=write_timeout)
        except OSError as e:
            raise TransportError(f"Failed to connect to {host}:{port}: {e}", host=host, port=port, cause=e) from e
        with self._lock:
            self._sock = sock
            self._connected = True
        logger.debug("Connected to %s:%s", host, port)

    def send(self, data: bytes) -> None:
        with self._lock:
            if not self._connected or self._sock is None:
                raise TransportError(
                    "Socket is not connected. Please use the connect method.",
                    host=self.host,
                    port=self.port,
                )
            sock = self._sock
        try:
            sock.settimeout(self.write_timeout)
            sock.sendall(data)
        except socket.timeout as e:
            raise TransportError("Send timeout", host=self.host, port=self.port, cause=e) from e
        except OSError as e:
            raise TransportError(f"Send failed: {e}", host=self.host, port=self.port, cause=e) from e
        logger.debug("Sent %d bytes: %s", len(data), data.hex())

    def recv(self, max_len: int = SOCK_BUFSIZE) -> bytes:
        with self._lock:
            if not self._connected or self._sock is None:
                raise TransportError(
                    "Socket is not connected. Please use the connect method.",
                    host=self.host,
                    port=self.port,
                )
            sock = self._sock
        try:
            sock.settimeout(self.read_timeout)
            data = sock.recv(max_len)
        except socket.timeout as e:
            raise TransportError("Receive timeout", host=self.host, port=self.port, cause=e) from e
        except OSError as e:
            raise TransportError(f"Receive failed: {e}", host=self.host, port=self.port, cause=e) from e
        if not data:
            raise TransportError("Connection closed by peer", host=self.host, port=self.port)
        logger.debug("Received %d bytes: %s", len(data), data.hex())
        return data

    def close(self) -> None:
        with self._lock:
            sock = self._sock
            self._sock = None
            self._connected = False
        if sock is None:
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.warning("Error shutting down socket: %s", e)
        finally:
            sock.close()
        logger.debug("Closed connection to %s:%s", self.host, self.port)
