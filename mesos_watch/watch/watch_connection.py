from __future__ import annotations

import errno
import fcntl
import os
import selectors
import socket
import ssl
import struct
import termios

from mesos_watch.client.models import Endpoint
from mesos_watch.errors import (
    ConnectError,
    ConnectionClosed,
    ConnectTimeout,
    SendError,
    SendTimeout,
    WatchConnectionError,
)
from mesos_watch.framing import TransferDecoder
from mesos_watch.logging import LoggerStream, WatchDebug, WatchError

from .connection_state import ConnectionState

CONNECT_IN_PROGRESS = (
    0,
    errno.EINPROGRESS,
    errno.EWOULDBLOCK,
    errno.EAGAIN,
)


class WatchConnection:
    """
    Owns the persistent watch socket.

    The caller runs the readiness loop: it registers ``fileno()`` with
    its own multiplexer and calls ``poll_and_read()`` when the socket is
    readable. Everything read is handed to the transfer decoder as is.
    """

    def __init__(
        self,
        endpoint: Endpoint,
        decoder: TransferDecoder,
        timeout_ms: int,
        keepalive_idle: int = 300,
        keepalive_interval: int = 10,
        ssl_context: ssl.SSLContext | None = None,
        logger: LoggerStream | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout_ms = timeout_ms
        self.keepalive_idle = keepalive_idle
        self.keepalive_interval = keepalive_interval
        self.state = ConnectionState.DISCONNECTED

        self._decoder = decoder
        self._socket: socket.socket | None = None
        self._ssl_context = ssl_context
        self._logger = logger or LoggerStream(name="watch")

    @property
    def decoder(self) -> TransferDecoder:
        return self._decoder

    @property
    def connected(self) -> bool:
        return self._socket is not None and self.state == ConnectionState.CONNECTED

    @property
    def socket(self) -> socket.socket | None:
        return self._socket

    def fileno(self) -> int:
        if self._socket is None:
            return -1

        return self._socket.fileno()

    def establish(self, timeout_ms: int | None = None) -> socket.socket:
        if timeout_ms is not None:
            self.timeout_ms = timeout_ms

        if self.connected:
            return self._socket

        self._teardown(ConnectionState.CONNECTING)

        try:
            family, type_, proto, _, address = socket.getaddrinfo(
                self.endpoint.host,
                self.endpoint.effective_port,
                type=socket.SOCK_STREAM,
            )[0]

            watch_socket = socket.socket(family=family, type=type_, proto=proto)

        except OSError as err:
            self.state = ConnectionState.FAILED
            raise ConnectError(
                f"Error obtaining socket: {err}",
                cause=err,
                endpoint=str(self.endpoint),
            ) from err

        try:
            self._configure_socket(watch_socket)

        except OSError as err:
            watch_socket.close()
            self.state = ConnectionState.FAILED

            raise ConnectError(
                f"Error configuring socket: {err}",
                cause=err,
                endpoint=str(self.endpoint),
            ) from err

        result = watch_socket.connect_ex(address)
        if result not in CONNECT_IN_PROGRESS:
            watch_socket.close()
            self.state = ConnectionState.FAILED

            raise ConnectError(
                f"Error obtaining socket: {os.strerror(result)}",
                endpoint=str(self.endpoint),
            )

        self._socket = watch_socket

        if self.wait_ready(for_read=False) is False:
            self._teardown(ConnectionState.FAILED)
            raise ConnectTimeout(str(self.endpoint), self.timeout_ms)

        connect_error = watch_socket.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        if connect_error:
            self._teardown(ConnectionState.FAILED)

            raise ConnectError(
                f"Error obtaining socket: {os.strerror(connect_error)}",
                endpoint=str(self.endpoint),
            )

        if self.endpoint.is_ssl:
            self._socket = self._wrap_ssl(watch_socket)

        self._decoder.reset()
        self.state = ConnectionState.CONNECTED

        self._logger.log(
            WatchDebug(
                message="Connected: collecting data",
                endpoint=str(self.endpoint),
                state=self.state.name,
            )
        )

        return self._socket

    def send(self, request: bytes):
        if self._socket is None or self.state != ConnectionState.CONNECTED:
            raise SendError(
                "Send: invalid socket.",
                endpoint=str(self.endpoint),
            )

        if not request:
            raise SendError(
                "Send: request (empty).",
                endpoint=str(self.endpoint),
            )

        try:
            sent = self._socket.send(request)

        except OSError as err:
            self.state = ConnectionState.FAILED
            raise SendError(
                f"Send: socket connection error: {err}",
                cause=err,
                endpoint=str(self.endpoint),
            ) from err

        if sent != len(request):
            self.state = ConnectionState.FAILED
            raise SendError(
                f"Send: short write ({sent} of {len(request)} bytes).",
                endpoint=str(self.endpoint),
            )

        if self.wait_ready(for_read=True) is False:
            raise SendTimeout(str(self.endpoint), self.timeout_ms)

        request_line = request.split(b"\r\n", 1)[0].decode(errors="replace")

        self._logger.log(
            WatchDebug(
                message=f"Sent {request_line}",
                endpoint=str(self.endpoint),
                state=self.state.name,
            )
        )

    def poll_and_read(self) -> int:
        if self._socket is None:
            raise WatchConnectionError(
                str(self.endpoint),
                "socket not connected",
            )

        chunks: list[bytes] = []
        polls = 0
        closed = False

        while True:
            try:
                available = self._bytes_available()

            except OSError as err:
                self._fail_read(err)

            if available <= 0:
                closed = polls == 0
                break

            try:
                data = self._socket.recv(available)

            except (BlockingIOError, ssl.SSLWantReadError):
                break

            except OSError as err:
                self._fail_read(err)

            if not data:
                closed = True
                break

            chunks.append(data)
            polls += 1

        received = sum(len(chunk) for chunk in chunks)
        if chunks:
            self._decoder.feed(b"".join(chunks))

        if closed:
            self._logger.log(
                WatchError(
                    message="Mesos or Marathon API connection closed.",
                    endpoint=str(self.endpoint),
                    state=ConnectionState.CLOSED.name,
                )
            )

            self._teardown(ConnectionState.CLOSED)
            raise ConnectionClosed(str(self.endpoint))

        return received

    def wait_ready(self, for_read: bool) -> bool:
        if self._socket is None:
            return False

        # A socket in error reports ready for either event.
        events = selectors.EVENT_READ if for_read else selectors.EVENT_WRITE

        with selectors.DefaultSelector() as selector:
            selector.register(self._socket, events)
            ready = selector.select(self.timeout_ms / 1000)

        return bool(ready)

    def close(self, state: ConnectionState = ConnectionState.CLOSED):
        self._teardown(state)

    def _configure_socket(self, watch_socket: socket.socket):
        watch_socket.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)

        if hasattr(socket, "TCP_KEEPIDLE"):
            watch_socket.setsockopt(
                socket.IPPROTO_TCP,
                socket.TCP_KEEPIDLE,
                self.keepalive_idle,
            )

        if hasattr(socket, "TCP_KEEPINTVL"):
            watch_socket.setsockopt(
                socket.IPPROTO_TCP,
                socket.TCP_KEEPINTVL,
                self.keepalive_interval,
            )

        watch_socket.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        watch_socket.setblocking(False)

    def _wrap_ssl(self, watch_socket: socket.socket) -> ssl.SSLSocket:
        if self._ssl_context is None:
            self._ssl_context = ssl.create_default_context()

        watch_socket.settimeout(self.timeout_ms / 1000)

        try:
            ssl_socket = self._ssl_context.wrap_socket(
                watch_socket,
                server_hostname=self.endpoint.host,
            )

        except OSError as err:
            self._teardown(ConnectionState.FAILED)
            raise ConnectError(
                f"TLS handshake failed: {err}",
                cause=err,
                endpoint=str(self.endpoint),
            ) from err

        ssl_socket.setblocking(False)

        return ssl_socket

    def _bytes_available(self) -> int:
        result = fcntl.ioctl(
            self._socket.fileno(),
            termios.FIONREAD,
            struct.pack("i", 0),
        )

        available = struct.unpack("i", result)[0]

        if isinstance(self._socket, ssl.SSLSocket):
            available = max(available, self._socket.pending())

        return available

    def _fail_read(self, err: OSError):
        system_message = os.strerror(err.errno) if err.errno else str(err)

        self._logger.log(
            WatchError(
                message=f"Mesos or Marathon API connection error: {system_message}",
                endpoint=str(self.endpoint),
                state=ConnectionState.FAILED.name,
            )
        )

        self.state = ConnectionState.FAILED

        raise WatchConnectionError(
            str(self.endpoint),
            system_message,
            cause=err,
        ) from err

    def _teardown(self, state: ConnectionState):
        if self._socket is not None:
            try:
                self._socket.shutdown(socket.SHUT_RDWR)

            except OSError:
                pass

            self._socket.close()
            self._socket = None

        self._decoder.reset()
        self.state = state
