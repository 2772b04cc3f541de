"""
Pytest configuration for mesos watch tests.

Provides log level setup, a recording consumer, a canned HTTP server
that answers one connection per queued response from a background thread
and TLS contexts built on the self-signed certificate in tests/certs.
"""

import os
import socket
import ssl
import threading
from typing import Any, Generator

import pytest

from mesos_watch.env import Env
from mesos_watch.logging import Entry, LoggingConfig, LogLevel

HEADER_END = b"\r\n\r\n"

CERTS_DIRECTORY = os.path.join(os.path.dirname(__file__), "certs")


class RecordingConsumer:
    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []

    def __call__(self, document: str, group_tag: Any):
        self.calls.append((document, group_tag))

    @property
    def documents(self) -> list[str]:
        return [document for document, _ in self.calls]


class CannedServer:
    """
    Answers one connection per queued response. With ``ssl_context`` the
    accepted connections are wrapped server side. With ``keep_open`` each
    connection stays open after its response until ``close()``.
    """

    def __init__(
        self,
        responses: list[bytes],
        ssl_context: ssl.SSLContext | None = None,
        keep_open: bool = False,
    ) -> None:
        self.responses = list(responses)
        self.requests: list[bytes] = []
        self.keep_open = keep_open

        self._ssl_context = ssl_context
        self._released = threading.Event()

        self._server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._server.bind(("127.0.0.1", 0))
        self._server.listen(8)
        self._server.settimeout(5)

        self.port = self._server.getsockname()[1]
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def url(self, path: str) -> str:
        scheme = "http" if self._ssl_context is None else "https"
        return f"{scheme}://127.0.0.1:{self.port}{path}"

    def close(self):
        self._released.set()
        self._server.close()
        self._thread.join(timeout=5)

    def _serve(self):
        for response in self.responses:
            try:
                connection = self._accept()

            except OSError:
                return

            with connection:
                self.requests.append(read_request(connection))
                connection.sendall(response)

                if self.keep_open:
                    self._released.wait(5)

    def _accept(self) -> socket.socket:
        connection, _ = self._server.accept()
        connection.settimeout(5)

        if self._ssl_context is None:
            return connection

        try:
            return self._ssl_context.wrap_socket(connection, server_side=True)

        except OSError:
            connection.close()
            raise


def read_request(connection: socket.socket) -> bytes:
    request = b""
    while HEADER_END not in request:
        data = connection.recv(4096)
        if not data:
            break

        request += data

    return request


def http_response(
    body: bytes,
    status: str = "200 OK",
    headers: dict[str, str] | None = None,
) -> bytes:
    header_lines = [f"HTTP/1.1 {status}", f"Content-Length: {len(body)}"]
    for name, value in (headers or {}).items():
        header_lines.append(f"{name}: {value}")

    return ("\r\n".join(header_lines) + "\r\n\r\n").encode() + body


@pytest.fixture(autouse=True)
def configure_log_level():
    config = LoggingConfig()
    config.update(log_level="debug", log_output="stderr")
    yield
    config.update(log_level="error")


@pytest.fixture
def temp_log_directory(tmp_path) -> str:
    return str(tmp_path)


@pytest.fixture
def sample_entry() -> Entry:
    return Entry(
        message="Test log message",
        level=LogLevel.INFO,
    )


@pytest.fixture
def consumer() -> RecordingConsumer:
    return RecordingConsumer()


@pytest.fixture
def env() -> Env:
    return Env(MESOS_WATCH_REQUEST_TIMEOUT="2s")


@pytest.fixture
def canned_server() -> Generator:
    servers: list[CannedServer] = []

    def create_server(responses: list[bytes], **kwargs: Any) -> CannedServer:
        server = CannedServer(responses, **kwargs)
        servers.append(server)
        return server

    yield create_server

    for server in servers:
        server.close()


@pytest.fixture
def closed_port() -> int:
    unused = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    unused.bind(("127.0.0.1", 0))
    port = unused.getsockname()[1]
    unused.close()

    return port


@pytest.fixture
def server_ssl_context() -> ssl.SSLContext:
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    context.load_cert_chain(
        os.path.join(CERTS_DIRECTORY, "localhost.pem"),
        keyfile=os.path.join(CERTS_DIRECTORY, "localhost.key"),
    )

    return context


@pytest.fixture
def client_ssl_context() -> ssl.SSLContext:
    # the test certificate is self-signed
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE

    return context
