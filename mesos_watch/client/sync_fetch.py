import gzip
import socket
import ssl
import zlib
from typing import BinaryIO, Dict
from urllib.parse import urljoin

from mesos_watch.errors import FetchFailed
from mesos_watch.logging import FetchDebug, LoggerStream

from .models import Endpoint, FetchResponse, URLMetadata
from .request_builder import make_request

MAX_LINE = 65536
MAX_HEADERS = 100


class SyncHTTPFetch:
    """
    Blocking one-shot GET over a connection that is never reused.

    Every call gets a fresh connect and read budget of ``timeout_ms``.
    Redirects are followed up to ``max_redirects`` times and responses
    with a status of 400 or above raise ``FetchFailed``.
    """

    def __init__(
        self,
        timeout_ms: int,
        user_agent: str = "mesos-watch",
        max_redirects: int = 3,
        ssl_context: ssl.SSLContext | None = None,
        logger: LoggerStream | None = None,
    ) -> None:
        self.timeout_ms = timeout_ms
        self.user_agent = user_agent
        self.max_redirects = max_redirects

        self._ssl_context = ssl_context
        self._logger = logger or LoggerStream(name="fetch")

    def get(self, url: Endpoint | str) -> FetchResponse:
        if isinstance(url, Endpoint):
            endpoint = url

        else:
            try:
                endpoint = Endpoint.parse(url)

            except ValueError as err:
                raise FetchFailed(url, str(err), cause=err) from err

        response = self._execute(endpoint)

        redirects_taken = 0
        while 300 <= response.status < 400 and (
            location := response.headers.get(b"location")
        ):
            if redirects_taken >= self.max_redirects:
                raise FetchFailed(
                    endpoint.to_string(include_credentials=False),
                    f"more than {self.max_redirects} redirects",
                )

            endpoint = self._to_redirect_endpoint(endpoint, location.decode())
            response = self._execute(endpoint)
            redirects_taken += 1

        response.redirects = redirects_taken

        if response.status >= 400:
            raise FetchFailed(
                endpoint.to_string(include_credentials=False),
                f"HTTP status {response.status} {response.status_message or ''}".strip(),
                status=response.status,
            )

        return response

    def _execute(self, endpoint: Endpoint) -> FetchResponse:
        redacted_url = endpoint.to_string(include_credentials=False)

        self._logger.log(
            FetchDebug(
                message="Retrieving data",
                url=redacted_url,
            )
        )

        try:
            with socket.create_connection(
                (endpoint.host, endpoint.effective_port),
                timeout=self.timeout_ms / 1000,
            ) as raw_socket:
                raw_socket.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

                connection: socket.socket = raw_socket
                if endpoint.is_ssl:
                    connection = self._get_ssl_context().wrap_socket(
                        raw_socket,
                        server_hostname=endpoint.host,
                    )

                try:
                    connection.sendall(
                        make_request(
                            endpoint,
                            self.user_agent,
                            keep_alive=False,
                        )
                    )

                    with connection.makefile("rb") as reader:
                        return self._read_response(reader, endpoint)

                finally:
                    if connection is not raw_socket:
                        connection.close()

        except (OSError, ValueError) as err:
            raise FetchFailed(
                redacted_url,
                str(err) or err.__class__.__name__,
                cause=err,
            ) from err

    def _read_response(
        self,
        reader: BinaryIO,
        endpoint: Endpoint,
    ) -> FetchResponse:
        redacted_url = endpoint.to_string(include_credentials=False)

        status_line = reader.readline(MAX_LINE)
        if not status_line:
            raise FetchFailed(redacted_url, "empty response")

        status_parts = status_line.split(None, 2)
        if len(status_parts) < 2 or not status_parts[0].startswith(b"HTTP/"):
            raise FetchFailed(redacted_url, f"malformed status line {status_line[:64]!r}")

        status = int(status_parts[1])
        status_message: str | None = None
        if len(status_parts) > 2:
            status_message = status_parts[2].strip().decode(errors="replace")

        headers = self._read_headers(reader, redacted_url)

        content_length = headers.get(b"content-length")
        transfer_encoding = headers.get(b"transfer-encoding", b"")

        # Without Content-Length or chunked framing the body runs until
        # the peer closes, which the Connection: close request guarantees.
        if content_length is not None:
            expected = int(content_length)
            body = reader.read(expected)

            if len(body) < expected:
                raise FetchFailed(
                    redacted_url,
                    f"truncated body ({len(body)} of {expected} bytes)",
                )

        elif b"chunked" in transfer_encoding.lower():
            body = self._read_chunked(reader, redacted_url)

        else:
            body = reader.read()

        return FetchResponse(
            url=URLMetadata(
                host=endpoint.host,
                path=endpoint.path,
                query=endpoint.query or None,
            ),
            status=status,
            status_message=status_message,
            headers=headers,
            content=self._decode_content(
                body,
                headers.get(b"content-encoding"),
                redacted_url,
            ),
        )

    def _read_headers(self, reader: BinaryIO, redacted_url: str) -> Dict[bytes, bytes]:
        headers: Dict[bytes, bytes] = {}

        for _ in range(MAX_HEADERS):
            line = reader.readline(MAX_LINE)
            if line in (b"\r\n", b"\n", b""):
                return headers

            key, separator, value = line.partition(b":")
            if separator:
                headers[key.strip().lower()] = value.strip()

        raise FetchFailed(redacted_url, f"more than {MAX_HEADERS} headers")

    def _read_chunked(self, reader: BinaryIO, redacted_url: str) -> bytes:
        body = bytearray()

        while True:
            size_line = reader.readline(MAX_LINE)
            if not size_line:
                raise FetchFailed(redacted_url, "connection closed inside chunked body")

            chunk_size = int(size_line.split(b";", 1)[0].strip(), 16)

            if not chunk_size:
                # skip trailers up to the final blank line
                while reader.readline(MAX_LINE) not in (b"\r\n", b"\n", b""):
                    pass

                return bytes(body)

            chunk = reader.read(chunk_size + 2)
            if len(chunk) < chunk_size + 2:
                raise FetchFailed(redacted_url, "truncated chunk")

            body.extend(chunk[:-2])

    def _decode_content(
        self,
        body: bytes,
        content_encoding: bytes | None,
        redacted_url: str,
    ) -> bytes:
        if not body or not content_encoding:
            return body

        encoding = content_encoding.strip().lower()

        try:
            if encoding == b"gzip":
                return gzip.decompress(body)

            if encoding == b"deflate":
                try:
                    return zlib.decompress(body)

                except zlib.error:
                    return zlib.decompress(body, -zlib.MAX_WBITS)

        except (OSError, EOFError, zlib.error) as err:
            raise FetchFailed(redacted_url, f"cannot decode {encoding.decode()} body", cause=err) from err

        return body

    def _to_redirect_endpoint(self, endpoint: Endpoint, location: str) -> Endpoint:
        try:
            redirect = Endpoint.parse(
                urljoin(
                    f"{endpoint.scheme}://{endpoint.host_and_port}{endpoint.target}",
                    location,
                )
            )

        except ValueError as err:
            raise FetchFailed(
                endpoint.to_string(include_credentials=False),
                f"invalid redirect location {location}",
                cause=err,
            ) from err

        if redirect.host == endpoint.host and redirect.port == endpoint.port:
            redirect.user = endpoint.user
            redirect.password = endpoint.password

        return redirect

    def _get_ssl_context(self) -> ssl.SSLContext:
        if self._ssl_context is None:
            self._ssl_context = ssl.create_default_context()

        return self._ssl_context
