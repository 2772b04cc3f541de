import base64

from mesos_watch.errors import ClientInitError

from .models import Endpoint

NEW_LINE = "\r\n"


def serialize_auth(credentials: str) -> str:
    encoded_credentials = base64.b64encode(
        credentials.encode(),
    ).decode()

    return f"Authorization: Basic {encoded_credentials}{NEW_LINE}"


def make_request(
    endpoint: Endpoint,
    user_agent: str,
    keep_alive: bool = True,
) -> bytes:
    if not endpoint.host:
        raise ClientInitError(
            "Cannot create request (no host).",
            endpoint=endpoint.to_string(include_credentials=False),
        )

    connection = "Keep-Alive" if keep_alive else "close"
    hostname = endpoint.host_and_port.encode("idna").decode()

    header_items = (
        f"GET {endpoint.target} HTTP/1.1{NEW_LINE}"
        f"Connection: {connection}{NEW_LINE}"
        f"User-Agent: {user_agent}{NEW_LINE}"
        f"Host: {hostname}{NEW_LINE}"
        f"Accept: */*{NEW_LINE}"
    )

    if keep_alive is False:
        header_items += f"Accept-Encoding: deflate, gzip{NEW_LINE}"

    if credentials := endpoint.credentials:
        header_items += serialize_auth(credentials)

    return f"{header_items}{NEW_LINE}".encode()
