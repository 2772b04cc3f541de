from typing import Dict

import msgspec
import orjson


class URLMetadata(msgspec.Struct):
    host: str
    path: str
    query: str | None = None


class FetchResponse(msgspec.Struct, kw_only=True):
    url: URLMetadata
    status: int
    status_message: str | None = None
    headers: Dict[bytes, bytes] = msgspec.field(default_factory=dict)
    content: bytes = b""
    redirects: int = 0

    @property
    def content_type(self):
        content_type = self.headers.get(b"content-type")
        if content_type:
            return content_type.decode()

    def json(self):
        if self.content:
            return orjson.loads(self.content)

        return {}

    def text(self):
        return self.content.decode(errors="replace")
