from __future__ import annotations

from urllib.parse import quote, unquote, urlsplit

ROSTER_PATH = "/master/state"
TASKS_PATH = "/master/tasks"


class Endpoint:
    __slots__ = (
        "scheme",
        "host",
        "port",
        "path",
        "query",
        "user",
        "password",
    )

    def __init__(
        self,
        scheme: str,
        host: str,
        port: int = 0,
        path: str = "",
        query: str = "",
        user: str = "",
        password: str = "",
    ) -> None:
        self.scheme = scheme
        self.host = host
        self.port = port
        self.path = path
        self.query = query
        self.user = user
        self.password = password

    @classmethod
    def parse(cls, url: str) -> Endpoint:
        parsed = urlsplit(url.strip())

        if parsed.scheme not in ("http", "https"):
            raise ValueError(f"Unsupported scheme in URL [{url}]")

        if not parsed.hostname:
            raise ValueError(f"No host in URL [{url}]")

        return cls(
            scheme=parsed.scheme,
            host=parsed.hostname,
            port=parsed.port or 0,
            path=parsed.path,
            query=parsed.query,
            user=unquote(parsed.username or ""),
            password=unquote(parsed.password or ""),
        )

    @property
    def is_ssl(self) -> bool:
        return self.scheme == "https"

    @property
    def is_roster(self) -> bool:
        return ROSTER_PATH in self.path

    @property
    def effective_port(self) -> int:
        if self.port:
            return self.port

        return 443 if self.is_ssl else 80

    @property
    def host_and_port(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        if self.port:
            return f"{host}:{self.port}"

        return host

    @property
    def credentials(self) -> str:
        if self.user and self.password:
            return f"{self.user}:{self.password}"

        return self.user

    @property
    def target(self) -> str:
        path = self.path or "/"
        if self.query:
            return f"{path}?{self.query}"

        return path

    def to_string(self, include_credentials: bool = True) -> str:
        userinfo = ""
        if self.user:
            if include_credentials is False:
                userinfo = f"{quote(self.user, safe='')}:***@"

            elif self.password:
                userinfo = f"{quote(self.user, safe='')}:{quote(self.password, safe='')}@"

            else:
                userinfo = f"{quote(self.user, safe='')}@"

        url = f"{self.scheme}://{userinfo}{self.host_and_port}{self.path}"
        if self.query:
            url = f"{url}?{self.query}"

        return url

    def with_path(self, path: str) -> Endpoint:
        return Endpoint(
            scheme=self.scheme,
            host=self.host,
            port=self.port,
            path=path,
            user=self.user,
            password=self.password,
        )

    def roster_candidate(self, host_and_port: str) -> Endpoint:
        candidate = Endpoint.parse(f"http://{host_and_port}{ROSTER_PATH}")
        candidate.user = self.user
        candidate.password = self.password

        return candidate

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Endpoint):
            return NotImplemented

        return self.to_string() == other.to_string()

    def __hash__(self) -> int:
        return hash(self.to_string())

    def __repr__(self) -> str:
        return f"Endpoint({self.to_string(include_credentials=False)!r})"

    def __str__(self) -> str:
        return self.to_string(include_credentials=False)
