from __future__ import annotations

import ssl
from typing import Any

import orjson

from mesos_watch.discovery import LeaderResolver
from mesos_watch.env import Env, load_env
from mesos_watch.errors import (
    ClientInitError,
    ConnectionClosed,
    FetchFailed,
    WatchConnectionError,
)
from mesos_watch.framing import Consumer, Subscriber, TransferDecoder
from mesos_watch.logging import ClientDebug, ClientError, LoggerStream, LoggingConfig
from mesos_watch.watch import ConnectionState, WatchConnection

from .models import TASKS_PATH, Endpoint, FrameworkRecord, Resolution
from .request_builder import make_request
from .sync_fetch import SyncHTTPFetch

TASK_RUNNING = "TASK_RUNNING"


class MesosHTTPClient:
    """
    Talks to a Mesos master, or to a Marathon framework it advertises.

    Two connections are kept apart: one-shot blocking fetches for leader
    discovery and point lookups, and one persistent watch socket that
    the caller drives through ``get_socket()``, ``send_request()`` and
    ``on_data()``. Every decoded document reaches the subscribed
    consumer together with its group tag.
    """

    def __init__(
        self,
        url: str,
        discover: bool | None = None,
        timeout_ms: int | None = None,
        env: Env | None = None,
        logger: LoggerStream | None = None,
        ssl_context: ssl.SSLContext | None = None,
    ) -> None:
        if env is None:
            env = load_env(Env)

        if "MESOS_WATCH_LOG_LEVEL" in env.model_fields_set:
            LoggingConfig().update(log_level=env.MESOS_WATCH_LOG_LEVEL)

        try:
            endpoint = Endpoint.parse(url)

        except ValueError as err:
            raise ClientInitError(
                f"Invalid Mesos URL: {err}",
                cause=err,
            ) from err

        if endpoint.is_ssl and not (ssl.HAS_TLSv1_2 or ssl.HAS_TLSv1_3):
            raise ClientInitError(
                "HTTPS requested but TLS is not supported.",
                endpoint=str(endpoint),
            )

        if timeout_ms is None:
            timeout_ms = env.timeout_ms

        if timeout_ms <= 0:
            raise ClientInitError(
                f"Invalid timeout {timeout_ms}ms.",
                endpoint=str(endpoint),
            )

        if discover is None:
            discover = env.MESOS_WATCH_AUTODISCOVERY

        self.timeout_ms = timeout_ms
        self.user_agent = env.MESOS_WATCH_USER_AGENT

        self._logger = logger or LoggerStream(name="client")
        self._subscriber: Subscriber | None = None

        self._fetch = SyncHTTPFetch(
            timeout_ms,
            user_agent=env.MESOS_WATCH_USER_AGENT,
            max_redirects=env.MESOS_WATCH_MAX_FETCH_REDIRECTS,
            ssl_context=ssl_context,
            logger=logger,
        )

        self._resolver = LeaderResolver(
            endpoint,
            self._fetch,
            autodiscovery=discover,
            framework_names=env.framework_names,
            default_framework_port=env.MESOS_WATCH_DEFAULT_FRAMEWORK_PORT,
            max_hops=env.MESOS_WATCH_MAX_LEADER_HOPS,
            logger=logger,
        )

        self._decoder = TransferDecoder(logger=logger)
        self._watch = WatchConnection(
            endpoint,
            self._decoder,
            timeout_ms,
            keepalive_idle=env.keepalive_idle,
            keepalive_interval=env.keepalive_interval,
            ssl_context=ssl_context,
            logger=logger,
        )

    @property
    def endpoint(self) -> Endpoint:
        return self._resolver.endpoint

    @property
    def url(self) -> str:
        return str(self._resolver.endpoint)

    @property
    def is_discover(self) -> bool:
        return self._resolver.autodiscovery

    @property
    def is_connected(self) -> bool:
        return self._watch.connected

    @property
    def state(self) -> ConnectionState:
        return self._watch.state

    @property
    def frameworks(self) -> list[FrameworkRecord]:
        return self._resolver.frameworks

    @property
    def framework_urls(self) -> list[str]:
        return self._resolver.framework_urls

    @property
    def decoder(self) -> TransferDecoder:
        return self._decoder

    @property
    def subscriber(self) -> Subscriber | None:
        return self._subscriber

    def discover_leader(self) -> Resolution | None:
        if self.endpoint.is_roster is False:
            self._logger.log(
                ClientDebug(
                    message="Not a Mesos state endpoint: leader discovery skipped",
                    endpoint=self.url,
                )
            )

            return None

        resolution = self._resolver.resolve()

        if resolution.is_leader and resolution.endpoint != self._watch.endpoint:
            self._watch.close()
            self._watch.endpoint = resolution.endpoint

        return resolution

    def get_state_frameworks(self) -> list[Any]:
        return self._resolver.get_state_frameworks()

    def get_all_data(self, consumer: Consumer, group_tag: Any = None) -> bool:
        if group_tag is None and self._subscriber is not None:
            group_tag = self._subscriber.group_tag

        try:
            response = self._fetch.get(self.endpoint)

        except FetchFailed as err:
            self._logger.log(
                ClientError(
                    message=err.message,
                    endpoint=self.url,
                )
            )

            return False

        consumer(response.text(), group_tag)

        return True

    def get_task_labels(self, task_id: str) -> Any | None:
        tasks_url = self.endpoint.with_path(TASKS_PATH)

        try:
            tasks = orjson.loads(self._fetch.get(tasks_url).content).get("tasks")

        except FetchFailed as err:
            self._logger.log(
                ClientError(
                    message=err.message,
                    endpoint=self.url,
                )
            )

            return None

        except (orjson.JSONDecodeError, AttributeError) as err:
            self._logger.log(
                ClientError(
                    message=f"Error parsing tasks: {err}",
                    endpoint=self.url,
                )
            )

            return None

        if not isinstance(tasks, list):
            return None

        for task in tasks:
            if not isinstance(task, dict) or task.get("id") != task_id:
                continue

            if labels := self._get_running_labels(task):
                return labels

        return None

    def make_uri(self, path: str) -> str:
        return self.endpoint.with_path(path).to_string()

    def subscribe(self, consumer: Consumer, group_tag: Any = None):
        if self._subscriber is not None:
            raise ClientInitError(
                "A consumer is already subscribed to this client.",
                endpoint=self.url,
            )

        self._subscriber = Subscriber(consumer, group_tag)
        self._decoder.subscriber = self._subscriber

    def get_socket(self, timeout_ms: int | None = None) -> int:
        if self._watch.endpoint != self.endpoint:
            self._watch.close()
            self._watch.endpoint = self.endpoint

        self._watch.establish(timeout_ms=timeout_ms)

        return self._watch.fileno()

    def send_request(self):
        self._watch.send(
            make_request(self.endpoint, self.user_agent)
        )

    def on_data(self) -> bool:
        if self._subscriber is None:
            raise ClientInitError(
                "Cannot parse data (no consumer subscribed).",
                endpoint=self.url,
            )

        try:
            self._watch.poll_and_read()

        except (ConnectionClosed, WatchConnectionError):
            return False

        return True

    def on_error(self, message: str, disconnect: bool):
        self._logger.log(
            ClientError(
                message=message,
                endpoint=self.url,
            )
        )

        self._watch.close(
            ConnectionState.CLOSED if disconnect else ConnectionState.FAILED
        )

    def close(self):
        self._watch.close()

    def _get_running_labels(self, task: dict[str, Any]) -> Any | None:
        statuses = task.get("statuses")
        if not isinstance(statuses, list):
            return None

        latest_timestamp = 0.0
        latest_state: str | None = None

        # only the most recent status counts
        for status in statuses:
            if not isinstance(status, dict):
                continue

            timestamp = status.get("timestamp")
            if (
                isinstance(timestamp, (int, float))
                and not isinstance(timestamp, bool)
                and timestamp > latest_timestamp
            ):
                latest_timestamp = timestamp
                latest_state = status.get("state")

        if latest_state != TASK_RUNNING:
            return None

        return task.get("labels") or None

    def __enter__(self) -> MesosHTTPClient:
        return self

    def __exit__(self, *args: Any):
        self.close()

    def __repr__(self) -> str:
        return f"MesosHTTPClient({self.url!r}, state={self.state.name})"
