from __future__ import annotations

from typing import Any, Iterable

import orjson

from mesos_watch.client.models import (
    Endpoint,
    FrameworkRecord,
    Resolution,
    ResolutionOutcome,
)
from mesos_watch.client.sync_fetch import SyncHTTPFetch
from mesos_watch.errors import (
    LeaderUnreachable,
    MalformedResponse,
    MissingAdvertisement,
    StandbyNoDiscovery,
)
from mesos_watch.logging import (
    FrameworkDebug,
    FrameworkInfo,
    LoggerStream,
    ResolverDebug,
    ResolverError,
    ResolverInfo,
)

DEFAULT_FRAMEWORK_NAMES = frozenset({"marathon", "marathon-user"})


class LeaderResolver:
    """
    Finds the leading Mesos master by reading ``/master/state``.

    A master with registered frameworks is the leader. A standby master
    reports no frameworks and names the leader in its ``leader`` field;
    with autodiscovery enabled the resolver rebinds to that master and
    asks again, at most ``max_hops`` times.

    On a leader answer the tracked framework list is rebuilt from the
    response and swapped in whole. Every other outcome leaves it as it
    was.
    """

    def __init__(
        self,
        endpoint: Endpoint,
        fetch: SyncHTTPFetch,
        autodiscovery: bool = False,
        framework_names: Iterable[str] = DEFAULT_FRAMEWORK_NAMES,
        default_framework_port: int = 8080,
        max_hops: int = 10,
        logger: LoggerStream | None = None,
    ) -> None:
        self.autodiscovery = autodiscovery
        self.framework_names = frozenset(framework_names)
        self.default_framework_port = default_framework_port
        self.max_hops = max_hops

        self._endpoint = endpoint
        self._fetch = fetch
        self._frameworks: list[FrameworkRecord] = []
        self._logger = logger or LoggerStream(name="resolver")

    @property
    def endpoint(self) -> Endpoint:
        return self._endpoint

    @property
    def frameworks(self) -> list[FrameworkRecord]:
        return list(self._frameworks)

    @property
    def framework_urls(self) -> list[str]:
        return [framework.url for framework in self._frameworks]

    def resolve(self, endpoint: Endpoint | None = None) -> Resolution:
        if endpoint is not None:
            self._endpoint = endpoint

        hops = 0

        while True:
            current = self._endpoint

            self._logger.log(
                ResolverDebug(
                    message="Inspecting Mesos leader",
                    endpoint=str(current),
                    hops=hops,
                )
            )

            state = self._get_state(current)
            frameworks = self._get_frameworks(state, current)

            self._logger.log(
                ResolverDebug(
                    message=f"Found {len(frameworks)} Mesos frameworks",
                    endpoint=str(current),
                    hops=hops,
                )
            )

            if frameworks:
                self._frameworks = self._discover_framework_urls(frameworks)

                self._logger.log(
                    ResolverInfo(
                        message="Found Mesos master leader",
                        endpoint=str(current),
                        hops=hops,
                    )
                )

                return Resolution(
                    outcome=ResolutionOutcome.LEADER,
                    endpoint=current,
                    hops=hops,
                    frameworks=self.frameworks,
                )

            if self.autodiscovery is False:
                standby = StandbyNoDiscovery(str(current))

                self._logger.log(
                    ResolverInfo(
                        message=standby.message,
                        endpoint=str(current),
                        hops=hops,
                    )
                )

                return Resolution(
                    outcome=ResolutionOutcome.RETRYABLE,
                    endpoint=current,
                    hops=hops,
                    reason=standby,
                )

            candidate = self._get_leader_candidate(state, current)

            if candidate == current:
                self._give_up(
                    candidate,
                    hops,
                    "leader redirect points back at the current master",
                )

            if hops >= self.max_hops:
                self._give_up(
                    candidate,
                    hops,
                    f"more than {self.max_hops} leader redirects",
                )

            self._logger.log(
                ResolverInfo(
                    message=f"Detected Mesos master leader redirect: [{candidate}]",
                    endpoint=str(current),
                    hops=hops,
                )
            )

            self._endpoint = candidate
            hops += 1

    def get_state_frameworks(self) -> list[Any]:
        return self._get_frameworks(
            self._get_state(self._endpoint),
            self._endpoint,
        )

    def get_framework_url(self, framework: dict[str, Any]) -> str:
        webui_url = framework.get("webui_url")
        if isinstance(webui_url, str) and webui_url:
            return webui_url

        hostname = framework.get("hostname")
        if isinstance(hostname, str) and hostname:
            return f"http://{hostname}:{self.default_framework_port}"

        return ""

    def is_framework_active(self, framework: dict[str, Any]) -> bool:
        return framework.get("active") is True

    def is_watched_framework(self, name: str) -> bool:
        return name in self.framework_names

    def _give_up(self, candidate: Endpoint, hops: int, reason: str):
        unreachable = LeaderUnreachable(str(candidate), hops, reason)

        self._logger.log(
            ResolverError(
                message=unreachable.message,
                endpoint=str(candidate),
                hops=hops,
            )
        )

        raise unreachable

    def _get_state(self, endpoint: Endpoint) -> dict[str, Any]:
        response = self._fetch.get(endpoint)

        try:
            state = orjson.loads(response.content)

        except orjson.JSONDecodeError as err:
            raise MalformedResponse(
                f"Mesos master leader detection failed: Invalid JSON ({endpoint})",
                cause=err,
                endpoint=str(endpoint),
            ) from err

        if not isinstance(state, dict):
            raise MalformedResponse(
                f"Mesos master leader detection failed: state is not an object ({endpoint})",
                endpoint=str(endpoint),
            )

        return state

    def _get_frameworks(self, state: dict[str, Any], endpoint: Endpoint) -> list[Any]:
        frameworks = state.get("frameworks")
        if not isinstance(frameworks, list):
            raise MalformedResponse(
                "Unexpected condition while detecting Mesos master: frameworks entry not found.",
                endpoint=str(endpoint),
            )

        return frameworks

    def _get_leader_candidate(self, state: dict[str, Any], endpoint: Endpoint) -> Endpoint:
        leader = state.get("leader")
        if not isinstance(leader, str):
            raise MalformedResponse(
                f"Unexpected condition while detecting Mesos master: leader entry not found: [{endpoint}]",
                endpoint=str(endpoint),
            )

        _, separator, address = leader.partition("@")
        if not separator or not address:
            raise MalformedResponse(
                f"Unexpected leader entry format while detecting Mesos master ({leader}).",
                endpoint=str(endpoint),
                leader=leader,
            )

        try:
            return endpoint.roster_candidate(address)

        except ValueError as err:
            raise MalformedResponse(
                f"Unexpected leader entry format while detecting Mesos master ({leader}).",
                cause=err,
                endpoint=str(endpoint),
                leader=leader,
            ) from err

    def _discover_framework_urls(self, frameworks: list[Any]) -> list[FrameworkRecord]:
        tracked: list[FrameworkRecord] = []

        for framework in frameworks:
            if not isinstance(framework, dict):
                raise MalformedResponse(
                    "Unexpected condition while detecting Marathon framework: framework entry is not an object.",
                )

            framework_id = framework.get("id")
            if not isinstance(framework_id, str) or not framework_id:
                raise MalformedResponse(
                    "Unexpected condition while detecting Marathon framework: ID entry not found.",
                )

            name = framework.get("name")
            if not isinstance(name, str):
                name = ""

            framework_url = self.get_framework_url(framework)

            if self.is_framework_active(framework) is False:
                self._logger.log(
                    FrameworkDebug(
                        message=f"Mesos framework {name} ({framework_id}) deactivated.",
                        framework_id=framework_id,
                        framework_name=name,
                    )
                )

                tracked = [
                    record for record in tracked if record.url != framework_url
                ]

                continue

            if self.is_watched_framework(name) is False:
                self._logger.log(
                    FrameworkDebug(
                        message=f"Skipping non-Marathon framework {name} ({framework_id})",
                        framework_id=framework_id,
                        framework_name=name,
                    )
                )

                continue

            if not framework_url:
                raise MissingAdvertisement(name, framework_id)

            self._logger.log(
                FrameworkInfo(
                    message=f"Found Marathon framework {name} ({framework_id}) at [{framework_url}]",
                    framework_id=framework_id,
                    framework_name=name,
                    framework_url=framework_url,
                )
            )

            tracked.append(
                FrameworkRecord(
                    framework_id=framework_id,
                    name=name,
                    active=True,
                    url=framework_url,
                )
            )

        return tracked
