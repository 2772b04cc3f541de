from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from mesos_watch.errors import MesosWatchError

from .endpoint import Endpoint
from .framework_record import FrameworkRecord


class ResolutionOutcome(Enum):
    LEADER = "leader"
    """The resolved endpoint is the leading master."""

    RETRYABLE = "retryable"
    """The endpoint is a standby; retry later against the same endpoint."""


@dataclass(slots=True)
class Resolution:
    outcome: ResolutionOutcome
    endpoint: Endpoint
    hops: int = 0
    frameworks: list[FrameworkRecord] = field(default_factory=list)
    reason: MesosWatchError | None = None

    @property
    def is_leader(self) -> bool:
        return self.outcome == ResolutionOutcome.LEADER

    @property
    def urls(self) -> list[str]:
        return [framework.url for framework in self.frameworks]
