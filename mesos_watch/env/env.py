from __future__ import annotations

from typing import Callable, Dict, Union

from pydantic import BaseModel, StrictBool, StrictInt, StrictStr, field_validator

from .time_parser import TimeParser

PrimaryType = Union[str, int, float, bytes, bool]


def _to_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Env(BaseModel):
    MESOS_WATCH_REQUEST_TIMEOUT: StrictStr = "5s"
    MESOS_WATCH_AUTODISCOVERY: StrictBool = False
    MESOS_WATCH_MAX_LEADER_HOPS: StrictInt = 10
    MESOS_WATCH_MAX_FETCH_REDIRECTS: StrictInt = 3
    MESOS_WATCH_KEEPALIVE_IDLE: StrictStr = "300s"
    MESOS_WATCH_KEEPALIVE_INTERVAL: StrictStr = "10s"
    MESOS_WATCH_USER_AGENT: StrictStr = "mesos-watch"
    MESOS_WATCH_FRAMEWORK_NAMES: StrictStr = "marathon,marathon-user"
    MESOS_WATCH_DEFAULT_FRAMEWORK_PORT: StrictInt = 8080
    MESOS_WATCH_LOG_LEVEL: StrictStr = "info"

    @field_validator("MESOS_WATCH_KEEPALIVE_IDLE", "MESOS_WATCH_KEEPALIVE_INTERVAL")
    @classmethod
    def validate_keepalive(cls, val: str):
        # TCP keep-alive options take whole seconds
        if TimeParser().parse(val) < 1:
            raise ValueError(f"keep-alive of {val} is below 1s")

        return val

    @classmethod
    def types_map(cls) -> Dict[str, Callable[[str], PrimaryType]]:
        return {
            "MESOS_WATCH_REQUEST_TIMEOUT": str,
            "MESOS_WATCH_AUTODISCOVERY": _to_bool,
            "MESOS_WATCH_MAX_LEADER_HOPS": int,
            "MESOS_WATCH_MAX_FETCH_REDIRECTS": int,
            "MESOS_WATCH_KEEPALIVE_IDLE": str,
            "MESOS_WATCH_KEEPALIVE_INTERVAL": str,
            "MESOS_WATCH_USER_AGENT": str,
            "MESOS_WATCH_FRAMEWORK_NAMES": str,
            "MESOS_WATCH_DEFAULT_FRAMEWORK_PORT": int,
            "MESOS_WATCH_LOG_LEVEL": str,
        }

    @property
    def timeout_ms(self) -> int:
        return TimeParser().parse_ms(self.MESOS_WATCH_REQUEST_TIMEOUT)

    @property
    def keepalive_idle(self) -> int:
        return int(TimeParser().parse(self.MESOS_WATCH_KEEPALIVE_IDLE))

    @property
    def keepalive_interval(self) -> int:
        return int(TimeParser().parse(self.MESOS_WATCH_KEEPALIVE_INTERVAL))

    @property
    def framework_names(self) -> frozenset[str]:
        return frozenset(
            name.strip()
            for name in self.MESOS_WATCH_FRAMEWORK_NAMES.split(",")
            if name.strip()
        )
