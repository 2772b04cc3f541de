from __future__ import annotations

from enum import Enum
from typing import Literal

LogLevelName = Literal["debug", "info", "error"]


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    ERROR = "ERROR"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @classmethod
    def to_level(cls, level_name: LogLevelName | str) -> LogLevel:
        """Unknown names fall back to INFO."""
        return cls.__members__.get(level_name.strip().upper(), cls.INFO)


_RANKS = {level: rank for rank, level in enumerate(LogLevel)}
