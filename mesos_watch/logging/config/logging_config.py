import contextvars
from typing import Literal

from mesos_watch.logging.models import LogLevel, LogLevelName

from .stream_type import StreamType

LogOutput = Literal["stdout", "stderr"]

_log_level = contextvars.ContextVar("_log_level", default=LogLevel.INFO)
_disabled_loggers: contextvars.ContextVar[frozenset[str]] = contextvars.ContextVar(
    "_disabled_loggers",
    default=frozenset(),
)
_log_output = contextvars.ContextVar("_log_output", default=StreamType.STDERR)
_log_directory: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "_log_directory",
    default=None,
)


class LoggingConfig:
    """
    Process-wide logging settings shared by every ``LoggerStream``.

    Values live in context variables, so a thread or task that copies
    the context can change them without touching its parent.
    """

    def update(
        self,
        log_directory: str | None = None,
        log_level: LogLevelName | None = None,
        log_output: LogOutput | None = None,
    ):
        if log_directory:
            _log_directory.set(log_directory)

        if log_level:
            _log_level.set(LogLevel.to_level(log_level))

        if log_output:
            _log_output.set(StreamType(log_output))

    def disable(self, logger_name: str):
        _disabled_loggers.set(_disabled_loggers.get() | {logger_name})

    def enable(self, logger_name: str):
        _disabled_loggers.set(_disabled_loggers.get() - {logger_name})

    def enabled(self, logger_name: str, log_level: LogLevel) -> bool:
        if logger_name in _disabled_loggers.get():
            return False

        return log_level.rank >= _log_level.get().rank

    @property
    def level(self) -> LogLevel:
        return _log_level.get()

    @property
    def output(self) -> StreamType:
        return _log_output.get()

    @property
    def directory(self) -> str | None:
        return _log_directory.get()
