from .config import LoggingConfig as LoggingConfig, StreamType as StreamType
from .models import (
    Entry as Entry,
    Log as Log,
    LogLevel as LogLevel,
    LogLevelName as LogLevelName,
)
from .streams import LoggerStream as LoggerStream
from .mesos_watch_logging_models import (
    ClientDebug as ClientDebug,
    ClientError as ClientError,
    DecoderDebug as DecoderDebug,
    DecoderError as DecoderError,
    FetchDebug as FetchDebug,
    FrameworkDebug as FrameworkDebug,
    FrameworkInfo as FrameworkInfo,
    ResolverDebug as ResolverDebug,
    ResolverError as ResolverError,
    ResolverInfo as ResolverInfo,
    WatchDebug as WatchDebug,
    WatchError as WatchError,
)
