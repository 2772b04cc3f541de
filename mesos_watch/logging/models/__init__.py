from .entry import Entry as Entry
from .log import Log as Log, utc_timestamp as utc_timestamp
from .log_level import LogLevel as LogLevel, LogLevelName as LogLevelName
