from .models import Entry, LogLevel


class FetchDebug(Entry, kw_only=True):
    url: str
    level: LogLevel = LogLevel.DEBUG

class ResolverDebug(Entry, kw_only=True):
    endpoint: str
    hops: int
    level: LogLevel = LogLevel.DEBUG

class ResolverInfo(Entry, kw_only=True):
    endpoint: str
    hops: int
    level: LogLevel = LogLevel.INFO

class ResolverError(Entry, kw_only=True):
    endpoint: str
    hops: int
    level: LogLevel = LogLevel.ERROR

class FrameworkDebug(Entry, kw_only=True):
    framework_id: str
    framework_name: str
    level: LogLevel = LogLevel.DEBUG

class FrameworkInfo(Entry, kw_only=True):
    framework_id: str
    framework_name: str
    framework_url: str
    level: LogLevel = LogLevel.INFO

class DecoderDebug(Entry, kw_only=True):
    framing: str
    buffered: int
    level: LogLevel = LogLevel.DEBUG

class DecoderError(Entry, kw_only=True):
    framing: str
    buffered: int
    level: LogLevel = LogLevel.ERROR

class WatchDebug(Entry, kw_only=True):
    endpoint: str
    state: str
    level: LogLevel = LogLevel.DEBUG

class WatchError(Entry, kw_only=True):
    endpoint: str
    state: str
    level: LogLevel = LogLevel.ERROR

class ClientDebug(Entry, kw_only=True):
    endpoint: str
    level: LogLevel = LogLevel.DEBUG

class ClientError(Entry, kw_only=True):
    endpoint: str
    level: LogLevel = LogLevel.ERROR
