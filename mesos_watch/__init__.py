from .client.mesos_http_client import MesosHTTPClient as MesosHTTPClient
from .client.models import (
    Endpoint as Endpoint,
    FrameworkRecord as FrameworkRecord,
    Resolution as Resolution,
    ResolutionOutcome as ResolutionOutcome,
)
from .discovery import LeaderResolver as LeaderResolver
from .env import Env as Env, load_env as load_env
from .framing import Subscriber as Subscriber, TransferDecoder as TransferDecoder
from .watch import ConnectionState as ConnectionState, WatchConnection as WatchConnection
