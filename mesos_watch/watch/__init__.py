from .connection_state import ConnectionState as ConnectionState
from .watch_connection import WatchConnection as WatchConnection
