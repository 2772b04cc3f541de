from .models import (
    Endpoint as Endpoint,
    FetchResponse as FetchResponse,
    FrameworkRecord as FrameworkRecord,
    Resolution as Resolution,
    ResolutionOutcome as ResolutionOutcome,
    URLMetadata as URLMetadata,
)
from .request_builder import make_request as make_request
from .sync_fetch import SyncHTTPFetch as SyncHTTPFetch
