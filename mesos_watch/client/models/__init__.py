from .endpoint import (
    Endpoint as Endpoint,
    ROSTER_PATH as ROSTER_PATH,
    TASKS_PATH as TASKS_PATH,
)
from .fetch_response import (
    FetchResponse as FetchResponse,
    URLMetadata as URLMetadata,
)
from .framework_record import FrameworkRecord as FrameworkRecord
from .resolution import (
    Resolution as Resolution,
    ResolutionOutcome as ResolutionOutcome,
)
