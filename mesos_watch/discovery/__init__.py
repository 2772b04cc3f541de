from .leader_resolver import (
    DEFAULT_FRAMEWORK_NAMES as DEFAULT_FRAMEWORK_NAMES,
    LeaderResolver as LeaderResolver,
)
