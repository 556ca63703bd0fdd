"""logfollow - follow a growing log file across rotations and restarts."""

__version__ = "0.2.0"

from .errors import ConfigError, FollowError, OpenError
from .follower import FollowCallbacks, FollowContext, Follower, FollowState, follow
from .state import PositionRecord, StateStore

__all__ = [
    "ConfigError",
    "FollowCallbacks",
    "FollowContext",
    "FollowError",
    "FollowState",
    "Follower",
    "OpenError",
    "PositionRecord",
    "StateStore",
    "follow",
]
