"""Exceptions raised by the follower."""


class FollowError(Exception):
    """
    Base exception for logfollow.
    All other exceptions should inherit from this.
    """

    def __init__(self, message: str, *, underlying: Exception | None = None):
        super().__init__(message)
        self.underlying = underlying

    def __str__(self) -> str:
        if self.underlying:
            return f"{self.args[0]} (caused by {self.underlying})"
        return self.args[0]


class OpenError(FollowError):
    """
    Raised when the followed path cannot be opened or stat'ed.
    """


class ConfigError(FollowError):
    """
    Raised when a Follower is constructed with invalid settings.
    """
