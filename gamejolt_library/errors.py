"""Exceptions raised by the Game Jolt library backend."""
from typing import Optional


class GameJoltError(Exception):
    """Base class for all Game Jolt library errors"""


class FetchError(GameJoltError):
    """The site API could not be read, even after retrying."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class UserNotFoundError(GameJoltError):
    """The site API answered 404 for the configured user name."""

    def __init__(self, user_name: str):
        super().__init__(f"Game Jolt user '{user_name}' was not found")
        self.user_name = user_name


class SyncCancelled(GameJoltError):
    """Raised at a cancellation checkpoint once cancellation was requested."""

    def __init__(self, message: str = "Sync cancelled"):
        super().__init__(message)
