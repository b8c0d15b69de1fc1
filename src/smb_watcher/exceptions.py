"""Custom exceptions for the SMB share watcher package."""


class WatcherError(Exception):
    """Base exception for all watcher errors."""
    pass


class ConfigError(WatcherError):
    """Watch configuration is invalid or unsupported."""
    pass


class WatchStateError(WatcherError):
    """Operation is not allowed in the current subscription state."""
    pass


class ConnectError(WatcherError):
    """
    Authentication or share-open failure.

    The message is already translated into readable text; the
    underlying collaborator error is kept on ``original``.
    """
    def __init__(self, message: str, original: BaseException = None):
        super().__init__(message)
        self.original = original


class SubscriptionError(WatcherError):
    """The change-notification subscription failed or dropped."""
    def __init__(self, message: str, original: BaseException = None):
        super().__init__(message)
        self.original = original
