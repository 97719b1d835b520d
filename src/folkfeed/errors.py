"""Exception types shared by the aggregator, the viewer and the API."""


class FolkfeedError(Exception):
    """Base class for Folkfeed errors. Carries a short human-readable reason."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class FetchError(FolkfeedError):
    """Raised when a single feed cannot be retrieved or parsed."""


class PersistError(FolkfeedError):
    """Raised when the snapshot file cannot be written."""


class SnapshotLoadError(FolkfeedError):
    """Raised when a snapshot cannot be retrieved or decoded."""
