"""Storage-related exceptions."""


class StorageError(Exception):
    """Base exception for storage access failures."""

    pass


class MissingResourceError(StorageError):
    """Raised when a table or an entity storage handler does not exist."""

    def __init__(self, message: str, resource: str | None = None):
        self.resource = resource
        super().__init__(message)


class QueryFailureError(StorageError):
    """Raised when the underlying query mechanism cannot execute."""

    def __init__(self, message: str, resource: str | None = None):
        self.resource = resource
        super().__init__(message)


class SnapshotLoadError(Exception):
    """Raised when a site snapshot file cannot be loaded."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(message)


class SnapshotValidationError(Exception):
    """Raised when a site snapshot fails schema validation."""

    def __init__(self, message: str, errors: list[dict] | None = None):
        self.errors = errors or []
        super().__init__(message)
