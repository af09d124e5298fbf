class DomainError(Exception):
    """Base exception for sync engine failures."""


class ValidationError(DomainError):
    """Raised when caller input is invalid."""


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""


class InvalidTransitionError(ValidationError):
    """Raised when a sync error is moved out of a terminal status."""


class SnapshotFormatError(DomainError):
    """Raised when a legacy snapshot cannot be read as a relational store.

    The whole snapshot is unusable; callers must not keep a partial result.
    """


class UpstreamError(DomainError):
    """Raised when the replica or the internal store fails mid-page."""


class SyncInProgressError(DomainError):
    """Raised when another full sync already holds the run guard."""
