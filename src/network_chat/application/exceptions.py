from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    code = "app_error"

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundError(AppError):
    code = "not_found"


class ForbiddenError(AppError):
    code = "forbidden"


class ConflictError(AppError):
    code = "conflict"


class ValidationError(AppError):
    code = "validation_error"


class InvalidRequestError(ValidationError):
    """Malformed input, e.g. a request addressed to oneself."""

    code = "invalid_request"


class DuplicatePendingError(ConflictError):
    """A pending connection request already exists between the two users."""

    code = "duplicate_pending"


class InvalidTransitionError(ConflictError):
    """The operation is not allowed in the entity's current state."""

    code = "invalid_transition"


class AlreadyMemberError(ConflictError):
    code = "already_member"


class StaleWriteError(ConflictError):
    """Optimistic-concurrency check failed: the record changed since it was read."""

    code = "stale_write"


class StoreUnavailableError(AppError):
    """Persistence backend could not be reached. Safe for callers to retry."""

    code = "store_unavailable"
