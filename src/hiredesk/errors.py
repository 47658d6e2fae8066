from __future__ import annotations


class HiredeskError(Exception):
    """Base class for failures surfaced to callers of the account and token services."""

    code = "error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class ConflictError(HiredeskError):
    code = "conflict"


class NotFoundError(HiredeskError):
    code = "not_found"


class ForbiddenError(HiredeskError):
    code = "forbidden"


class UnauthorizedError(HiredeskError):
    code = "unauthorized"


class ValidationError(HiredeskError):
    code = "invalid"


class TokenNotFoundError(NotFoundError):
    pass


class TokenExpiredError(HiredeskError):
    code = "expired"


class TokenAlreadyUsedError(HiredeskError):
    code = "already_used"


class TransientStorageError(HiredeskError):
    """Storage timed out or dropped the connection; the caller may retry."""

    code = "transient"


class FatalMigrationError(HiredeskError):
    code = "migration_failed"

    def __init__(self, filename: str, statement_index: int, reason: str) -> None:
        super().__init__(f"{filename} statement #{statement_index}: {reason}")
        self.filename = filename
        self.statement_index = statement_index
        self.reason = reason
