from __future__ import annotations

from typing import Sequence

NEEDS_INPUT = "needs_input"
NOT_PERMITTED = "not_permitted"
NOT_FOUND = "not_found"
CONFIGURATION = "configuration"
CONFLICT = "conflict"


class DomainError(Exception):
    """Base exception for business rule violations.

    ``code`` is machine readable, ``category`` tells the caller whether more
    input would help (``needs_input``) or the action is simply refused.
    """

    default_code = "DOMAIN_ERROR"
    category = NOT_PERMITTED

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code

    def to_dict(self) -> dict:
        return {"message": self.message, "code": self.code, "category": self.category}


class ValidationError(DomainError):
    """Raised when input data is missing or malformed."""

    default_code = "VALIDATION_ERROR"
    category = NEEDS_INPUT

    def __init__(self, message: str, *, code: str | None = None, missing_fields: Sequence[str] = ()):
        super().__init__(message, code=code)
        self.missing_fields = list(missing_fields)

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.missing_fields:
            data["missing_fields"] = self.missing_fields
        return data


class BusinessRuleViolation(DomainError):
    """Raised when a request is well formed but a rule forbids it."""

    default_code = "RULE_VIOLATION"


class PayrollLockedError(BusinessRuleViolation):
    default_code = "PERIOD_LOCKED"


class PendingReviewBlockError(BusinessRuleViolation):
    default_code = "PENDING_REVIEW_RECORDS"

    def __init__(self, message: str, *, record_ids: Sequence[int]):
        super().__init__(message)
        self.record_ids = list(record_ids)
        self.count = len(self.record_ids)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(count=self.count, record_ids=self.record_ids)
        return data


class RateLimitExceeded(BusinessRuleViolation):
    default_code = "RATE_LIMITED"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    default_code = "FORBIDDEN"


class NotFoundError(DomainError):
    default_code = "NOT_FOUND"
    category = NOT_FOUND


class ConfigurationError(DomainError):
    """Configuration cannot be resolved; the operation must not guess."""

    default_code = "CONFIGURATION_ERROR"
    category = CONFIGURATION


class ConcurrentModificationError(DomainError):
    default_code = "CONCURRENT_MODIFICATION"
    category = CONFLICT
