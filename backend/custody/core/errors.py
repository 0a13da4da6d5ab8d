"""Error Hierarchy — typed, categorized exceptions for all custody failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Precondition errors (4xx) leave ledger state unchanged and are never retried
    - to_response() produces the REST envelope; no internal details leaked

Design Decisions:
    - Single hierarchy with CustodyError base: FastAPI global handler catches all
    - Each precondition failure gets its own class so the API layer can map it
      to a distinct status without string matching
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    subscription_code: str | None = None
    user_id: str | None = None
    debug_info: dict[str, Any] | None = None


class CustodyError(Exception):
    """Base exception for all custody errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "subscription_code": self.context.subscription_code,
                    "user_id": self.context.user_id,
                },
            }
        }


# ─── Lifecycle Precondition Errors ──────────────────────────────

class DuplicateActiveSubscriptionError(CustodyError):
    """User already holds an active subscription for the item."""
    def __init__(self, user_id: str, item_id: int, context: ErrorContext | None = None):
        ctx = context or ErrorContext(user_id=user_id)
        super().__init__(
            f"User '{user_id}' already has an active subscription for item {item_id}",
            "DUPLICATE_ACTIVE_SUBSCRIPTION", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, ctx, 409,
        )
        self.user_id = user_id
        self.item_id = item_id


class AlreadyApprovedError(CustodyError):
    """Approval or rejection attempted on an already approved subscription."""
    def __init__(self, subscription_code: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext(subscription_code=subscription_code)
        super().__init__(
            f"Subscription '{subscription_code}' has already been approved",
            "ALREADY_APPROVED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, ctx, 403,
        )


class NotApprovedError(CustodyError):
    """Return attempted before the subscription was approved."""
    def __init__(self, subscription_code: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext(subscription_code=subscription_code)
        super().__init__(
            f"Subscription '{subscription_code}' has not been approved yet",
            "NOT_APPROVED", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, ctx, 409,
        )


class AlreadyReturnedError(CustodyError):
    """Return attempted twice."""
    def __init__(self, subscription_code: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext(subscription_code=subscription_code)
        super().__init__(
            f"Item for subscription '{subscription_code}' was already returned",
            "ALREADY_RETURNED", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, ctx, 409,
        )


class InvalidSubscriptionError(CustodyError):
    """Field combination does not match the tagged lifecycle state."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_SUBSCRIPTION", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class ResourceNotFoundError(CustodyError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


# ─── Access Errors ──────────────────────────────────────────────

class AuthenticationRequiredError(CustodyError):
    """No current user supplied by the auth layer."""
    def __init__(self, header: str, context: ErrorContext | None = None):
        super().__init__(
            f"Missing '{header}' header",
            "AUTHENTICATION_REQUIRED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class NotSubscriptionOwnerError(CustodyError):
    """Only the requester may return the item."""
    def __init__(
        self, subscription_code: str, user_id: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext(subscription_code=subscription_code, user_id=user_id)
        super().__init__(
            f"User '{user_id}' does not own subscription '{subscription_code}'",
            "NOT_SUBSCRIPTION_OWNER", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, ctx, 403,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(CustodyError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class NotificationDeliveryError(CustodyError):
    """Notification sender could not deliver. Logged by the event bus, never surfaced."""
    def __init__(
        self, recipient: str, reason: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Notification to '{recipient}' failed: {reason}",
            "NOTIFICATION_DELIVERY_FAILED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, context, 502,
        )
        self.recipient = recipient
