"""Error Hierarchy: typed, categorized exceptions for every feed failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Client errors (400-level) abort before persistence; storage errors (500-level) fail closed
    - to_response() produces the REST envelope; to_ws_event() produces the push envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy rooted at FeedError: one FastAPI handler catches all
    - ErrorContext as dataclass: observability data travels with the exception
"""

from dataclasses import dataclass, field
from enum import Enum
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
    RESOURCE_NOT_FOUND = "resource_not_found"
    STORAGE = "storage"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    post_id: str | None = None
    attachment_ref: str | None = None
    operation: str | None = None
    user_message: str | None = None


class FeedError(Exception):
    """Base exception for all feed errors."""

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
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "post_id": self.context.post_id,
                    "operation": self.context.operation,
                },
            }
        }

    def to_ws_event(self) -> dict:
        """Convert to push-channel error event."""
        return {
            "type": "error",
            "data": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "severity": self.severity.value,
                "recoverable": self.http_status < 500,
            },
        }


# ─── Client Errors (400-level) ──────────────────────────────────

class FeedValidationError(FeedError):
    """Submitted input cannot become a post."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class ResourceNotFoundError(FeedError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.post_id = ctx.post_id or resource_id
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )
        self.resource_id = resource_id


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StorageError(FeedError):
    """Reading or writing durable state failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.operation = operation
        ctx.user_message = ctx.user_message or "Storage is temporarily unavailable"
        super().__init__(
            f"Storage {operation} failed: {message}",
            "STORAGE_ERROR", ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL, ctx, 500,
        )
        self.operation = operation


class AttachmentCleanupError(FeedError):
    """Removing an attachment file failed. Logged by callers, never surfaced."""
    def __init__(self, message: str, attachment_ref: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.attachment_ref = attachment_ref
        ctx.operation = "attachment_cleanup"
        super().__init__(
            f"Attachment cleanup failed for '{attachment_ref}': {message}",
            "ATTACHMENT_CLEANUP_FAILED", ErrorCategory.STORAGE,
            ErrorSeverity.WARNING, ctx, 500,
        )
        self.attachment_ref = attachment_ref
