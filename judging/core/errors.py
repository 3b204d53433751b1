"""Error Hierarchy — typed, categorized exceptions for every judging failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Client errors (400-level) are recoverable; storage errors (500-level) are critical
    - to_response() produces the REST envelope; message is always surfaced verbatim
    - Store connection failures carry a reason with its own human-readable message

Design Decisions:
    - Single hierarchy with JudgingError base: FastAPI global handler catches all (ADR: uniform error shape)
    - UnexpectedStorageError surfaces the driver message: acceptable for an event-scoped tool,
      the dashboard shows it in a banner (ADR: hackathon scope, not a hardened service)
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
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    CONFIGURATION = "configuration"
    SYNC = "sync"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    entity: str | None = None
    entity_id: str | None = None
    operation: str | None = None
    debug_info: dict[str, Any] | None = None


class JudgingError(Exception):
    """Base exception for all judging errors."""

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
                    "entity": self.context.entity,
                    "entity_id": self.context.entity_id,
                    "operation": self.context.operation,
                },
            }
        }


# ─── Client Errors (400-level) ──────────────────────────────────

class ValidationError(JudgingError):
    """Malformed identifier or payload."""
    def __init__(
        self, message: str, field: str | None = None,
        context: ErrorContext | None = None, code: str = "VALIDATION_ERROR",
    ):
        super().__init__(
            message, code, ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class InvalidIdentifierError(ValidationError):
    """External id cannot be converted to the storage key type."""
    def __init__(self, raw_id: str, context: ErrorContext | None = None):
        super().__init__(
            "Invalid ID format", "id", context, code="INVALID_IDENTIFIER",
        )
        self.raw_id = raw_id


class NotFoundError(JudgingError):
    """Update/delete target does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.entity = ctx.entity or resource_type
        ctx.entity_id = ctx.entity_id or resource_id
        super().__init__(
            f"{resource_type} not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class SyncHaltedError(JudgingError):
    """Viewer stopped synchronizing after repeated fetch failures."""
    def __init__(self, last_error: str | None, context: ErrorContext | None = None):
        super().__init__(
            f"Synchronization halted: {last_error or 'unknown error'}. Call retry() to resume.",
            "SYNC_HALTED", ErrorCategory.SYNC,
            ErrorSeverity.ERROR, context, 409,
        )


# ─── Storage Errors (500-level) ─────────────────────────────────

class StoreConnectionError(JudgingError):
    """Store unreachable — auth failure, timeout, unreachable host, or no URL."""

    MESSAGES = {
        "auth": "Database authentication failed. Please check credentials in DATABASE_URL.",
        "timeout": (
            "Database connection timed out. This may be a firewall or IP allow-list issue; "
            "make sure this server's address may reach the database."
        ),
        "unreachable": "Could not establish database connection.",
        "not_configured": "DATABASE_URL environment variable is not configured on the server.",
    }

    def __init__(self, reason: str = "unreachable", context: ErrorContext | None = None):
        super().__init__(
            self.MESSAGES.get(reason, self.MESSAGES["unreachable"]),
            "STORE_CONNECTION_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.reason = reason


class UnexpectedStorageError(JudgingError):
    """Any other storage failure; the underlying message is surfaced."""
    def __init__(self, message: str, operation: str = "unknown", context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.operation = ctx.operation or operation
        super().__init__(
            message, "STORAGE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, ctx, 500,
        )
        self.operation = operation


class ConfigurationError(JudgingError):
    """Unrecoverable configuration problem detected at startup."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONFIGURATION_ERROR", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, context, 500,
        )
