"""
Error UX & Messaging Module

Turns technical exceptions into user-facing messages with context and
recovery guidance, and into one-line entries for the log file.
"""

from typing import Dict, Optional, Tuple, Any
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
import sqlite3


# ============================================================
# Error Severity Levels
# ============================================================

class ErrorSeverity(Enum):
    """Error severity classification for presentation."""

    INFO = "info"           # Informational (no action needed)
    WARNING = "warning"     # Caution (optional action)
    ERROR = "error"         # Error (action required)
    CRITICAL = "critical"   # Critical (system-level issue)


# ============================================================
# Error Context
# ============================================================

@dataclass
class ErrorContext:
    """
    Structured error context for user-friendly messaging.

    Attributes:
        message: User-friendly error description
        severity: Error severity level
        technical_details: Technical error info (for logs/debugging)
        context: Additional context (record id, operation, data)
        recovery_steps: List of recovery actions user can take
        error_code: Optional error code for support/documentation
    """
    message: str
    severity: ErrorSeverity
    technical_details: str
    context: Dict[str, Any] = field(default_factory=dict)
    recovery_steps: list = field(default_factory=list)
    error_code: Optional[str] = None

    def format_for_display(self, include_technical: bool = False) -> str:
        """
        Format error for display.

        Args:
            include_technical: Include technical details in message
        """
        lines = [self.message]

        if self.context:
            lines.append("")
            lines.append("Details:")
            for key, value in self.context.items():
                if value is not None:
                    lines.append(f"  - {key}: {value}")

        if self.recovery_steps:
            lines.append("")
            lines.append("Suggested actions:")
            for i, step in enumerate(self.recovery_steps, 1):
                lines.append(f"  {i}. {step}")

        if include_technical and self.technical_details:
            lines.append("")
            lines.append("Technical details:")
            lines.append(f"  {self.technical_details}")

        if self.error_code:
            lines.append("")
            lines.append(f"Error code: {self.error_code}")

        return "\n".join(lines)

    def format_for_log(self) -> str:
        """Format error for structured logging."""
        context_str = ", ".join(f"{k}={v}" for k, v in self.context.items() if v is not None)
        return f"[{self.severity.value.upper()}] {self.message} | Context: {context_str} | Technical: {self.technical_details}"


# ============================================================
# Error Formatters (Transform technical → user-friendly)
# ============================================================

class ErrorFormatter:
    """
    Main error formatting utility.
    Transforms exceptions into user-friendly ErrorContext objects.
    """

    @staticmethod
    def format_repository_error(
        exc: Exception,
        operation: str,
        record_id: Optional[str] = None,
        additional_context: Optional[Dict[str, Any]] = None
    ) -> ErrorContext:
        """
        Format repository-level errors (from wine_sales.repositories).

        Args:
            exc: The exception raised
            operation: Operation that failed (e.g., "delete_delivery_location")
            record_id: Record involved (if applicable)
            additional_context: Additional context data
        """
        from wine_sales.repositories import (  # noqa: PLC0415
            NotFoundError,
            ForeignKeyError,
            BusinessRuleError,
            StorageError,
            RepositoryError,
        )

        context: Dict[str, Any] = {"Operation": operation}
        if record_id:
            context["Record"] = record_id
        if additional_context:
            context.update(additional_context)

        if isinstance(exc, NotFoundError):
            return ErrorContext(
                message=f"Record not found: {exc}",
                severity=ErrorSeverity.WARNING,
                technical_details=f"NotFoundError: {exc}",
                context=context,
                recovery_steps=[
                    "Check that the id is spelled correctly",
                    "Search the list of existing records",
                ],
                error_code="REPO_001"
            )

        elif isinstance(exc, ForeignKeyError):
            return ErrorContext(
                message=f"Record is still in use: {exc}",
                severity=ErrorSeverity.ERROR,
                technical_details=f"ForeignKeyError: {exc}",
                context=context,
                recovery_steps=[
                    "Remove or reassign the records that reference it first",
                    "Cancel the related orders instead of deleting them",
                ],
                error_code="REPO_002"
            )

        elif isinstance(exc, BusinessRuleError):
            return ErrorContext(
                message=f"Operation not allowed: {exc}",
                severity=ErrorSeverity.ERROR,
                technical_details=f"BusinessRuleError: {exc}",
                context=context,
                recovery_steps=[
                    "Check the current status of the record",
                ],
                error_code="REPO_003"
            )

        elif isinstance(exc, StorageError):
            return ErrorContext(
                message=f"Data could not be saved: {exc}",
                severity=ErrorSeverity.CRITICAL,
                technical_details=f"StorageError: {exc}",
                context=context,
                recovery_steps=[
                    "Check free disk space and write permissions on the data directory",
                    "See the log file for the underlying error",
                    "Retry the operation",
                ],
                error_code="REPO_004"
            )

        elif isinstance(exc, RepositoryError):
            return ErrorContext(
                message=f"Operation failed: {exc}",
                severity=ErrorSeverity.ERROR,
                technical_details=f"RepositoryError: {exc}",
                context=context,
                recovery_steps=["Check the data entered", "Retry the operation"],
                error_code="REPO_999"
            )

        return ErrorFormatter.format_generic_error(exc, operation, context)

    @staticmethod
    def format_validation_error(
        field_name: str,
        value: Any,
        constraint: str,
        expected: Optional[str] = None
    ) -> ErrorContext:
        """
        Format validation errors (command-line input, filters).

        Args:
            field_name: Field name that failed validation
            value: Value that was rejected
            constraint: Constraint that was violated
            expected: Expected value/format (optional)
        """
        message = f"Invalid value for '{field_name}'"
        if expected:
            message += f": {expected}"

        recovery_steps = [f"Check the format of '{field_name}'"]
        if "date" in constraint.lower():
            recovery_steps.append("Date format: YYYY-MM-DD (e.g. 2024-04-10)")

        return ErrorContext(
            message=message,
            severity=ErrorSeverity.WARNING,
            technical_details=f"ValidationError: {field_name}={value!r} violates {constraint}",
            context={"Field": field_name, "Value": value},
            recovery_steps=recovery_steps,
            error_code="VAL_001"
        )

    @staticmethod
    def format_storage_error(exc: Exception, operation: str, path: Optional[str] = None) -> ErrorContext:
        """Format OS and SQLite errors raised around the data directory."""
        context: Dict[str, Any] = {"Operation": operation}
        if path:
            context["Path"] = path

        if isinstance(exc, sqlite3.OperationalError) and "locked" in str(exc).lower():
            return ErrorContext(
                message="The database is locked by another process",
                severity=ErrorSeverity.ERROR,
                technical_details=f"OperationalError: {exc}",
                context=context,
                recovery_steps=[
                    "Close other instances of the application",
                    "Retry in a few seconds",
                ],
                error_code="DB_001"
            )

        if isinstance(exc, sqlite3.Error):
            return ErrorContext(
                message="Database error",
                severity=ErrorSeverity.CRITICAL,
                technical_details=f"{type(exc).__name__}: {exc}",
                context=context,
                recovery_steps=[
                    "Switch the storage backend to json",
                    "Restore app.db from a backup",
                ],
                error_code="DB_999"
            )

        if isinstance(exc, PermissionError):
            return ErrorContext(
                message="Permission denied on the data directory",
                severity=ErrorSeverity.ERROR,
                technical_details=f"PermissionError: {exc}",
                context=context,
                recovery_steps=[
                    "Check write permissions on the data directory",
                    "Set WINE_SALES_DATA_DIR to a writable directory",
                ],
                error_code="IO_001"
            )

        if isinstance(exc, OSError):
            return ErrorContext(
                message="File system error",
                severity=ErrorSeverity.ERROR,
                technical_details=f"{type(exc).__name__}: {exc}",
                context=context,
                recovery_steps=["Check free disk space", "Retry the operation"],
                error_code="IO_999"
            )

        return ErrorFormatter.format_generic_error(exc, operation, context)

    @staticmethod
    def format_generic_error(
        exc: Exception,
        operation: str,
        context: Optional[Dict[str, Any]] = None
    ) -> ErrorContext:
        """Fallback for unexpected exceptions."""
        return ErrorContext(
            message=f"Unexpected error during {operation}",
            severity=ErrorSeverity.ERROR,
            technical_details=f"{type(exc).__name__}: {exc}",
            context=context or {"Operation": operation},
            recovery_steps=[
                "Retry the operation",
                "If the error persists, send the log file to support",
            ],
            error_code="GEN_999"
        )


def format_error_for_display(
    exc: Exception,
    operation: str,
    include_technical: bool = False
) -> Tuple[str, str]:
    """
    Format any exception into a (title, message) pair.

    Repository errors, storage errors and everything else are routed to
    the matching formatter.
    """
    from wine_sales.repositories import RepositoryError  # noqa: PLC0415

    if isinstance(exc, RepositoryError):
        error_ctx = ErrorFormatter.format_repository_error(exc, operation)
    elif isinstance(exc, (OSError, sqlite3.Error)):
        error_ctx = ErrorFormatter.format_storage_error(exc, operation)
    else:
        error_ctx = ErrorFormatter.format_generic_error(exc, operation)

    title_map = {
        ErrorSeverity.INFO: "Information",
        ErrorSeverity.WARNING: "Warning",
        ErrorSeverity.ERROR: "Error",
        ErrorSeverity.CRITICAL: "Critical Error",
    }

    title = title_map.get(error_ctx.severity, "Error")
    message = error_ctx.format_for_display(include_technical=include_technical)

    return (title, message)


def validate_date_format(date_str: str) -> Tuple[bool, str]:
    """
    Validate date format (YYYY-MM-DD).

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not date_str or not date_str.strip():
        return (False, "Date is required")

    try:
        date.fromisoformat(date_str)
        return (True, "")
    except ValueError:
        return (False, "Invalid date format. Use YYYY-MM-DD (e.g. 2024-04-10)")
