"""Error handling for the VNDB metadata provider.

This module provides:
- Exception classes for the provider's failure modes (network, upstream
  status, malformed body, not found, throttling, validation, configuration)
- User-friendly error messages with suggested actions
- A centralized error handling service that logs technical details
"""

import json
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

log = structlog.stdlib.get_logger()

BODY_PREVIEW_LENGTH = 200


class ErrorCategory(Enum):
    """Categories of errors for classification and handling."""
    NETWORK = "network"
    RATE_LIMIT = "rate_limit"
    UPSTREAM = "upstream"
    RESPONSE_FORMAT = "response_format"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    IMAGE = "image"
    UNEXPECTED = "unexpected"


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass(frozen=True)
class ErrorContext:
    """Context information for an error."""
    operation: str
    component: str
    details: dict[str, Any]


@dataclass(frozen=True)
class UserFriendlyError:
    """User-friendly error representation with suggested actions."""
    message: str
    category: ErrorCategory
    severity: ErrorSeverity
    suggested_actions: list[str]
    technical_details: str | None = None
    recoverable: bool = True


class AppError(Exception):
    """Base exception class for provider errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNEXPECTED,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        suggested_actions: list[str] | None = None,
        technical_details: str | None = None,
        recoverable: bool = True,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.suggested_actions = suggested_actions or []
        self.technical_details = technical_details
        self.recoverable = recoverable
        self.context = context

    def to_user_friendly(self) -> UserFriendlyError:
        """Convert to user-friendly error representation."""
        return UserFriendlyError(
            message=self.message,
            category=self.category,
            severity=self.severity,
            suggested_actions=self.suggested_actions,
            technical_details=self.technical_details,
            recoverable=self.recoverable,
        )


class NetworkError(AppError):
    """Transport-level failure: connection refused, timeout, DNS."""

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        url: str | None = None,
    ) -> None:
        technical_details = None
        if original_error:
            technical_details = f"{type(original_error).__name__}: {str(original_error)}"
        if url:
            technical_details = f"URL: {url}" + (f"\n{technical_details}" if technical_details else "")

        super().__init__(
            message=message,
            category=ErrorCategory.NETWORK,
            severity=ErrorSeverity.ERROR,
            suggested_actions=[
                "Check your internet connection",
                "Verify that api.vndb.org is reachable",
                "Try again in a few moments",
            ],
            technical_details=technical_details,
            recoverable=True,
        )
        self.original_error = original_error
        self.url = url


class RateLimitedError(AppError):
    """VNDB kept throttling after the configured number of attempts.

    Only raised when a retry cap is configured; by default throttled
    requests are retried until they succeed.
    """

    def __init__(self, message: str, attempts: int, url: str | None = None) -> None:
        technical_details = f"Attempts: {attempts}"
        if url:
            technical_details = f"URL: {url}\n{technical_details}"

        super().__init__(
            message=message,
            category=ErrorCategory.RATE_LIMIT,
            severity=ErrorSeverity.WARNING,
            suggested_actions=[
                "Wait a few minutes before retrying",
                "Raise max_attempts or remove the limit in settings",
            ],
            technical_details=technical_details,
            recoverable=True,
        )
        self.attempts = attempts
        self.url = url


class UpstreamError(AppError):
    """VNDB answered with a non-success status other than 429."""

    def __init__(self, status_code: int, body: str = "", url: str | None = None) -> None:
        preview = body[:BODY_PREVIEW_LENGTH]
        suggested_actions = ["Try again later"]
        if 400 <= status_code < 500:
            suggested_actions = [
                "Check the query or id for typos",
                "The VNDB API may have changed its filters or fields",
            ]
        elif status_code >= 500:
            suggested_actions = [
                "VNDB is experiencing issues",
                "Try again later",
            ]

        technical_details = f"Status: {status_code}"
        if url:
            technical_details += f"\nURL: {url}"
        if preview:
            technical_details += f"\nResponse: {preview}"

        super().__init__(
            message=f"VNDB API returned error status {status_code}: {preview}",
            category=ErrorCategory.UPSTREAM,
            severity=ErrorSeverity.ERROR,
            suggested_actions=suggested_actions,
            technical_details=technical_details,
            recoverable=status_code >= 500,
        )
        self.status_code = status_code
        self.body = preview
        self.url = url


class MalformedResponseError(AppError):
    """The response passed status checks but its body is not valid JSON."""

    def __init__(self, message: str, original_error: Exception | None = None, body: str = "") -> None:
        technical_details = None
        if original_error:
            technical_details = f"{type(original_error).__name__}: {str(original_error)}"
        if body:
            technical_details = (technical_details or "") + f"\nResponse: {body[:BODY_PREVIEW_LENGTH]}"

        super().__init__(
            message=message,
            category=ErrorCategory.RESPONSE_FORMAT,
            severity=ErrorSeverity.ERROR,
            suggested_actions=[
                "Try again later",
                "The VNDB API may be returning an unexpected format",
            ],
            technical_details=technical_details,
            recoverable=True,
        )
        self.original_error = original_error


class NotFoundError(AppError):
    """No visual novel exists for the requested id."""

    def __init__(self, provider_data_id: str) -> None:
        super().__init__(
            message=f"No visual novel found with ID: {provider_data_id}",
            category=ErrorCategory.NOT_FOUND,
            severity=ErrorSeverity.WARNING,
            suggested_actions=[
                "Check that the id is correct (for example v17)",
                "Search by title to find the right id",
            ],
            technical_details=f"ID: {provider_data_id}",
            recoverable=False,
        )
        self.provider_data_id = provider_data_id


class ValidationError(AppError):
    """Exception for invalid input or incomplete records."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        constraints: list[str] | None = None,
    ) -> None:
        suggested_actions = ["Review the input requirements"]
        if constraints:
            suggested_actions.extend([f"Ensure: {c}" for c in constraints])

        technical_details = None
        if field:
            technical_details = f"Field: {field}"
        if value is not None:
            value_str = str(value)[:100]
            technical_details = (technical_details or "") + f"\nValue: {value_str}"

        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.WARNING,
            suggested_actions=suggested_actions,
            technical_details=technical_details,
            recoverable=True,
        )
        self.field = field
        self.value = value
        self.constraints = constraints or []


class ConfigurationError(AppError):
    """Exception for configuration-related errors."""

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        current_value: Any = None,
        expected: str | None = None,
    ) -> None:
        suggested_actions = [
            "Check the configuration settings",
            "Reset to default values if needed",
        ]
        if expected:
            suggested_actions.append(f"Expected: {expected}")

        technical_details = None
        if setting:
            technical_details = f"Setting: {setting}"
        if current_value is not None:
            technical_details = (technical_details or "") + f"\nCurrent: {current_value}"

        super().__init__(
            message=message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.ERROR,
            suggested_actions=suggested_actions,
            technical_details=technical_details,
            recoverable=True,
        )
        self.setting = setting
        self.current_value = current_value
        self.expected = expected


class ImageDownloadError(AppError):
    """A cover or screenshot could not be stored."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        technical_details = None
        if url:
            technical_details = f"URL: {url}"
        if original_error:
            technical_details = (technical_details or "") + f"\nError: {type(original_error).__name__}: {str(original_error)}"

        super().__init__(
            message=message,
            category=ErrorCategory.IMAGE,
            severity=ErrorSeverity.WARNING,
            suggested_actions=[
                "Check that the image directory is writable",
                "Try again later",
            ],
            technical_details=technical_details,
            recoverable=True,
        )
        self.url = url
        self.original_error = original_error


class ErrorHandlingService:
    """Centralized error handling service.

    Converts arbitrary exceptions into ``AppError`` instances, logs their
    technical details and keeps a bounded history of recent failures.
    """

    def __init__(self, max_history_size: int = 100) -> None:
        self._error_history: list[tuple[float, AppError]] = []
        self._max_history_size = max_history_size
        log.debug("Error handling service initialized")

    def handle_error(
        self,
        error: Exception,
        operation: str,
        component: str,
        context: dict[str, Any] | None = None,
    ) -> UserFriendlyError:
        """Handle an error and return a user-friendly representation.

        Args:
            error: The exception that occurred
            operation: The operation being performed
            component: The component where the error occurred
            context: Additional context information

        Returns:
            User-friendly error representation
        """
        app_error = self._convert_to_app_error(error, operation, component, context)

        self._log_error(app_error, operation, component, context)

        self._error_history.append((time.time(), app_error))
        if len(self._error_history) > self._max_history_size:
            self._error_history.pop(0)

        return app_error.to_user_friendly()

    def _convert_to_app_error(
        self,
        error: Exception,
        operation: str,
        component: str,
        context: dict[str, Any] | None,
    ) -> AppError:
        """Convert a standard exception to an AppError."""
        import httpx

        if isinstance(error, AppError):
            return error

        url = context.get("url") if context else None

        if isinstance(error, httpx.ConnectError):
            return NetworkError(
                message="Unable to connect to VNDB. Please check your internet connection.",
                original_error=error,
                url=url,
            )
        elif isinstance(error, httpx.TimeoutException):
            return NetworkError(
                message="The request to VNDB timed out.",
                original_error=error,
                url=url,
            )
        elif isinstance(error, httpx.HTTPStatusError):
            return UpstreamError(
                status_code=error.response.status_code,
                body=error.response.text,
                url=str(error.request.url),
            )
        elif isinstance(error, httpx.RequestError):
            return NetworkError(
                message="A network error occurred while contacting VNDB.",
                original_error=error,
                url=url,
            )

        # JSONDecodeError is a ValueError, so it must be checked first
        elif isinstance(error, json.JSONDecodeError):
            return MalformedResponseError(
                message="VNDB API returned invalid JSON response",
                original_error=error,
            )
        elif isinstance(error, ValueError):
            return ValidationError(
                message=str(error),
                field=context.get("field") if context else None,
                value=context.get("value") if context else None,
            )
        elif isinstance(error, TypeError):
            return ValidationError(
                message=f"Invalid data type: {str(error)}",
                field=context.get("field") if context else None,
            )

        return AppError(
            message="An unexpected error occurred. Please try again.",
            category=ErrorCategory.UNEXPECTED,
            severity=ErrorSeverity.ERROR,
            technical_details=f"{type(error).__name__}: {str(error)}",
            recoverable=True,
            context=ErrorContext(
                operation=operation,
                component=component,
                details=context or {},
            ),
        )

    def _log_error(
        self,
        error: AppError,
        operation: str,
        component: str,
        context: dict[str, Any] | None,
    ) -> None:
        """Log error with full technical details."""
        log_method = log.warning if error.severity == ErrorSeverity.WARNING else log.error

        log_method(
            "Error occurred",
            error_message=error.message,
            category=error.category.value,
            severity=error.severity.value,
            operation=operation,
            component=component,
            technical_details=error.technical_details,
            recoverable=error.recoverable,
            context=context,
        )

    def get_recent_errors(self, count: int = 10) -> list[AppError]:
        """Get recent errors from history."""
        recent = self._error_history[-count:] if self._error_history else []
        return [error for _, error in recent]

    def get_error_count_by_category(self) -> dict[ErrorCategory, int]:
        """Get count of errors by category."""
        counts: dict[ErrorCategory, int] = {}
        for _, error in self._error_history:
            counts[error.category] = counts.get(error.category, 0) + 1
        return counts

    def create_user_message(
        self,
        error: UserFriendlyError,
        include_suggestions: bool = True,
    ) -> str:
        """Create a formatted user message from an error.

        Args:
            error: The user-friendly error
            include_suggestions: Whether to include suggested actions

        Returns:
            Formatted message string
        """
        parts = [error.message]

        if include_suggestions and error.suggested_actions:
            parts.append("\nSuggested actions:")
            for action in error.suggested_actions[:3]:
                parts.append(f"  • {action}")

        return "\n".join(parts)


_error_service: ErrorHandlingService | None = None


def get_error_service() -> ErrorHandlingService:
    """Get the global error handling service instance."""
    global _error_service
    if _error_service is None:
        _error_service = ErrorHandlingService()
    return _error_service


def handle_error(
    error: Exception,
    operation: str,
    component: str,
    context: dict[str, Any] | None = None,
) -> UserFriendlyError:
    """Convenience function to handle errors using the global service."""
    return get_error_service().handle_error(error, operation, component, context)
