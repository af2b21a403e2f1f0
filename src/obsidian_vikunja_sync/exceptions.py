"""Centralized exception hierarchy for obsidian-vikunja-sync.

All custom exceptions inherit from ObsidianVikunjaSyncError, making it easy
to catch every sync-related error at a single boundary.

Exception Hierarchy:
    ObsidianVikunjaSyncError (base)
     ConfigurationError - Configuration loading/validation errors
        MissingDefaultProjectError - No default Vikunja project at create time
     VikunjaError - Vikunja-related errors
        VikunjaConnectError - Transport failures and API error responses
        RelationAlreadyExistsError - Duplicate task relation (idempotent outcome)
     VaultError - Local vault errors
        TaskFileError - Task note cannot be read, parsed or written
     SyncError - Synchronization operation errors

Usage Examples:
    # Per-record boundary in the push path
    try:
        await pipeline.push(path)
    except ObsidianVikunjaSyncError as e:
        logger.warning("push_failed", path=path, **e.to_dict())

    # Structured error codes
    from obsidian_vikunja_sync.error_codes import ErrorCode

    raise VikunjaConnectError(
        "Vikunja returned 500",
        error_code=ErrorCode.VKJ_HTTP_ERROR.value,
        context={"endpoint": "/tasks/7"},
    )
"""

from typing import Any

from .error_codes import ErrorCode, get_error_severity


class ObsidianVikunjaSyncError(Exception):
    """Base exception for all sync-related errors.

    Attributes:
        message: Human-readable error message
        suggestion: Optional suggestion for resolving the error
        error_code: Structured error code for machine-readable handling
        context: Additional context for debugging (e.g., paths, task ids)
    """

    def __init__(
        self,
        message: str,
        suggestion: str | None = None,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        """Initialize the exception.

        Args:
            message: Human-readable error message
            suggestion: Optional suggestion for resolving the error
            error_code: Structured error code (e.g., "VKJ-HTTP-001")
            context: Additional context for debugging
        """
        self.message = message
        self.suggestion = suggestion
        self.error_code = error_code
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with error code and suggestion if available."""
        parts = []
        if self.error_code:
            parts.append(f"[{self.error_code}] {self.message}")
        else:
            parts.append(self.message)
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    @property
    def severity(self) -> str:
        """Severity of the error code; uncoded errors count as errors."""
        try:
            return get_error_severity(ErrorCode(self.error_code))
        except ValueError:
            return "error"

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured logging.

        Returns:
            Dictionary with error details
        """
        return {
            "message": self.message,
            "error_code": self.error_code,
            "suggestion": self.suggestion,
            "context": self.context,
            "type": type(self).__name__,
            "severity": self.severity,
        }


# Configuration Errors


class ConfigurationError(ObsidianVikunjaSyncError):
    """Configuration loading or validation errors.

    Raised when:
    - Config file is missing or malformed
    - Required configuration values are missing
    - Configuration values fail validation
    """


class MissingDefaultProjectError(ConfigurationError):
    """No default Vikunja project is configured for task creation."""


# Vikunja Errors


class VikunjaError(ObsidianVikunjaSyncError):
    """Base class for Vikunja-related errors."""


class VikunjaConnectError(VikunjaError):
    """Vikunja communication errors.

    Raised when:
    - Cannot connect to the Vikunja API
    - The request times out
    - The API answers with a non-2xx status
    - The response body is not valid JSON
    """

    def __init__(
        self,
        message: str,
        suggestion: str | None = None,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
        status_code: int | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, suggestion, error_code, context)


class RelationAlreadyExistsError(VikunjaError):
    """The task relation being created already exists.

    This is the expected outcome of re-issuing a relation create and callers
    treat it as success.
    """


# Vault Errors


class VaultError(ObsidianVikunjaSyncError):
    """Base class for local vault errors."""


class TaskFileError(VaultError):
    """Task note errors.

    Raised when:
    - The file does not exist
    - The YAML frontmatter is malformed
    - The file cannot be written
    """


# Sync Errors


class SyncError(ObsidianVikunjaSyncError):
    """Synchronization operation errors."""
