"""Structured error codes for machine-readable error handling.

Error codes follow the format: {DOMAIN}-{CATEGORY}-{NUMBER}

Error Domains:
    CFG - Configuration errors
    VKJ - Vikunja API errors
    VLT - Vault (local store) errors
    SYN - Synchronization errors

Usage:
    from obsidian_vikunja_sync.error_codes import ErrorCode

    logger.warning(
        "vikunja_request_failed",
        error_code=ErrorCode.VKJ_CONNECTION_FAILED.value,
        endpoint="/tasks/7",
    )
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Structured error codes for machine-readable handling."""

    # =========================================================================
    # Configuration Errors (CFG-xxx-xxx)
    # =========================================================================
    CFG_INVALID = "CFG-INVALID-001"
    """Configuration failed validation."""

    CFG_MISSING_KEY = "CFG-MISSING-001"
    """A required configuration value is missing."""

    CFG_NO_DEFAULT_PROJECT = "CFG-MISSING-002"
    """No default Vikunja project configured for task creation."""

    # =========================================================================
    # Vikunja Errors (VKJ-xxx-xxx)
    # =========================================================================
    VKJ_CONNECTION_FAILED = "VKJ-CONN-001"
    """Cannot reach the Vikunja API (network error or timeout)."""

    VKJ_HTTP_ERROR = "VKJ-HTTP-001"
    """Vikunja answered with a non-2xx status."""

    VKJ_AUTH_FAILED = "VKJ-AUTH-001"
    """Vikunja rejected the API token."""

    VKJ_INVALID_RESPONSE = "VKJ-RESP-001"
    """Vikunja response could not be decoded."""

    VKJ_RELATION_EXISTS = "VKJ-REL-001"
    """The task relation already exists."""

    # =========================================================================
    # Vault Errors (VLT-xxx-xxx)
    # =========================================================================
    VLT_FILE_NOT_FOUND = "VLT-FILE-001"
    """Task note does not exist."""

    VLT_FRONTMATTER_INVALID = "VLT-YAML-001"
    """Task note frontmatter is malformed."""

    VLT_WRITE_FAILED = "VLT-WRITE-001"
    """Task note could not be written."""

    # =========================================================================
    # Sync Errors (SYN-xxx-xxx)
    # =========================================================================
    SYN_PUSH_FAILED = "SYN-PUSH-001"
    """Pushing a local task to Vikunja failed."""

    SYN_PULL_FAILED = "SYN-PULL-001"
    """Reconciling a remote task into the vault failed."""


def get_error_severity(code: ErrorCode) -> str:
    """Get the severity level for an error code.

    Args:
        code: The error code

    Returns:
        Severity level: "critical", "error", "warning"
    """
    critical_codes = {
        ErrorCode.CFG_INVALID,
        ErrorCode.CFG_MISSING_KEY,
        ErrorCode.VKJ_AUTH_FAILED,
    }
    warning_codes = {
        ErrorCode.CFG_NO_DEFAULT_PROJECT,
        ErrorCode.VKJ_RELATION_EXISTS,
    }

    if code in critical_codes:
        return "critical"
    if code in warning_codes:
        return "warning"
    return "error"
