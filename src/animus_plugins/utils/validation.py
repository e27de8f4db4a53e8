"""Input validation utilities.

Provides protection against:
- Path traversal through plugin ids used as directory names
- Registry credentials leaking into logs
"""

from __future__ import annotations

import re

# Characters that would let a single path segment escape its parent
PATH_SEPARATORS = frozenset("/\\")

# Segments that are never valid directory names for a plugin
RESERVED_SEGMENTS = frozenset({".", ".."})


def is_safe_path_segment(value: str) -> bool:
    """Check that ``value`` can be used verbatim as one directory name.

    Args:
        value: Candidate directory name

    Returns:
        True if the value is non-empty and cannot traverse out of its parent

    Example:
        >>> is_safe_path_segment("voice-call")
        True
        >>> is_safe_path_segment("../etc")
        False
    """
    if not value:
        return False
    if PATH_SEPARATORS & set(value):
        return False
    if "\x00" in value:
        return False
    return value not in RESERVED_SEGMENTS


def sanitize_log_message(message: str, sensitive_patterns: list[str] | None = None) -> str:
    """Sanitize a log message to remove sensitive data.

    Args:
        message: Message to sanitize
        sensitive_patterns: Additional patterns to redact

    Returns:
        Sanitized message with sensitive data redacted
    """
    result = message

    default_patterns = [
        (r"npm_[a-zA-Z0-9]{36}", "[REDACTED_NPM_TOKEN]"),  # npm granular tokens
        (r"(_authToken\s*=\s*)[^\s\"']+", r"\1[REDACTED]"),  # .npmrc auth entries
        (r"(_auth\s*=\s*)[^\s\"']+", r"\1[REDACTED]"),
        (r"ghp_[a-zA-Z0-9]{36}", "[REDACTED_GITHUB_TOKEN]"),  # GitHub PATs
        (r"(https?://)[^/\s:@]+:[^/\s@]+@", r"\1[REDACTED]@"),  # basic auth in URLs
        (r'password["\']?\s*[:=]\s*["\']?[^"\'\s]+', "password=[REDACTED]"),
        (r'token["\']?\s*[:=]\s*["\']?[^"\'\s]+', "token=[REDACTED]"),
    ]

    for pattern, replacement in default_patterns:
        result = re.sub(pattern, replacement, result, flags=re.IGNORECASE)

    if sensitive_patterns:
        for pattern in sensitive_patterns:
            result = re.sub(pattern, "[REDACTED]", result, flags=re.IGNORECASE)

    return result
