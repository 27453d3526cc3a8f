"""Error sanitization utilities to prevent information leakage."""

import re

# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    r"root[_\s]?password[:=\s]+([^\s,;\)]+)",
    r"mysql[_\s]?password[:=\s]+([^\s,;\)]+)",
    r"bearer\s+([A-Za-z0-9\-_\.=]+)",
    r"authorization[:\s]+([^\s,;\)]+)",
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "password",
    "secret",
    "credentials",
    "token",
}


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message

    # Replace sensitive patterns
    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(pattern, "[REDACTED]", sanitized, flags=re.IGNORECASE)

    # Redact common sensitive field names
    for field in SENSITIVE_FIELDS:
        # Replace field: value patterns
        sanitized = re.sub(
            rf"\b{field}[:=]\s*([^\s,;\)]+)",
            f"{field}: [REDACTED]",
            sanitized,
            flags=re.IGNORECASE,
        )

    return sanitized


def sanitize_exception(error: Exception) -> str:
    """Sanitize exception message.

    Args:
        error: Exception object

    Returns:
        Sanitized error message
    """
    return sanitize_error_message(str(error))
