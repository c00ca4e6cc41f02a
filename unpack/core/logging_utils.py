"""
Logging utilities for safe logging of journal text.

Includes:
- PII redaction and truncation for journal excerpts
- Structured usage logging for model calls
"""
import json
import logging
import re
from typing import Optional


def preview(text: Optional[str], max_len: int = 60) -> str:
    """
    Single-line, truncated, redacted preview of journal text for log lines.

    Args:
        text: The text to preview
        max_len: Maximum length before truncation

    Returns:
        Sanitized preview safe for logging
    """
    if not text:
        return ""
    cleaned = sanitize_log_message(text)
    if len(cleaned) > max_len:
        return cleaned[:max_len] + "..."
    return cleaned


def redact_emails(text: str) -> str:
    """Replace email addresses with [EMAIL_REDACTED]."""
    email_pattern = r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b'
    return re.sub(email_pattern, '[EMAIL_REDACTED]', text)


def redact_phone_numbers(text: str) -> str:
    """Replace phone numbers with [PHONE_REDACTED]."""
    phone_patterns = [
        r'\+\d{1,3}[-.\s]?\(?\d{1,4}\)?[-.\s]?\d{1,4}[-.\s]?\d{1,9}',  # International
        r'\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}',  # US format
    ]

    result = text
    for pattern in phone_patterns:
        result = re.sub(pattern, '[PHONE_REDACTED]', result)

    return result


def sanitize_log_message(message: str) -> str:
    """
    Sanitize a log message by redacting PII.

    Args:
        message: The log message to sanitize

    Returns:
        Sanitized message safe for logging
    """
    message = redact_emails(message)
    message = redact_phone_numbers(message)
    # Collapse newlines and drop control characters
    message = re.sub(r'[\r\n\t]+', ' ', message)
    message = re.sub(r'[\x00-\x1F\x7F]', '', message)
    return message


# =============================================================================
# STRUCTURED USAGE LOGGING
# =============================================================================

_usage_logger = logging.getLogger("Unpack.Usage")


def log_llm_usage(
    model: str,
    input_tokens: int,
    output_tokens: int,
    duration_ms: Optional[int] = None,
    operation: str = "unknown",
) -> None:
    """
    Log a structured usage event for a model call.

    Produces a single JSON log line that log aggregation can parse.

    Args:
        model: Model identifier (e.g., 'gpt-4o')
        input_tokens: Number of prompt tokens
        output_tokens: Number of completion tokens
        duration_ms: Request duration in milliseconds
        operation: Pipeline stage that made the call ('extract', 'overview', ...)
    """
    event = {
        "event": "llm_usage",
        "model": model,
        "operation": operation,
        "input_tokens": input_tokens,
        "output_tokens": output_tokens,
        "total_tokens": input_tokens + output_tokens,
    }

    if duration_ms is not None:
        event["duration_ms"] = duration_ms

    _usage_logger.info("LLM_USAGE %s", json.dumps(event))
