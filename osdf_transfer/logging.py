"""
OSDF transfer client logging utilities.

Provides configurable logging for discovery, credential selection and
HTTP transfers. Bearer tokens are never written to log output in full.
"""

import logging
import re
from typing import Any

_client_logger = logging.getLogger("osdf_transfer")
_http_logger = logging.getLogger("osdf_transfer.http")

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)-24s - %(message)s"

# Patterns for sensitive data that should be masked
_SENSITIVE_PATTERNS = [
    # Authorization header values
    (re.compile(r"Bearer\s+[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE), "Bearer [REDACTED]"),
    # JWTs anywhere in free text
    (re.compile(r"eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]*"), "[JWT_REDACTED]"),
    # Secret/token patterns
    (
        re.compile(r"(access_token|token|secret|password)['\"]?\s*[:=]\s*['\"][^'\"]+['\"]", re.IGNORECASE),
        r"\1: [REDACTED]",
    ),
]

_TOKEN_PREVIEW_LENGTH = 4

_SENSITIVE_KEYS = {"authorization", "access_token", "token", "secret", "password"}


def parse_level(name: str | int) -> int:
    """
    Convert a log level name such as ``"warning"`` or ``"DEBUG"`` to its number.

    Raises:
        ValueError: If the name is not a known logging level
    """
    if isinstance(name, int):
        return name
    level = logging.getLevelName(name.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


def configure_logging(
    level: int | str = logging.WARNING,
    http_level: int | str | None = None,
    handler: logging.Handler | None = None,
    format_string: str | None = None,
) -> logging.Handler:
    """
    Configure client logging.

    Args:
        level: Default log level for all client loggers (default: WARNING)
        http_level: Log level for HTTP request/response logging (default: same as level)
        handler: Custom handler to use (default: StreamHandler to stderr)
        format_string: Custom format string

    Returns:
        The handler that was attached, so callers can detach it again.
    """
    if format_string is None:
        format_string = DEFAULT_FORMAT

    if handler is None:
        handler = logging.StreamHandler()

    handler.setFormatter(logging.Formatter(format_string))

    _client_logger.setLevel(parse_level(level))
    _client_logger.addHandler(handler)

    _http_logger.setLevel(parse_level(http_level if http_level is not None else level))

    return handler


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get a client logger.

    Args:
        name: Logger name suffix (e.g., "http", "director"). If None, returns the main logger.
    """
    if name is None:
        return _client_logger
    return logging.getLogger(f"osdf_transfer.{name}")


def mask_sensitive_data(text: str) -> str:
    """Replace bearer tokens and other secrets in ``text`` with placeholders."""
    result = text
    for pattern, replacement in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def truncate_token(token: str) -> str:
    """
    Truncate a token for safe logging.

    Shows only the last few characters, e.g. ``"...wxyz"``. Short tokens are
    fully redacted.
    """
    if len(token) <= _TOKEN_PREVIEW_LENGTH * 4:
        return "[TOKEN_REDACTED]"
    return f"...{token[-_TOKEN_PREVIEW_LENGTH:]}"


def safe_log_dict(data: dict[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """
    Create a copy of a dictionary with sensitive values masked.

    Args:
        data: Dictionary that may contain sensitive values (e.g. request headers)
        sensitive_keys: Keys to mask (default: authorization, access_token, token, secret, password)
    """
    if sensitive_keys is None:
        sensitive_keys = _SENSITIVE_KEYS

    result: dict[str, Any] = {}
    for key, value in data.items():
        key_lower = key.lower()
        if key_lower in sensitive_keys or any(sk in key_lower for sk in sensitive_keys):
            result[key] = "[REDACTED]"
        elif isinstance(value, dict):
            result[key] = safe_log_dict(value, sensitive_keys)
        elif isinstance(value, list):
            result[key] = [
                safe_log_dict(item, sensitive_keys) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            result[key] = value

    return result


def log_http_request(
    method: str,
    url: str,
    headers: dict[str, str] | None = None,
    attempt: int | None = None,
) -> None:
    """Log an HTTP request at DEBUG level with credentials masked."""
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"{method} {url}"]

    if attempt:
        log_parts.append(f"attempt={attempt + 1}")

    if headers:
        log_parts.append(f"headers={safe_log_dict(dict(headers))}")

    _http_logger.debug(" | ".join(log_parts))


def log_http_response(
    status_code: int,
    url: str,
    headers: dict[str, str] | None = None,
    elapsed_ms: float | None = None,
) -> None:
    """Log an HTTP response at DEBUG level with credentials masked."""
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"Response {status_code} from {url}"]

    if elapsed_ms is not None:
        log_parts.append(f"elapsed={elapsed_ms:.2f}ms")

    if headers:
        log_parts.append(f"headers={safe_log_dict(dict(headers))}")

    _http_logger.debug(" | ".join(log_parts))


__all__ = [
    "DEFAULT_FORMAT",
    "configure_logging",
    "get_logger",
    "parse_level",
    "mask_sensitive_data",
    "truncate_token",
    "safe_log_dict",
    "log_http_request",
    "log_http_response",
]
