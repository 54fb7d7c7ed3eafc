"""
Centralized Exceptions - error taxonomy for the L1 action pipeline.
Everything raised by the formatter, encoder, builders and signer derives
from HyperliquidError so callers can catch one type.
"""

import re
from typing import Dict, Any, Optional


class HyperliquidError(Exception):
    """Base exception for the client."""

    def __init__(self, message: str, error_code: str = "UNKNOWN", details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class InvalidNumber(HyperliquidError):
    """Non-finite or out-of-range numeric input."""

    def __init__(self, message: str = "Invalid number", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "INVALID_NUMBER", details)


class EncodingError(HyperliquidError):
    """Conflicting or malformed action structure."""

    def __init__(self, message: str = "Encoding failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "ENCODING_ERROR", details)


class UnknownAsset(HyperliquidError):
    """Coin symbol is not in the asset table."""

    def __init__(self, message: str = "Unknown asset", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "UNKNOWN_ASSET", details)


class PositionNotFound(HyperliquidError):
    """Market close requested for a coin with no open position."""

    def __init__(self, message: str = "Position not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "POSITION_NOT_FOUND", details)


class SigningError(HyperliquidError):
    """Invalid private key or hash/sign primitive failure."""

    def __init__(self, message: str = "Signing failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "SIGNING_ERROR", details)


class RemoteRejected(HyperliquidError):
    """Exchange answered with an error status or a per-order error."""

    def __init__(self, message: str = "Rejected by exchange", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "REMOTE_REJECTED", details)


class NetworkError(HyperliquidError):
    """Network connectivity error."""

    def __init__(self, message: str = "Network error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "NETWORK_ERROR", details)


class ConfigurationError(HyperliquidError):
    """Configuration error."""

    def __init__(self, message: str = "Configuration error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CONFIG_ERROR", details)


def with_index(error: HyperliquidError, what: str, index: int) -> HyperliquidError:
    """Re-create `error` with the failing batch index in message and details."""
    details = dict(error.details)
    details["index"] = index
    return type(error)(f"failed to build {what} {index}: {error.message}", details)


def sanitize_error_message(message: str) -> str:
    """Sanitize error messages to prevent information leakage."""
    sensitive_patterns = [
        "password", "secret", "private_key", "token", "private",
        "api_key", "access_token", "refresh_token"
    ]

    sanitized = message
    for pattern in sensitive_patterns:
        sanitized = re.sub(re.escape(pattern), "***", sanitized, flags=re.IGNORECASE)

    return sanitized


def create_structured_error_response(error: Exception) -> Dict[str, Any]:
    """Create structured error payload for logging."""
    if isinstance(error, HyperliquidError):
        return {
            "error_type": error.error_code,
            "message": sanitize_error_message(error.message),
            "details": error.details,
        }
    return {
        "error_type": "UNKNOWN_ERROR",
        "message": sanitize_error_message(str(error)),
        "details": {},
    }
