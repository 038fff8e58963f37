"""Application exception hierarchy.

All custom exceptions inherit from MemoryServerError.
Each exception has an error code for structured error handling.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error handling."""

    # General errors (1xxx)
    INTERNAL_ERROR = "MEM-1000"
    CONFIGURATION_ERROR = "MEM-1001"
    VALIDATION_ERROR = "MEM-1002"

    # Tool dispatch errors (2xxx)
    UNKNOWN_TOOL = "MEM-2000"

    # Embedding provider errors (3xxx)
    PROVIDER_ERROR = "MEM-3000"
    PROVIDER_EMPTY_RESPONSE = "MEM-3001"

    # Vector store errors (4xxx)
    STORE_ERROR = "MEM-4000"
    COLLECTION_SETUP_FAILED = "MEM-4001"


class MemoryServerError(Exception):
    """Base exception for all memory server errors.

    Attributes:
        message: Human-readable error message.
        code: Structured error code.
        details: Additional error context.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logs and error payloads."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
            }
        }


class ConfigurationError(MemoryServerError):
    """Configuration or environment error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


class ValidationError(MemoryServerError):
    """Tool argument validation error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details)


class UnknownToolError(MemoryServerError):
    """Requested tool is not in the catalogue."""

    def __init__(
        self,
        name: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            f"Unknown tool: {name}",
            ErrorCode.UNKNOWN_TOOL,
            {"tool": name, **(details or {})},
        )


class ProviderError(MemoryServerError):
    """Embedding provider error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.PROVIDER_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class StoreError(MemoryServerError):
    """Vector store operation error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.STORE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)
