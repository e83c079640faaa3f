from __future__ import annotations

from typing import Any, Optional


class WikiprovError(Exception):
    """Base error carrying a stable code, a message and structured details."""

    code = "WIKIPROV_ERROR"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class MissingParameterError(WikiprovError):
    """A `{{key}}` marker had no value in the substitution parameters."""

    code = "MISSING_PARAMETER"

    def __init__(self, key: str, template: Optional[str] = None) -> None:
        super().__init__(f"No value supplied for placeholder '{key}'.", {"key": key, "template": template})
        self.key = key


class TransportError(WikiprovError):
    """Network failure or non-2xx response from a remote endpoint."""

    code = "TRANSPORT"

    def __init__(self, message: str, status: Optional[int] = None, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message, details)
        self.status = status


class DecodeError(WikiprovError):
    """Response body is not JSON or does not match the expected shape."""

    code = "DECODE"


class SchemaMismatchError(WikiprovError):
    """A result set lacks a variable the aggregation refers to by name."""

    code = "SCHEMA_MISMATCH"

    def __init__(self, variable: str, available=(), details: Optional[dict[str, Any]] = None) -> None:
        payload = {"variable": variable, "available": list(available)}
        payload.update(details or {})
        super().__init__(f"Result set has no variable '{variable}'.", payload)
        self.variable = variable
