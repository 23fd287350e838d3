"""
Cosmos DB client exceptions.

Custom exception classes raised by the client, mirroring the error codes
and messages returned by the Azure Cosmos DB REST API.

Author: Cosmoslite Team
Date: 2026-02-03
"""

import json
from typing import Any, Dict, Optional


class CosmosError(Exception):
    """Base exception for all client errors.

    Attributes:
        message: Error message
        error_code: Azure Cosmos DB error code
    """

    def __init__(self, message: str, error_code: str = "InternalServerError"):
        """Initialize client error.

        Args:
            message: Error message
            error_code: Azure error code
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class TransportError(CosmosError):
    """Network-level failure (connection refused, timeout, TLS...)."""

    def __init__(self, message: str, url: str = ""):
        super().__init__(message, "ServiceUnavailable")
        self.url = url


class RemoteError(CosmosError):
    """Non-2xx response from the service.

    Attributes:
        status_code: HTTP status code
        body: Raw response body
        code: ``code`` field of the JSON error body, if any
    """

    def __init__(
        self,
        status_code: int,
        body: str = "",
        code: Optional[str] = None,
        message: Optional[str] = None,
    ):
        """Initialize remote error.

        Args:
            status_code: HTTP status code
            body: Raw response body
            code: Service error code
            message: Service error message
        """
        self.status_code = status_code
        self.body = body
        self.code = code
        text = message or body or f"HTTP {status_code}"
        super().__init__(f"{status_code} {code or 'Error'}: {text}", code or "InternalServerError")
        self.message = message or ""

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500

    @classmethod
    def from_response(cls, status_code: int, body: str) -> "RemoteError":
        """Build the right error class from a failed response.

        Args:
            status_code: HTTP status code
            body: Raw response body, usually ``{"code": ..., "message": ...}``

        Returns:
            AuthenticationError for 401/403, RemoteError otherwise
        """
        payload = _decode_error_body(body)
        error_cls = AuthenticationError if status_code in (401, 403) else cls
        return error_cls(
            status_code,
            body,
            code=payload.get("code"),
            message=payload.get("message"),
        )


class AuthenticationError(RemoteError):
    """401/403 response: clock skew beyond tolerance or a bad master key."""


class ValidationError(CosmosError):
    """Invalid local input, raised before any network call."""

    def __init__(self, message: str):
        super().__init__(message, "BadRequest")


class InvalidTriggerError(ValidationError):
    """Unknown trigger operation or trigger type."""

    def __init__(self, message: str, value: str = ""):
        super().__init__(message)
        self.value = value


class PartitionKeyNotFoundError(ValidationError):
    """Partition key path does not resolve inside a document.

    Attributes:
        partition_key_path: Configured partition key path
        segment: First path segment missing from the document
    """

    def __init__(self, message: str, partition_key_path: str = "", segment: str = ""):
        super().__init__(message)
        self.partition_key_path = partition_key_path
        self.segment = segment


class DocumentError(CosmosError):
    """2xx response whose body nonetheless reports ``{code, message}``."""

    def __init__(self, code: str, message: str):
        super().__init__(f"{code} : {message}", code)
        self.code = code


def _decode_error_body(body: str) -> Dict[str, Any]:
    try:
        payload = json.loads(body) if body else {}
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}
