"""Core type definitions for the Privy wallet SDK."""

from enum import Enum, IntEnum
from typing import Any


PRIVY_APP_ID_HEADER = "privy-app-id"
PRIVY_IDEMPOTENCY_KEY_HEADER = "privy-idempotency-key"
PRIVY_AUTHORIZATION_HEADER = "privy-authorization-signature"
PRIVY_CLIENT_HEADER = "privy-client"

DEFAULT_BASE_URL = "https://api.privy.io"


class Method(str, Enum):
    """HTTP methods that carry an authorization signature.

    ``GET`` is absent: read requests are never signed.
    """

    PATCH = "PATCH"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, value: "str | Method") -> "Method":
        """Resolve a verb, rejecting anything that is not signable."""
        if isinstance(value, Method):
            return value
        try:
            return cls(value.upper())
        except ValueError as e:
            raise PrivyError(
                ErrorCode.UNSUPPORTED_METHOD,
                f"{value} requests are not signed",
                e,
            ) from e


class ErrorCode(IntEnum):
    """Error codes for SDK operations."""

    INVALID_CONFIG = 1
    INVALID_FORMAT = 2
    HPKE_DECRYPTION = 3
    KEY_EXCHANGE_FAILED = 4
    UNSUPPORTED_ENCRYPTION = 5
    SERIALIZATION = 6
    UNSUPPORTED_METHOD = 7
    IO_ERROR = 8
    API_ERROR = 9
    NETWORK_ERROR = 10
    UNKNOWN = 99


class PrivyError(Exception):
    """Base exception for the Privy wallet SDK."""

    def __init__(self, code: ErrorCode, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.code = code
        self.cause = cause


class PrivyApiError(PrivyError):
    """The Privy API answered with a non-success status."""

    def __init__(self, status_code: int, body: Any, message: str | None = None):
        super().__init__(
            ErrorCode.API_ERROR,
            message or f"Privy API returned HTTP {status_code}",
        )
        self.status_code = status_code
        self.body = body
