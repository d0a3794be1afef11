"""Canonical request formatting for authorization signatures.

The canonical form is the exact byte string every authorization key signs, so
it must be reproducible across SDKs. It follows RFC 8785 (JSON Canonicalization
Scheme): object keys sorted at every depth, array order preserved, no
insignificant whitespace, non-ASCII text emitted verbatim.

Example:
    >>> format_request_for_authorization_signature(
    ...     "your-privy-app-id",
    ...     Method.PATCH,
    ...     "https://api.privy.io/v1/wallets/clw4cc3a700b811p865d21b7b",
    ...     {"policy_ids": ["pol_123abc"]},
    ... )
    '{"body":{"policy_ids":["pol_123abc"]},"headers":{"privy-app-id":"your-privy-app-id"},...'
"""

from dataclasses import dataclass
from typing import Any

import rfc8785
from pydantic import BaseModel

from .types import (
    PRIVY_APP_ID_HEADER,
    PRIVY_IDEMPOTENCY_KEY_HEADER,
    ErrorCode,
    Method,
    PrivyError,
)

SIGNATURE_INPUT_VERSION = 1


def to_jsonable(body: Any) -> Any:
    """Convert a request body into plain JSON-compatible Python values."""
    if isinstance(body, BaseModel):
        return body.model_dump(mode="json", by_alias=True, exclude_none=True)
    return body


def canonical_json(value: Any) -> str:
    """Serialize ``value`` as RFC 8785 canonical JSON.

    Numbers use the ECMAScript rendering (``1.0`` -> ``1``, ``1e-7`` -> ``1e-7``)
    and integers must fit in an IEEE 754 double without loss.
    """
    try:
        return rfc8785.dumps(to_jsonable(value)).decode("utf-8")
    except (rfc8785.CanonicalizationError, TypeError, ValueError) as e:
        raise PrivyError(
            ErrorCode.SERIALIZATION,
            f"Request cannot be canonicalized: {e}",
            e,
        ) from e


@dataclass(frozen=True)
class WalletApiRequestSignatureInput:
    """The signed representation of a request. ``version`` is always 1."""

    method: Method
    url: str
    body: Any = None
    headers: dict[str, str] | None = None
    version: int = SIGNATURE_INPUT_VERSION

    def to_dict(self) -> dict[str, Any]:
        """Return the payload that gets canonicalized."""
        return {
            "version": self.version,
            "method": self.method.value,
            "url": self.url,
            "body": self.body,
            "headers": self.headers,
        }

    def canonicalize(self) -> str:
        """Canonicalize the request into its RFC 8785 string form."""
        return canonical_json(self.to_dict())


def build_signature_headers(app_id: str, idempotency_key: str | None = None) -> dict[str, str]:
    """Headers that are part of the signed payload."""
    headers = {PRIVY_APP_ID_HEADER: app_id}
    if idempotency_key is not None:
        headers[PRIVY_IDEMPOTENCY_KEY_HEADER] = idempotency_key
    return headers


def format_request_for_authorization_signature(
    app_id: str,
    method: str | Method,
    url: str,
    body: Any,
    idempotency_key: str | None = None,
) -> str:
    """Build the canonical request string for signing.

    Raises:
        PrivyError: ``UNSUPPORTED_METHOD`` for non-mutating verbs,
            ``SERIALIZATION`` if the body is not representable as JSON.
    """
    return WalletApiRequestSignatureInput(
        method=Method.parse(method),
        url=url,
        body=to_jsonable(body),
        headers=build_signature_headers(app_id, idempotency_key),
    ).canonicalize()
