"""Authorization signature generation."""

import base64
import logging
from dataclasses import dataclass
from typing import Any

from .canonical import format_request_for_authorization_signature
from .keys import AuthorizationContext
from .types import Method

logger = logging.getLogger(__name__)


def encode_signatures(signatures: list[bytes]) -> str:
    """Join DER signatures into a header value: base64 each, comma separated."""
    return ",".join(base64.b64encode(sig).decode("ascii") for sig in signatures)


async def generate_authorization_signatures(
    ctx: AuthorizationContext,
    app_id: str,
    method: str | Method,
    url: str,
    body: Any,
    idempotency_key: str | None = None,
) -> str:
    """Canonicalize a request and sign it with every key in ``ctx``.

    Returns the ``privy-authorization-signature`` header value, with one
    signature per key in push order. An empty context yields ``""``; callers
    then omit the header.
    """
    canonical = format_request_for_authorization_signature(
        app_id, method, url, body, idempotency_key
    )
    logger.debug("canonical request data: %s", canonical)

    if not ctx:
        return ""
    return encode_signatures(await ctx.sign(canonical.encode("utf-8")))


@dataclass(frozen=True)
class RequestFormatter:
    """Canonical request builder bound to an app id."""

    app_id: str

    def build_canonical_request(
        self,
        method: str | Method,
        url: str,
        body: Any,
        idempotency_key: str | None = None,
    ) -> str:
        return format_request_for_authorization_signature(
            self.app_id, method, url, body, idempotency_key
        )


@dataclass(frozen=True)
class RequestSigner:
    """Signature generator bound to an app id.

    Useful when a request is sent by something other than this SDK and only
    the header value is needed.
    """

    app_id: str

    async def sign_canonical_request(
        self,
        ctx: AuthorizationContext,
        method: str | Method,
        url: str,
        body: Any,
        idempotency_key: str | None = None,
    ) -> str:
        return await generate_authorization_signatures(
            ctx, self.app_id, method, url, body, idempotency_key
        )
