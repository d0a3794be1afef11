"""httpx auth hook that attaches authorization signatures to outgoing requests."""

import json
import logging
from typing import AsyncGenerator, Generator

import httpx

from .keys import AuthorizationContext
from .signing import generate_authorization_signatures
from .types import (
    PRIVY_AUTHORIZATION_HEADER,
    PRIVY_IDEMPOTENCY_KEY_HEADER,
    Method,
)

logger = logging.getLogger(__name__)

OPERATION_ID = "operation_id"
# Set on requests whose signature was computed by the caller, including an
# intentionally empty one.
EXPLICITLY_SIGNED = "explicitly_signed"

# Operations that must never be signed. ``authenticate`` is how JWT keys are
# obtained in the first place, so signing it would recurse.
UNSIGNED_OPERATIONS = frozenset({"authenticate"})

SIGNED_METHODS = frozenset(m.value for m in Method)


class AuthorizationSignatureAuth(httpx.Auth):
    """Signs every eligible request with the keys in ``ctx``.

    A request is eligible when its verb is PATCH, POST, PUT or DELETE, its body
    is JSON, its ``operation_id`` extension is not in :data:`UNSIGNED_OPERATIONS`,
    it was not signed explicitly by a subclient call, and it does not already
    carry a signature header. The header is only set when at least one
    signature was produced.
    """

    requires_request_body = True

    def __init__(self, app_id: str, ctx: AuthorizationContext | None = None) -> None:
        self.app_id = app_id
        self.ctx = ctx if ctx is not None else AuthorizationContext()

    def sync_auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        raise RuntimeError("AuthorizationSignatureAuth only supports httpx.AsyncClient")

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        await request.aread()
        await self.sign_request(request)
        yield request

    def _signable_body(self, request: httpx.Request) -> tuple[bool, object]:
        operation = request.extensions.get(OPERATION_ID)
        if operation in UNSIGNED_OPERATIONS:
            logger.debug("Skipping signature for unsigned operation %s", operation)
            return False, None
        if request.extensions.get(EXPLICITLY_SIGNED):
            return False, None
        if request.method not in SIGNED_METHODS:
            return False, None
        if PRIVY_AUTHORIZATION_HEADER in request.headers:
            return False, None
        if not request.content:
            return False, None
        try:
            return True, json.loads(request.content)
        except ValueError:
            logger.debug("Request body is not JSON, sending unsigned")
            return False, None

    async def sign_request(self, request: httpx.Request) -> None:
        """Attach the signature header to ``request`` in place, if eligible."""
        eligible, body = self._signable_body(request)
        if not eligible or not self.ctx:
            return

        signature = await generate_authorization_signatures(
            self.ctx,
            self.app_id,
            request.method,
            str(request.url),
            body,
            request.headers.get(PRIVY_IDEMPOTENCY_KEY_HEADER),
        )
        if signature:
            request.headers[PRIVY_AUTHORIZATION_HEADER] = signature
