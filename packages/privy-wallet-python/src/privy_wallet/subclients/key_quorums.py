"""Key quorum endpoints."""

from typing import Any

from ..keys import AuthorizationContext
from ..models import DeleteResponse, KeyQuorum
from .base import SubClient


class KeyQuorumsClient(SubClient):
    """Operations on ``/v1/key_quorums``.

    A key quorum groups authorization keys (and users) under an M-of-N
    ``authorization_threshold``. Privy counts the signatures; the client only
    supplies one per key in the context.
    """

    async def create(self, body: Any) -> KeyQuorum:
        data = await self._request("POST", "/v1/key_quorums", "create_key_quorum", body)
        return self._parse(KeyQuorum, data)

    async def get(self, key_quorum_id: str) -> KeyQuorum:
        data = await self._request("GET", f"/v1/key_quorums/{key_quorum_id}", "get_key_quorum")
        return self._parse(KeyQuorum, data)

    async def update(self, key_quorum_id: str, ctx: AuthorizationContext, body: Any) -> KeyQuorum:
        data = await self._signed_request(
            "PATCH", f"/v1/key_quorums/{key_quorum_id}", "update_key_quorum", ctx, body
        )
        return self._parse(KeyQuorum, data)

    async def delete(self, key_quorum_id: str, ctx: AuthorizationContext) -> DeleteResponse:
        data = await self._signed_request(
            "DELETE",
            f"/v1/key_quorums/{key_quorum_id}",
            "delete_key_quorum",
            ctx,
            send_body=False,
        )
        return self._parse(DeleteResponse, data or {})
