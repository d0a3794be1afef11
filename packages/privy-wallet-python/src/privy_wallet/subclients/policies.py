"""Policy endpoints."""

from typing import Any

from ..keys import AuthorizationContext
from ..models import DeleteResponse, Policy, PolicyRule
from .base import SubClient


class PoliciesClient(SubClient):
    """Operations on ``/v1/policies``."""

    async def create(self, body: Any, idempotency_key: str | None = None) -> Policy:
        data = await self._request(
            "POST", "/v1/policies", "create_policy", body, idempotency_key=idempotency_key
        )
        return self._parse(Policy, data)

    async def get(self, policy_id: str) -> Policy:
        data = await self._request("GET", f"/v1/policies/{policy_id}", "get_policy")
        return self._parse(Policy, data)

    async def update(self, policy_id: str, ctx: AuthorizationContext, body: Any) -> Policy:
        data = await self._signed_request(
            "PATCH", f"/v1/policies/{policy_id}", "update_policy", ctx, body
        )
        return self._parse(Policy, data)

    async def delete(self, policy_id: str, ctx: AuthorizationContext) -> DeleteResponse:
        data = await self._signed_request(
            "DELETE", f"/v1/policies/{policy_id}", "delete_policy", ctx, send_body=False
        )
        return self._parse(DeleteResponse, data or {})

    async def create_rule(self, policy_id: str, ctx: AuthorizationContext, body: Any) -> PolicyRule:
        data = await self._signed_request(
            "POST", f"/v1/policies/{policy_id}/rules", "create_policy_rule", ctx, body
        )
        return self._parse(PolicyRule, data)

    async def get_rule(self, policy_id: str, rule_id: str) -> PolicyRule:
        data = await self._request(
            "GET", f"/v1/policies/{policy_id}/rules/{rule_id}", "get_policy_rule"
        )
        return self._parse(PolicyRule, data)

    async def update_rule(
        self, policy_id: str, rule_id: str, ctx: AuthorizationContext, body: Any
    ) -> PolicyRule:
        data = await self._signed_request(
            "PATCH",
            f"/v1/policies/{policy_id}/rules/{rule_id}",
            "update_policy_rule",
            ctx,
            body,
        )
        return self._parse(PolicyRule, data)

    async def delete_rule(
        self, policy_id: str, rule_id: str, ctx: AuthorizationContext
    ) -> DeleteResponse:
        data = await self._signed_request(
            "DELETE",
            f"/v1/policies/{policy_id}/rules/{rule_id}",
            "delete_policy_rule",
            ctx,
            send_body=False,
        )
        return self._parse(DeleteResponse, data or {})
