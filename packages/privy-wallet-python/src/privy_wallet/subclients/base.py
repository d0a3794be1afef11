"""Shared plumbing for the resource subclients."""

from typing import TYPE_CHECKING, Any, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..canonical import to_jsonable
from ..keys import AuthorizationContext
from ..signing import generate_authorization_signatures
from ..types import (
    PRIVY_AUTHORIZATION_HEADER,
    PRIVY_IDEMPOTENCY_KEY_HEADER,
    ErrorCode,
    PrivyError,
)

if TYPE_CHECKING:
    from ..client import PrivyClient

M = TypeVar("M", bound=BaseModel)


class SubClient:
    """Base for resource clients; holds the parent :class:`PrivyClient`."""

    def __init__(self, client: "PrivyClient") -> None:
        self._client = client

    @staticmethod
    def _parse(model: Type[M], data: Any) -> M:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise PrivyError(
                ErrorCode.INVALID_FORMAT,
                f"unexpected {model.__name__} payload",
                e,
            ) from e

    async def _request(
        self,
        method: str,
        path: str,
        operation_id: str,
        body: Any = None,
        params: dict[str, Any] | None = None,
        idempotency_key: str | None = None,
    ) -> Any:
        headers = {}
        if idempotency_key is not None:
            headers[PRIVY_IDEMPOTENCY_KEY_HEADER] = idempotency_key
        return await self._client.request(
            method,
            path,
            operation_id=operation_id,
            json=to_jsonable(body),
            params=params,
            headers=headers,
        )

    async def _signed_request(
        self,
        method: str,
        path: str,
        operation_id: str,
        ctx: AuthorizationContext,
        body: Any = None,
        idempotency_key: str | None = None,
        send_body: bool = True,
    ) -> Any:
        """Sign the exact URL and body being sent, then send.

        DELETE endpoints take no body but are signed over ``{}``; pass
        ``send_body=False`` for those.
        """
        payload = to_jsonable(body)
        signature = await generate_authorization_signatures(
            ctx,
            self._client.app_id,
            method,
            self._client.url(path),
            {} if payload is None else payload,
            idempotency_key,
        )

        headers = {}
        if signature:
            headers[PRIVY_AUTHORIZATION_HEADER] = signature
        if idempotency_key is not None:
            headers[PRIVY_IDEMPOTENCY_KEY_HEADER] = idempotency_key

        return await self._client.request(
            method,
            path,
            operation_id=operation_id,
            json=payload if send_body else None,
            headers=headers,
            explicitly_signed=True,
        )
