"""Wallet endpoints."""

from typing import Any

from pydantic import ValidationError

from ..hpke import PrivyHpke
from ..keys import AuthorizationContext
from ..models import (
    AuthenticateBody,
    AuthenticateResponse,
    Wallet,
    WalletExportBody,
    WalletExportResponse,
    WalletList,
    parse_authenticate_response,
)
from ..types import ErrorCode, PrivyError
from .base import SubClient


class WalletsClient(SubClient):
    """Operations on ``/v1/wallets``."""

    async def create(self, body: Any, idempotency_key: str | None = None) -> Wallet:
        data = await self._request(
            "POST", "/v1/wallets", "create_wallet", body, idempotency_key=idempotency_key
        )
        return self._parse(Wallet, data)

    async def get(self, wallet_id: str) -> Wallet:
        data = await self._request("GET", f"/v1/wallets/{wallet_id}", "get_wallet")
        return self._parse(Wallet, data)

    async def list(
        self,
        cursor: str | None = None,
        limit: int | None = None,
        chain_type: str | None = None,
        user_id: str | None = None,
    ) -> WalletList:
        data = await self._request(
            "GET",
            "/v1/wallets",
            "get_wallets",
            params={"cursor": cursor, "limit": limit, "chain_type": chain_type, "user_id": user_id},
        )
        return self._parse(WalletList, data)

    async def get_balance(self, wallet_id: str, asset: str, chain: str) -> dict[str, Any]:
        return await self._request(
            "GET",
            f"/v1/wallets/{wallet_id}/balance",
            "get_wallet_balance",
            params={"asset": asset, "chain": chain},
        )

    async def get_transactions(
        self,
        wallet_id: str,
        chain: str,
        asset: str,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        return await self._request(
            "GET",
            f"/v1/wallets/{wallet_id}/transactions",
            "wallet_transactions",
            params={"chain": chain, "asset": asset, "cursor": cursor, "limit": limit},
        )

    async def update(self, wallet_id: str, ctx: AuthorizationContext, body: Any) -> Wallet:
        """Update a wallet's owner, policies or additional signers."""
        data = await self._signed_request(
            "PATCH", f"/v1/wallets/{wallet_id}", "update_wallet", ctx, body
        )
        return self._parse(Wallet, data)

    async def rpc(
        self,
        wallet_id: str,
        ctx: AuthorizationContext,
        body: Any,
        idempotency_key: str | None = None,
    ) -> dict[str, Any]:
        """Run a chain RPC method (sign message, transaction, typed data...)."""
        return await self._signed_request(
            "POST",
            f"/v1/wallets/{wallet_id}/rpc",
            "wallet_rpc",
            ctx,
            body,
            idempotency_key=idempotency_key,
        )

    async def raw_sign(
        self,
        wallet_id: str,
        ctx: AuthorizationContext,
        body: Any,
        idempotency_key: str | None = None,
    ) -> dict[str, Any]:
        """Sign a raw hash with the wallet key."""
        return await self._signed_request(
            "POST",
            f"/v1/wallets/{wallet_id}/raw_sign",
            "raw_sign",
            ctx,
            body,
            idempotency_key=idempotency_key,
        )

    async def export(self, wallet_id: str, ctx: AuthorizationContext) -> bytes:
        """Export a wallet's private key.

        The key is HPKE-encrypted to a one-off keypair and decrypted locally.
        Export is typically quorum-gated; too few signatures surface as a
        :class:`~privy_wallet.types.PrivyApiError`.
        """
        hpke = PrivyHpke()
        body = WalletExportBody(recipient_public_key=hpke.public_key())
        data = await self._signed_request(
            "POST", f"/v1/wallets/{wallet_id}/export", "wallet_export", ctx, body
        )
        response = self._parse(WalletExportResponse, data)
        return hpke.decrypt_raw(response.encapsulated_key, response.ciphertext)

    async def authenticate_with_jwt(self, body: AuthenticateBody) -> AuthenticateResponse:
        """Exchange a user JWT for an authorization key. Never signed."""
        data = await self._request(
            "POST", "/v1/wallets/authenticate", "authenticate", body
        )
        try:
            return parse_authenticate_response(data)
        except ValidationError as e:
            raise PrivyError(
                ErrorCode.INVALID_FORMAT, "unexpected authenticate response", e
            ) from e
