"""Privy API client."""

import base64
import logging
from typing import Any

import httpx

from .config import ClientConfig
from .jwt_exchange import JwtExchange
from .keys import AuthorizationContext, JwtUser
from .middleware import EXPLICITLY_SIGNED, OPERATION_ID, AuthorizationSignatureAuth
from .signing import RequestFormatter, RequestSigner
from .subclients import KeyQuorumsClient, PoliciesClient, UsersClient, WalletsClient
from .types import (
    PRIVY_APP_ID_HEADER,
    PRIVY_CLIENT_HEADER,
    ErrorCode,
    PrivyApiError,
    PrivyError,
)

logger = logging.getLogger(__name__)

SDK_CLIENT_ID = "python-sdk"


def get_auth_header(app_id: str, app_secret: str) -> str:
    """HTTP Basic credentials for the app."""
    credentials = f"{app_id}:{app_secret}".encode()
    return f"Basic {base64.b64encode(credentials).decode('ascii')}"


class PrivyClient:
    """
    Client for the Privy wallet API.

    Owns the HTTP connection pool and the JWT exchange cache. Mutating
    requests are signed with ``authorization_context`` by the
    :class:`~privy_wallet.middleware.AuthorizationSignatureAuth` hook; the
    explicitly signed subclient methods (``update``, ``delete``, ``rpc``,
    ``export``...) take their own context instead.

    Example:
        >>> async with PrivyClient(ClientConfig(app_id="...", app_secret="...")) as client:
        ...     ctx = AuthorizationContext().push(PrivateKey(pem))
        ...     wallet = await client.wallets.update(
        ...         "wallet-id", ctx, {"policy_ids": ["pol_123abc"]}
        ...     )
    """

    def __init__(
        self,
        config: ClientConfig,
        authorization_context: AuthorizationContext | None = None,
        jwt_exchange: JwtExchange | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self.jwt_exchange = jwt_exchange if jwt_exchange is not None else JwtExchange(
            capacity=config.cache_capacity,
            expiry_buffer=config.expiry_buffer,
            settle_delay=config.exchange_settle_delay,
        )
        self._auth = AuthorizationSignatureAuth(config.app_id, authorization_context)
        self._http = httpx.AsyncClient(
            base_url=config.base_url,
            headers={
                "Authorization": get_auth_header(config.app_id, config.app_secret),
                PRIVY_APP_ID_HEADER: config.app_id,
                PRIVY_CLIENT_HEADER: SDK_CLIENT_ID,
                "Content-Type": "application/json",
            },
            timeout=config.timeout,
            auth=self._auth,
            transport=transport,
        )

        self.wallets = WalletsClient(self)
        self.policies = PoliciesClient(self)
        self.key_quorums = KeyQuorumsClient(self)
        self.users = UsersClient(self)

    @classmethod
    def from_env(cls, **kwargs: Any) -> "PrivyClient":
        """Create a client from ``PRIVY_*`` environment variables."""
        return cls(ClientConfig.from_env(), **kwargs)

    @property
    def app_id(self) -> str:
        return self._config.app_id

    @property
    def base_url(self) -> str:
        return self._config.base_url

    @property
    def authorization_context(self) -> AuthorizationContext:
        """Context the signing hook uses for requests not signed explicitly."""
        return self._auth.ctx

    def jwt_user(self, jwt: str) -> JwtUser:
        """A signing source for a user JWT, exchanged through this client."""
        return JwtUser(self, jwt)

    def formatter(self) -> RequestFormatter:
        return RequestFormatter(self.app_id)

    def signer(self) -> RequestSigner:
        return RequestSigner(self.app_id)

    def url(self, path: str) -> str:
        """Absolute URL for an API path, as it appears in the signed payload."""
        return f"{self.base_url}{path}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        operation_id: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        explicitly_signed: bool = False,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        ``explicitly_signed`` keeps the client-wide signing hook off a request
        whose signature header (or its absence) was decided by the caller.

        Raises:
            PrivyApiError: The API answered with a 4xx/5xx status.
            PrivyError: ``NETWORK_ERROR`` on transport failure.
        """
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        try:
            response = await self._http.request(
                method,
                path,
                json=json,
                params=params or None,
                headers=headers,
                extensions={OPERATION_ID: operation_id, EXPLICITLY_SIGNED: explicitly_signed},
            )
        except httpx.HTTPError as e:
            raise PrivyError(ErrorCode.NETWORK_ERROR, f"{operation_id} failed: {e}", e) from e

        if response.is_error:
            try:
                body: Any = response.json()
            except ValueError:
                body = response.text
            logger.debug("%s returned HTTP %d: %s", operation_id, response.status_code, body)
            raise PrivyApiError(response.status_code, body)

        if not response.content:
            return None
        return response.json()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "PrivyClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
