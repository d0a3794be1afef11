"""
Privy Wallet SDK

A Python client for the Privy wallet-as-a-service API, with request
authorization signatures built in.

Mutating wallet, policy and key quorum requests are signed over a canonical
form of the request by every key in an ``AuthorizationContext``; Privy then
evaluates the signatures against the resource's owner or key quorum.

Example:
    >>> from privy_wallet import AuthorizationContext, ClientConfig, PrivateKey, PrivyClient
    >>>
    >>> async with PrivyClient(ClientConfig(app_id="...", app_secret="...")) as client:
    ...     ctx = (
    ...         AuthorizationContext()
    ...         .push(PrivateKey(open("authorization_key.pem").read()))
    ...         .push(client.jwt_user(user_jwt))
    ...     )
    ...     await client.wallets.rpc(wallet_id, ctx, {"method": "personal_sign", ...})
"""

from .canonical import WalletApiRequestSignatureInput, format_request_for_authorization_signature
from .client import PrivyClient
from .config import ClientConfig
from .hpke import PrivyHpke
from .jwt_exchange import JwtExchange
from .keys import (
    AuthorizationContext,
    JwtUser,
    KeySource,
    PrecomputedSignature,
    PrivateKey,
    PrivateKeyFromFile,
    SecretKeySource,
    SignatureSource,
    public_key_pem,
)
from .middleware import AuthorizationSignatureAuth
from .signing import RequestFormatter, RequestSigner, generate_authorization_signatures
from .types import (
    PRIVY_AUTHORIZATION_HEADER,
    ErrorCode,
    Method,
    PrivyApiError,
    PrivyError,
)

__version__ = "0.1.0"
__all__ = [
    # Client
    "PrivyClient",
    "ClientConfig",
    # Authorization
    "AuthorizationContext",
    "AuthorizationSignatureAuth",
    "SignatureSource",
    "KeySource",
    "PrivateKey",
    "PrivateKeyFromFile",
    "SecretKeySource",
    "JwtUser",
    "PrecomputedSignature",
    "public_key_pem",
    "JwtExchange",
    "PrivyHpke",
    # Signing
    "WalletApiRequestSignatureInput",
    "format_request_for_authorization_signature",
    "generate_authorization_signatures",
    "RequestFormatter",
    "RequestSigner",
    # Types
    "Method",
    "ErrorCode",
    "PrivyError",
    "PrivyApiError",
    "PRIVY_AUTHORIZATION_HEADER",
]
