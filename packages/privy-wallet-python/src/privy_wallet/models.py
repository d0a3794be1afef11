"""Wire models for the Privy REST API (Pydantic v2).

Only the fields the SDK itself reads are declared; everything else the API
returns is kept as extra attributes.
"""

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class PrivyModel(BaseModel):
    """Base model that tolerates fields added by newer API versions."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


# ============================================================================
# Authentication
# ============================================================================

class AuthenticateBody(PrivyModel):
    """Request body for ``POST /v1/wallets/authenticate``."""

    user_jwt: str
    encryption_type: Optional[Literal["HPKE"]] = "HPKE"
    recipient_public_key: Optional[str] = None


class EncryptedAuthorizationKey(PrivyModel):
    """HPKE payload wrapping an authorization key."""

    encapsulated_key: str
    ciphertext: str
    encryption_type: Optional[str] = None


class WithEncryption(PrivyModel):
    """Authenticate response carrying an HPKE-encrypted key."""

    encrypted_authorization_key: EncryptedAuthorizationKey
    expires_at: float
    wallets: list[dict[str, Any]] = Field(default_factory=list)


class WithoutEncryption(PrivyModel):
    """Authenticate response carrying a plaintext key (unsupported)."""

    authorization_key: str
    expires_at: float
    wallets: list[dict[str, Any]] = Field(default_factory=list)


AuthenticateResponse = Union[WithEncryption, WithoutEncryption]
_authenticate_response_adapter: TypeAdapter[AuthenticateResponse] = TypeAdapter(AuthenticateResponse)


def parse_authenticate_response(data: Any) -> AuthenticateResponse:
    """Pick the response variant from the payload shape."""
    return _authenticate_response_adapter.validate_python(data)


# ============================================================================
# Resources
# ============================================================================

class Wallet(PrivyModel):
    id: str
    address: Optional[str] = None
    chain_type: Optional[str] = None
    owner_id: Optional[str] = None
    policy_ids: list[str] = Field(default_factory=list)
    created_at: Optional[float] = None


class WalletList(PrivyModel):
    data: list[Wallet] = Field(default_factory=list)
    next_cursor: Optional[str] = None


class KeyQuorum(PrivyModel):
    id: str
    display_name: Optional[str] = None
    authorization_threshold: Optional[float] = None
    authorization_keys: list[dict[str, Any]] = Field(default_factory=list)
    user_ids: list[str] = Field(default_factory=list)


class PolicyRule(PrivyModel):
    id: Optional[str] = None
    name: str
    method: str
    action: Literal["ALLOW", "DENY"]
    conditions: list[dict[str, Any]] = Field(default_factory=list)


class Policy(PrivyModel):
    id: str
    name: str
    version: str = "1.0"
    chain_type: str
    owner_id: Optional[str] = None
    rules: list[PolicyRule] = Field(default_factory=list)


class User(PrivyModel):
    id: str
    linked_accounts: list[dict[str, Any]] = Field(default_factory=list)
    created_at: Optional[float] = None


class UserList(PrivyModel):
    data: list[User] = Field(default_factory=list)
    next_cursor: Optional[str] = None


class DeleteResponse(PrivyModel):
    success: bool = True


class WalletExportBody(PrivyModel):
    encryption_type: Literal["HPKE"] = "HPKE"
    recipient_public_key: str


class WalletExportResponse(PrivyModel):
    encryption_type: Optional[str] = None
    encapsulated_key: str
    ciphertext: str
