"""Authorization key sources and the authorization context.

A source is anything that can sign a canonical request. Every source exposes
``async sign(message) -> bytes`` returning a DER-encoded ECDSA P-256/SHA-256
signature. Sources backed by a concrete key also expose ``get_key`` and
``get_public_key``.

Example:
    >>> ctx = (
    ...     AuthorizationContext()
    ...     .push(PrivateKey(pem))
    ...     .push(client.jwt_user(user_jwt))
    ... )
    >>> signatures = await ctx.sign(canonical.encode())
"""

import asyncio
import base64
import binascii
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Protocol, runtime_checkable

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec

from .types import ErrorCode, PrivyError

if TYPE_CHECKING:
    from .client import PrivyClient

SIGNATURE_RESOLUTION_CONCURRENCY = 10
WALLET_AUTH_PREFIX = "wallet-auth:"


@runtime_checkable
class SignatureSource(Protocol):
    """Anything that can produce a signature over a canonical request."""

    async def sign(self, message: bytes) -> bytes:
        """Return a DER-encoded ECDSA signature over ``message``."""
        ...


@runtime_checkable
class KeySource(SignatureSource, Protocol):
    """A signature source backed by a P-256 private key."""

    async def get_key(self) -> ec.EllipticCurvePrivateKey:
        """Resolve the private key."""
        ...

    async def get_public_key(self) -> ec.EllipticCurvePublicKey:
        """Resolve the public key."""
        ...


def sign_with_key(key: ec.EllipticCurvePrivateKey, message: bytes) -> bytes:
    """ECDSA P-256/SHA-256 signature, DER encoded."""
    return key.sign(message, ec.ECDSA(hashes.SHA256()))


def _require_p256(key: object) -> ec.EllipticCurvePrivateKey:
    if not isinstance(key, ec.EllipticCurvePrivateKey) or not isinstance(key.curve, ec.SECP256R1):
        raise PrivyError(ErrorCode.INVALID_FORMAT, "authorization keys must be P-256 private keys")
    return key


def load_private_key(material: str) -> ec.EllipticCurvePrivateKey:
    """Parse a PEM (SEC1 or PKCS#8) or ``wallet-auth:`` formatted private key."""
    material = material.strip()
    try:
        if material.startswith(WALLET_AUTH_PREFIX):
            der = base64.b64decode(material[len(WALLET_AUTH_PREFIX):], validate=True)
            key = serialization.load_der_private_key(der, password=None)
        else:
            key = serialization.load_pem_private_key(material.encode(), password=None)
    except (binascii.Error, ValueError, TypeError) as e:
        raise PrivyError(ErrorCode.INVALID_FORMAT, "invalid private key", e) from e
    return _require_p256(key)


def public_key_pem(key: ec.EllipticCurvePrivateKey | ec.EllipticCurvePublicKey) -> str:
    """Render the SPKI PEM used when registering a key with a key quorum or owner."""
    if isinstance(key, ec.EllipticCurvePrivateKey):
        key = key.public_key()
    return key.public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")


@dataclass(frozen=True)
class SecretKeySource:
    """An already-loaded private key."""

    key: ec.EllipticCurvePrivateKey = field(repr=False)

    def __post_init__(self) -> None:
        _require_p256(self.key)

    async def get_key(self) -> ec.EllipticCurvePrivateKey:
        return self.key

    async def get_public_key(self) -> ec.EllipticCurvePublicKey:
        return self.key.public_key()

    async def sign(self, message: bytes) -> bytes:
        return sign_with_key(self.key, message)


@dataclass(frozen=True)
class PrivateKey:
    """A private key given as text. Parsed once, at construction."""

    material: str = field(repr=False)
    _key: ec.EllipticCurvePrivateKey = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_key", load_private_key(self.material))

    async def get_key(self) -> ec.EllipticCurvePrivateKey:
        return self._key

    async def get_public_key(self) -> ec.EllipticCurvePublicKey:
        return self._key.public_key()

    async def sign(self, message: bytes) -> bytes:
        return sign_with_key(self._key, message)


@dataclass(frozen=True)
class PrivateKeyFromFile:
    """A private key read from disk each time it is used.

    The read runs in a worker thread so the event loop is not blocked.
    """

    path: Path

    async def get_key(self) -> ec.EllipticCurvePrivateKey:
        try:
            material = await asyncio.to_thread(Path(self.path).read_text)
        except OSError as e:
            raise PrivyError(ErrorCode.IO_ERROR, f"cannot read key file {self.path}", e) from e
        return load_private_key(material)

    async def get_public_key(self) -> ec.EllipticCurvePublicKey:
        return (await self.get_key()).public_key()

    async def sign(self, message: bytes) -> bytes:
        return sign_with_key(await self.get_key(), message)


@dataclass(frozen=True)
class JwtUser:
    """A user identity, exchanged for a short-lived authorization key.

    The exchange goes through the owning client's
    :class:`~privy_wallet.jwt_exchange.JwtExchange`, which caches the key until
    shortly before it expires.
    """

    client: "PrivyClient" = field(repr=False, compare=False)
    jwt: str = field(repr=False)

    async def get_key(self) -> ec.EllipticCurvePrivateKey:
        return await self.client.jwt_exchange.exchange_jwt_for_authorization_key(self)

    async def get_public_key(self) -> ec.EllipticCurvePublicKey:
        return (await self.get_key()).public_key()

    async def sign(self, message: bytes) -> bytes:
        return sign_with_key(await self.get_key(), message)


@dataclass(frozen=True)
class PrecomputedSignature:
    """A DER signature produced elsewhere (offline signer, KMS, HSM).

    It is returned as-is for any message, so it is only valid for the one
    canonical request it was made for.
    """

    signature: bytes

    @classmethod
    def from_base64(cls, value: str) -> "PrecomputedSignature":
        try:
            return cls(base64.b64decode(value, validate=True))
        except (binascii.Error, ValueError) as e:
            raise PrivyError(ErrorCode.INVALID_FORMAT, "signature is not valid base64", e) from e

    async def sign(self, message: bytes) -> bytes:
        return self.signature


class AuthorizationContext:
    """Ordered set of credentials that authorize a request.

    Sources are only ever appended. Their order is the order of the
    comma-separated signatures in the ``privy-authorization-signature`` header.
    """

    def __init__(
        self,
        sources: Iterable[SignatureSource | ec.EllipticCurvePrivateKey] = (),
        max_concurrency: int = SIGNATURE_RESOLUTION_CONCURRENCY,
    ) -> None:
        self._sources: list[SignatureSource] = []
        self._max_concurrency = max_concurrency
        for source in sources:
            self.push(source)

    def push(self, source: SignatureSource | ec.EllipticCurvePrivateKey) -> "AuthorizationContext":
        """Append a credential source and return the context for chaining."""
        if isinstance(source, ec.EllipticCurvePrivateKey):
            source = SecretKeySource(source)
        elif not isinstance(source, SignatureSource):
            raise PrivyError(
                ErrorCode.INVALID_CONFIG,
                f"{type(source).__name__} cannot produce signatures",
            )
        self._sources.append(source)
        return self

    def copy(self) -> "AuthorizationContext":
        return AuthorizationContext(self._sources, self._max_concurrency)

    @property
    def sources(self) -> tuple[SignatureSource, ...]:
        return tuple(self._sources)

    def __len__(self) -> int:
        return len(self._sources)

    def __bool__(self) -> bool:
        return bool(self._sources)

    async def sign(self, message: bytes) -> list[bytes]:
        """Sign ``message`` with every source.

        All sources are resolved concurrently; the result is in push order
        regardless of which resolves first. The first failure is raised.
        """
        limiter = asyncio.Semaphore(self._max_concurrency)

        async def _sign(source: SignatureSource) -> bytes:
            async with limiter:
                return await source.sign(message)

        return list(await asyncio.gather(*(_sign(s) for s in self._sources)))

    async def validate(self) -> list[Exception]:
        """Exercise every source once. An empty list means all can sign."""
        results = await asyncio.gather(
            *(s.sign(b"") for s in self._sources),
            return_exceptions=True,
        )
        return [r for r in results if isinstance(r, Exception)]
