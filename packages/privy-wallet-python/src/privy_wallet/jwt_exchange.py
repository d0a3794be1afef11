"""JWT to authorization-key exchange with an LRU cache.

A user JWT is traded for a short-lived P-256 authorization key through
``POST /v1/wallets/authenticate``. The key comes back HPKE-encrypted to an
ephemeral keypair generated per attempt, and is cached by JWT until shortly
before its expiry.

The cache lock only guards the in-memory map; it is never held across the
network call, so exchanges for different JWTs run in parallel. Two concurrent
misses for the same JWT both hit the network and the last one to finish wins.
"""

import asyncio
import hashlib
import logging
import threading
import time
from collections import OrderedDict
from typing import TYPE_CHECKING, Callable

from cryptography.hazmat.primitives.asymmetric import ec

from .hpke import PrivyHpke
from .models import AuthenticateBody, WithoutEncryption
from .types import ErrorCode, PrivyError

if TYPE_CHECKING:
    from .keys import JwtUser

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 1000
EXPIRY_BUFFER = 60.0
EXCHANGE_SETTLE_DELAY = 1.0


def jwt_fingerprint(jwt: str) -> str:
    """Short, non-reversible label for a JWT, safe to log."""
    return hashlib.sha256(jwt.encode()).hexdigest()[:8]


class JwtExchange:
    """Exchanges user JWTs for authorization keys, caching the results.

    Args:
        capacity: Maximum number of cached keys (least recently used go first).
        expiry_buffer: Seconds before ``expires_at`` at which a key counts as stale.
        settle_delay: Seconds to wait after a successful exchange before the key
            is used. Privy's key cache is eventually consistent, and a key used
            immediately can be rejected. ``0`` disables the wait.
        clock: Returns the current UNIX time in seconds.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        expiry_buffer: float = EXPIRY_BUFFER,
        settle_delay: float = EXCHANGE_SETTLE_DELAY,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if capacity < 1:
            raise PrivyError(ErrorCode.INVALID_CONFIG, "cache capacity must be positive")
        self._capacity = capacity
        self._expiry_buffer = expiry_buffer
        self._settle_delay = settle_delay
        self._clock = clock
        self._cache: OrderedDict[str, tuple[float, ec.EllipticCurvePrivateKey]] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def __contains__(self, jwt: object) -> bool:
        with self._lock:
            return jwt in self._cache

    def eviction_order(self) -> list[str]:
        """JWTs from first-to-be-evicted to last."""
        with self._lock:
            return list(self._cache)

    def lookup(self, jwt: str) -> ec.EllipticCurvePrivateKey | None:
        """Return a fresh cached key, demoting the entry if it has gone stale."""
        with self._lock:
            entry = self._cache.get(jwt)
            if entry is None:
                return None
            expiry, key = entry
            if self._clock() < expiry - self._expiry_buffer:
                self._cache.move_to_end(jwt)
                return key
            # Stale: leave it for any request already holding it, but make it
            # the next eviction candidate.
            self._cache.move_to_end(jwt, last=False)
            return None

    def insert(self, jwt: str, expires_at: float, key: ec.EllipticCurvePrivateKey) -> None:
        """Insert or replace the key for ``jwt``."""
        with self._lock:
            self._cache[jwt] = (expires_at, key)
            self._cache.move_to_end(jwt)
            while len(self._cache) > self._capacity:
                self._cache.popitem(last=False)

    async def exchange_jwt_for_authorization_key(self, jwt_user: "JwtUser") -> ec.EllipticCurvePrivateKey:
        """Resolve the authorization key for ``jwt_user``.

        Raises:
            PrivyError: ``KEY_EXCHANGE_FAILED`` if the authenticate call fails,
                ``UNSUPPORTED_ENCRYPTION`` if the server replies without HPKE,
                ``HPKE_DECRYPTION`` / ``INVALID_FORMAT`` if the reply cannot be opened.
        """
        jwt = jwt_user.jwt
        fingerprint = jwt_fingerprint(jwt)

        cached = self.lookup(jwt)
        if cached is not None:
            logger.debug("Using cached authorization key for jwt %s", fingerprint)
            return cached

        logger.debug("Starting HPKE JWT exchange for jwt %s", fingerprint)

        hpke = PrivyHpke()
        body = AuthenticateBody(
            user_jwt=jwt,
            encryption_type="HPKE",
            recipient_public_key=hpke.public_key(),
        )

        try:
            response = await jwt_user.client.wallets.authenticate_with_jwt(body)
        except PrivyError as e:
            raise PrivyError(
                ErrorCode.KEY_EXCHANGE_FAILED,
                f"JWT exchange failed: {e}",
                e,
            ) from e

        if isinstance(response, WithoutEncryption):
            logger.warning("Received unencrypted authorization key (fallback mode), refusing it")
            raise PrivyError(
                ErrorCode.UNSUPPORTED_ENCRYPTION,
                "server returned an unencrypted authorization key",
            )

        encrypted = response.encrypted_authorization_key
        key = hpke.decrypt(encrypted.encapsulated_key, encrypted.ciphertext)

        if self._settle_delay > 0:
            await asyncio.sleep(self._settle_delay)

        self.insert(jwt, response.expires_at, key)
        logger.info("Obtained authorization key for jwt %s", fingerprint)
        return key
