"""Ephemeral HPKE receiver used for Privy's key exchanges.

Privy encrypts key material to a public key the client advertises. The suite is
fixed by the API (RFC 9180, base mode):

- KEM: DHKEM(P-256, HKDF-SHA256)
- KDF: HKDF-SHA256
- AEAD: ChaCha20-Poly1305

Flow:
    1. ``PrivyHpke()`` generates a fresh P-256 keypair.
    2. ``public_key()`` is sent to the API as base64 SPKI DER.
    3. The API answers with ``encapsulated_key`` + ``ciphertext``.
    4. ``decrypt()`` (authorization keys) or ``decrypt_raw()`` (wallet export)
       opens the payload. Either call consumes the keypair.

Example:
    >>> hpke = PrivyHpke()
    >>> body = {"encryption_type": "HPKE", "recipient_public_key": hpke.public_key()}
    >>> # ... send body, receive encrypted payload ...
    >>> key = hpke.decrypt(payload["encapsulated_key"], payload["ciphertext"])
"""

import base64
import binascii
import logging

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from pyhpke import AEADId, CipherSuite, KDFId, KEMId, KEMKey, OpenError, PyHPKEError

from .types import ErrorCode, PrivyError

logger = logging.getLogger(__name__)

HPKE_SUITE = CipherSuite.new(
    KEMId.DHKEM_P256_HKDF_SHA256,
    KDFId.HKDF_SHA256,
    AEADId.CHACHA20_POLY1305,
)

P256_SPKI_DER_LENGTH = 91


def _b64decode(value: str, what: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise PrivyError(ErrorCode.INVALID_FORMAT, f"{what} is not valid base64", e) from e


class PrivyHpke:
    """Single-use HPKE receiver keypair.

    The private half never leaves this object and is never logged. Once
    :meth:`decrypt` or :meth:`decrypt_raw` has run, the instance refuses further
    use; start a new exchange with a new instance instead.
    """

    def __init__(self, private_key: ec.EllipticCurvePrivateKey | None = None) -> None:
        if private_key is None:
            private_key = ec.generate_private_key(ec.SECP256R1())
        self._private_key = private_key
        self._consumed = False

    @classmethod
    def from_private_value(cls, value: int) -> "PrivyHpke":
        """Build a receiver with a fixed scalar.

        Only meant for reproducible tests; a fixed key defeats forward secrecy.
        """
        return cls(ec.derive_private_key(value, ec.SECP256R1()))

    def public_key(self) -> str:
        """Return the base64 DER SubjectPublicKeyInfo for the API request."""
        point = self._private_key.public_key().public_bytes(
            serialization.Encoding.X962,
            serialization.PublicFormat.UncompressedPoint,
        )
        try:
            # Re-parse the raw point so a malformed key can never be advertised.
            parsed = ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256R1(), point)
        except ValueError as e:
            raise PrivyError(ErrorCode.INVALID_FORMAT, "invalid SEC1 public key point", e) from e
        der = parsed.public_bytes(
            serialization.Encoding.DER,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        return base64.b64encode(der).decode("ascii")

    def decrypt_raw(self, encapsulated_key: str, ciphertext: str) -> bytes:
        """Open an HPKE payload and return the plaintext bytes."""
        if self._consumed:
            raise PrivyError(
                ErrorCode.INVALID_CONFIG,
                "HPKE keypair already used; start a new exchange",
            )
        self._consumed = True

        enc = _b64decode(encapsulated_key, "encapsulated key")
        ct = _b64decode(ciphertext, "ciphertext")

        try:
            ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256R1(), enc)
        except ValueError as e:
            logger.error("Failed to deserialize encapsulated key (%d bytes)", len(enc))
            raise PrivyError(ErrorCode.INVALID_FORMAT, "encapsulated key is not a P-256 point", e) from e

        try:
            recipient = HPKE_SUITE.create_recipient_context(
                enc, KEMKey.from_pyca_cryptography_key(self._private_key)
            )
        except (PyHPKEError, ValueError) as e:
            logger.error("HPKE setup failed: %s", type(e).__name__)
            raise PrivyError(ErrorCode.HPKE_DECRYPTION, f"HPKE setup failed: {e}", e) from e

        try:
            return recipient.open(ct)
        except OpenError as e:
            logger.error("HPKE decryption failed: %s", type(e).__name__)
            raise PrivyError(ErrorCode.HPKE_DECRYPTION, f"HPKE decryption failed: {e}", e) from e

    def decrypt(self, encapsulated_key: str, ciphertext: str) -> ec.EllipticCurvePrivateKey:
        """Open an encrypted authorization key.

        The plaintext is base64 text wrapping a PKCS#8 DER P-256 private key.
        """
        plaintext = self.decrypt_raw(encapsulated_key, ciphertext)

        try:
            key_b64 = plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise PrivyError(ErrorCode.INVALID_FORMAT, "decrypted key is not valid UTF-8", e) from e

        der = _b64decode(key_b64, "decrypted key")

        try:
            key = serialization.load_der_private_key(der, password=None)
        except (ValueError, TypeError) as e:
            raise PrivyError(ErrorCode.INVALID_FORMAT, "decrypted key is not PKCS#8 DER", e) from e

        if not isinstance(key, ec.EllipticCurvePrivateKey) or not isinstance(key.curve, ec.SECP256R1):
            raise PrivyError(ErrorCode.INVALID_FORMAT, "decrypted key is not a P-256 key")
        return key
