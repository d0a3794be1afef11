"""In-process fake of the Privy API plus key helpers for the test suite."""

import base64
import itertools
import json
import re

import httpx
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from pyhpke import KEMKey

from privy_wallet.hpke import HPKE_SUITE

APP_ID = "test-app-id"
APP_SECRET = "test-app-secret"
BASE_URL = "https://api.privy.io"


def new_key() -> ec.EllipticCurvePrivateKey:
    return ec.generate_private_key(ec.SECP256R1())


def pem_of(key: ec.EllipticCurvePrivateKey) -> str:
    return key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()


def pkcs8_der_of(key: ec.EllipticCurvePrivateKey) -> bytes:
    return key.private_bytes(
        serialization.Encoding.DER,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )


def hpke_seal(recipient_public_key_b64: str, plaintext: bytes) -> dict[str, str]:
    """Encrypt to an advertised SPKI key, the way the Privy backend does."""
    public_key = serialization.load_der_public_key(base64.b64decode(recipient_public_key_b64))
    enc, sender = HPKE_SUITE.create_sender_context(KEMKey.from_pyca_cryptography_key(public_key))
    return {
        "encapsulated_key": base64.b64encode(enc).decode(),
        "ciphertext": base64.b64encode(sender.seal(plaintext)).decode(),
    }


def server_canonical(request: httpx.Request, body) -> bytes:
    """Independent rendering of the signed payload, as the server computes it."""
    headers = {"privy-app-id": request.headers["privy-app-id"]}
    if "privy-idempotency-key" in request.headers:
        headers["privy-idempotency-key"] = request.headers["privy-idempotency-key"]
    payload = {
        "version": 1,
        "method": request.method,
        "url": str(request.url),
        "body": body,
        "headers": headers,
    }
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode()


def verifies(public_key: ec.EllipticCurvePublicKey, signature: bytes, message: bytes) -> bool:
    try:
        public_key.verify(signature, message, ec.ECDSA(hashes.SHA256()))
    except InvalidSignature:
        return False
    return True


def count_authorized(header: str | None, message: bytes, public_keys: list) -> int:
    """Number of distinct keys with a valid signature in the header."""
    if not header:
        return 0
    signatures = [base64.b64decode(s) for s in header.split(",")]
    return sum(
        1 for pk in public_keys if any(verifies(pk, sig, message) for sig in signatures)
    )


class FakePrivy:
    """Just enough of the Privy API to exercise authorization end to end."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.authenticate_calls = 0
        self.unencrypted = False
        self.expires_at = 4_000_000_000.0
        self.issued_keys: dict[str, list[ec.EllipticCurvePrivateKey]] = {}
        self.quorums: dict[str, dict] = {}
        self.wallets: dict[str, dict] = {}
        self.exported_secret = bytes(range(32))
        self._ids = itertools.count(1)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def _owner_keys(self, wallet: dict) -> tuple[int, list]:
        quorum = self.quorums[wallet["owner_id"]]
        return quorum["threshold"], quorum["public_keys"]

    def _authorized(self, request: httpx.Request, body, wallet: dict) -> bool:
        threshold, public_keys = self._owner_keys(wallet)
        message = server_canonical(request, body)
        header = request.headers.get("privy-authorization-signature")
        return count_authorized(header, message, public_keys) >= threshold

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        body = json.loads(request.content) if request.content else None

        if request.method == "POST" and path == "/v1/wallets/authenticate":
            return self._authenticate(body)

        if request.method == "POST" and path == "/v1/key_quorums":
            quorum_id = f"kq_{next(self._ids)}"
            self.quorums[quorum_id] = {
                "threshold": int(body["authorization_threshold"]),
                "public_keys": [
                    serialization.load_pem_public_key(pem.encode()) for pem in body["public_keys"]
                ],
            }
            return httpx.Response(200, json={
                "id": quorum_id,
                "display_name": body.get("display_name"),
                "authorization_threshold": body["authorization_threshold"],
                "authorization_keys": [{"public_key": pem} for pem in body["public_keys"]],
                "user_ids": [],
            })

        if request.method == "POST" and path == "/v1/wallets":
            wallet_id = f"wallet_{next(self._ids)}"
            self.wallets[wallet_id] = {
                "id": wallet_id,
                "address": "0x" + "ab" * 20,
                "chain_type": body["chain_type"],
                "owner_id": body.get("owner_id"),
                "policy_ids": [],
            }
            return httpx.Response(200, json=self.wallets[wallet_id])

        match = re.fullmatch(r"/v1/wallets/([^/]+)(/export)?", path)
        if match and match.group(1) in self.wallets:
            wallet = self.wallets[match.group(1)]
            if request.method == "GET" and not match.group(2):
                return httpx.Response(200, json=wallet)
            if request.method == "PATCH" and not match.group(2):
                if not self._authorized(request, body, wallet):
                    return httpx.Response(401, json={"error": "Invalid authorization signature"})
                wallet.update(body)
                return httpx.Response(200, json=wallet)
            if request.method == "POST" and match.group(2):
                if not self._authorized(request, body, wallet):
                    return httpx.Response(
                        401, json={"error": "Insufficient signatures for key quorum"}
                    )
                return httpx.Response(200, json={
                    "encryption_type": "HPKE",
                    **hpke_seal(body["recipient_public_key"], self.exported_secret),
                })

        return httpx.Response(404, json={"error": "Not found"})

    def _authenticate(self, body: dict) -> httpx.Response:
        self.authenticate_calls += 1
        jwt = body["user_jwt"]
        if jwt.startswith("invalid"):
            return httpx.Response(401, json={"error": "Invalid JWT"})

        key = new_key()
        self.issued_keys.setdefault(jwt, []).append(key)
        key_b64 = base64.b64encode(pkcs8_der_of(key))

        if self.unencrypted:
            return httpx.Response(200, json={
                "authorization_key": key_b64.decode(),
                "expires_at": self.expires_at,
                "wallets": [],
            })

        assert body["encryption_type"] == "HPKE"
        return httpx.Response(200, json={
            "encrypted_authorization_key": {
                "encryption_type": "HPKE",
                **hpke_seal(body["recipient_public_key"], key_b64),
            },
            "expires_at": self.expires_at,
            "wallets": [],
        })
