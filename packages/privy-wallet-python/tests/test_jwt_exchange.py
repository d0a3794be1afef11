"""Tests for the JWT exchange and its cache."""

import asyncio
import base64
import types

import pytest

from privy_wallet import (
    AuthorizationContext,
    ErrorCode,
    JwtExchange,
    PrivyApiError,
    PrivyClient,
    PrivyError,
    RequestFormatter,
    generate_authorization_signatures,
)
from privy_wallet.jwt_exchange import EXPIRY_BUFFER, jwt_fingerprint

from fake_privy import new_key, verifies

NOW = 1_700_000_000.0
URL = "https://api.privy.io/v1/wallets/wallet_1/rpc"


class FakeClock:
    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def exchange(clock) -> JwtExchange:
    return JwtExchange(capacity=3, settle_delay=0, clock=clock)


@pytest.fixture
def jwt_client(config, fake_privy, exchange) -> PrivyClient:
    return PrivyClient(config, jwt_exchange=exchange, transport=fake_privy.transport())


class TestCache:
    def test_fresh_entry_is_served(self, exchange):
        key = new_key()
        exchange.insert("jwt", NOW + EXPIRY_BUFFER + 1, key)

        assert exchange.lookup("jwt") is key

    def test_entry_inside_buffer_is_stale(self, exchange):
        exchange.insert("jwt", NOW + EXPIRY_BUFFER - 1, new_key())

        assert exchange.lookup("jwt") is None
        # Stale entries are kept until evicted.
        assert "jwt" in exchange

    def test_entry_goes_stale_as_time_passes(self, exchange, clock):
        exchange.insert("jwt", NOW + EXPIRY_BUFFER + 10, new_key())
        clock.now += 11

        assert exchange.lookup("jwt") is None

    def test_capacity_evicts_least_recently_used(self, exchange):
        for jwt in ("a", "b", "c"):
            exchange.insert(jwt, NOW + 3600, new_key())
        exchange.lookup("a")

        exchange.insert("d", NOW + 3600, new_key())

        assert exchange.eviction_order() == ["c", "a", "d"]
        assert "b" not in exchange
        assert len(exchange) == 3

    def test_stale_lookup_demotes_entry(self, exchange):
        exchange.insert("b", NOW + 3600, new_key())
        exchange.insert("c", NOW + 3600, new_key())
        exchange.insert("a", NOW + EXPIRY_BUFFER - 1, new_key())

        assert exchange.lookup("a") is None
        assert exchange.eviction_order() == ["a", "b", "c"]

        exchange.insert("d", NOW + 3600, new_key())
        assert exchange.eviction_order() == ["b", "c", "d"]

    def test_insert_replaces_existing(self, exchange):
        replacement = new_key()
        exchange.insert("a", NOW + 3600, new_key())
        exchange.insert("a", NOW + 7200, replacement)

        assert len(exchange) == 1
        assert exchange.lookup("a") is replacement

    def test_capacity_must_be_positive(self):
        with pytest.raises(PrivyError) as exc_info:
            JwtExchange(capacity=0)
        assert exc_info.value.code == ErrorCode.INVALID_CONFIG

    def test_fingerprint_does_not_leak_jwt(self):
        fingerprint = jwt_fingerprint("header.payload.signature")
        assert len(fingerprint) == 8
        assert "payload" not in fingerprint


class TestExchange:
    @pytest.mark.asyncio
    async def test_fresh_cache_entry_skips_network(self, jwt_client, exchange, fake_privy):
        key = new_key()
        exchange.insert("user-jwt", NOW + EXPIRY_BUFFER + 1, key)

        resolved = await jwt_client.jwt_user("user-jwt").get_key()

        assert resolved is key
        assert jwt_client.jwt_exchange is exchange
        assert fake_privy.authenticate_calls == 0

    @pytest.mark.asyncio
    async def test_stale_cache_entry_triggers_exchange(self, jwt_client, exchange, fake_privy):
        stale = new_key()
        exchange.insert("user-jwt", NOW + EXPIRY_BUFFER - 1, stale)

        resolved = await jwt_client.jwt_user("user-jwt").get_key()

        assert fake_privy.authenticate_calls == 1
        assert resolved is not stale
        assert resolved.private_numbers() == fake_privy.issued_keys["user-jwt"][0].private_numbers()

    @pytest.mark.asyncio
    async def test_exchanged_key_is_cached(self, jwt_client, fake_privy):
        user = jwt_client.jwt_user("user-jwt")

        first = await user.get_key()
        second = await user.get_key()

        assert first is second
        assert fake_privy.authenticate_calls == 1

    @pytest.mark.asyncio
    async def test_authenticate_request_is_hpke_and_unsigned(self, config, fake_privy, exchange):
        client = PrivyClient(
            config,
            authorization_context=AuthorizationContext([new_key()]),
            jwt_exchange=exchange,
            transport=fake_privy.transport(),
        )

        await client.jwt_user("user-jwt").get_key()

        request = fake_privy.requests[0]
        assert request.url.path == "/v1/wallets/authenticate"
        assert "privy-authorization-signature" not in request.headers
        body = request.read().decode()
        assert '"encryption_type":"HPKE"' in body.replace(" ", "")
        assert "recipient_public_key" in body

    @pytest.mark.asyncio
    async def test_distinct_jwts_exchange_independently(self, jwt_client, fake_privy):
        keys = await asyncio.gather(
            jwt_client.jwt_user("jwt-a").get_key(),
            jwt_client.jwt_user("jwt-b").get_key(),
        )

        assert fake_privy.authenticate_calls == 2
        assert keys[0].private_numbers() != keys[1].private_numbers()

    @pytest.mark.asyncio
    async def test_unencrypted_response_is_refused(self, jwt_client, exchange, fake_privy):
        fake_privy.unencrypted = True

        with pytest.raises(PrivyError) as exc_info:
            await jwt_client.jwt_user("user-jwt").get_key()

        assert exc_info.value.code == ErrorCode.UNSUPPORTED_ENCRYPTION
        assert len(exchange) == 0

    @pytest.mark.asyncio
    async def test_rejected_jwt(self, jwt_client, exchange, fake_privy):
        user = jwt_client.jwt_user("invalid-jwt")

        with pytest.raises(PrivyError) as exc_info:
            await user.get_key()

        assert exc_info.value.code == ErrorCode.KEY_EXCHANGE_FAILED
        assert isinstance(exc_info.value.cause, PrivyApiError)
        assert exc_info.value.cause.status_code == 401
        assert len(exchange) == 0

        with pytest.raises(PrivyError):
            await user.get_key()
        assert fake_privy.authenticate_calls == 2

    @pytest.mark.asyncio
    async def test_settle_delay_applies_before_insert(self, config, fake_privy, monkeypatch):
        jwt_client = PrivyClient(
            config,
            jwt_exchange=JwtExchange(settle_delay=1.0),
            transport=fake_privy.transport(),
        )
        delays = []

        async def fake_sleep(seconds):
            assert "user-jwt" not in jwt_client.jwt_exchange
            delays.append(seconds)

        monkeypatch.setattr(
            "privy_wallet.jwt_exchange.asyncio", types.SimpleNamespace(sleep=fake_sleep)
        )
        await jwt_client.jwt_user("user-jwt").get_key()

        assert delays == [1.0]
        assert "user-jwt" in jwt_client.jwt_exchange

    @pytest.mark.asyncio
    async def test_jwt_user_signs_with_exchanged_key(self, jwt_client, fake_privy):
        static_key = new_key()
        ctx = AuthorizationContext().push(static_key).push(jwt_client.jwt_user("user-jwt"))
        body = {"method": "personal_sign", "params": {"message": "hello"}}

        header = await generate_authorization_signatures(ctx, jwt_client.app_id, "POST", URL, body)

        message = RequestFormatter(jwt_client.app_id).build_canonical_request("POST", URL, body)
        static_sig, user_sig = (base64.b64decode(c) for c in header.split(","))
        issued = fake_privy.issued_keys["user-jwt"][0]
        assert verifies(static_key.public_key(), static_sig, message.encode())
        assert verifies(issued.public_key(), user_sig, message.encode())
