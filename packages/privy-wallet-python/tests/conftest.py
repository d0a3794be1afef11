"""Shared fixtures."""

import pytest

from privy_wallet import ClientConfig, JwtExchange, PrivyClient

from fake_privy import APP_ID, APP_SECRET, FakePrivy


@pytest.fixture
def fake_privy() -> FakePrivy:
    return FakePrivy()


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(app_id=APP_ID, app_secret=APP_SECRET, exchange_settle_delay=0)


@pytest.fixture
def client(config, fake_privy) -> PrivyClient:
    return PrivyClient(
        config,
        jwt_exchange=JwtExchange(settle_delay=0),
        transport=fake_privy.transport(),
    )
