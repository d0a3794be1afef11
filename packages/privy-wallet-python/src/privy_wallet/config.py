"""Client configuration."""

import os
from dataclasses import dataclass

from .types import DEFAULT_BASE_URL, ErrorCode, PrivyError


@dataclass
class ClientConfig:
    """Configuration for a :class:`~privy_wallet.client.PrivyClient`."""

    app_id: str
    app_secret: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 15.0
    cache_capacity: int = 1000  # JWT exchange cache entries
    expiry_buffer: float = 60.0  # seconds before expiry a cached key is stale
    # Privy's own key cache is eventually consistent; a freshly exchanged key
    # is not usable server-side until it settles. Set to 0 to disable.
    exchange_settle_delay: float = 1.0

    def __post_init__(self) -> None:
        if not self.app_id:
            raise PrivyError(ErrorCode.INVALID_CONFIG, "app_id is required")
        if not self.app_secret:
            raise PrivyError(ErrorCode.INVALID_CONFIG, "app_secret is required")
        if self.cache_capacity < 1:
            raise PrivyError(ErrorCode.INVALID_CONFIG, "cache_capacity must be positive")
        self.base_url = self.base_url.rstrip("/")

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Build a config from ``PRIVY_APP_ID``, ``PRIVY_APP_SECRET`` and ``PRIVY_BASE_URL``."""
        return cls(
            app_id=os.getenv("PRIVY_APP_ID", ""),
            app_secret=os.getenv("PRIVY_APP_SECRET", ""),
            base_url=os.getenv("PRIVY_BASE_URL", DEFAULT_BASE_URL),
        )
