"""Resource subclients."""

from .key_quorums import KeyQuorumsClient
from .policies import PoliciesClient
from .users import UsersClient
from .wallets import WalletsClient

__all__ = [
    "KeyQuorumsClient",
    "PoliciesClient",
    "UsersClient",
    "WalletsClient",
]
