"""User endpoints. Authenticated with the app secret only."""

from typing import Any

from ..models import User, UserList
from .base import SubClient


class UsersClient(SubClient):
    async def create(self, body: Any) -> User:
        data = await self._request("POST", "/v1/users", "create_user", body)
        return self._parse(User, data)

    async def get(self, user_id: str) -> User:
        data = await self._request("GET", f"/v1/users/{user_id}", "get_user")
        return self._parse(User, data)

    async def list(self, cursor: str | None = None, limit: int | None = None) -> UserList:
        data = await self._request(
            "GET", "/v1/users", "get_users", params={"cursor": cursor, "limit": limit}
        )
        return self._parse(UserList, data)

    async def delete(self, user_id: str) -> None:
        await self._request("DELETE", f"/v1/users/{user_id}", "delete_user")
