import uuid
from dataclasses import dataclass, field
from typing import Any

import pytest
from lia import AsyncHTTPRequest, Response

from vkid_auth._config import VKIDConfig
from vkid_auth._context import Context
from vkid_auth._storage import SecondaryStorage
from vkid_auth.models.identity import AuthenticationResult


@dataclass
class User:
    id: str
    username: str


@dataclass
class LinkedAccount:
    id: str
    user_id: str
    provider_name: str
    provider_uid: str
    info: dict[str, Any] = field(default_factory=dict)


class MemoryStorage(SecondaryStorage):
    def __init__(self):
        self.data = {}

    def set(self, key: str, value: str):
        self.data[key] = value

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def pop(self, key: str) -> str | None:
        """Atomically get and delete a key. Returns None if key doesn't exist."""
        return self.data.pop(key, None)


class MemoryAccountsStorage:
    def __init__(self):
        self.users: dict[str, User] = {
            "1": User(id="1", username="ivan"),
        }
        self.linked_accounts: list[LinkedAccount] = []

    def add_linked_account(
        self, *, user_id: str, provider_name: str, provider_uid: str
    ) -> LinkedAccount:
        linked_account = LinkedAccount(
            id=str(uuid.uuid4()),
            user_id=user_id,
            provider_name=provider_name,
            provider_uid=provider_uid,
        )
        self.linked_accounts.append(linked_account)

        return linked_account

    def find_user_by_id(self, id: Any) -> User | None:
        return self.users.get(id)

    def username_exists(self, username: str) -> bool:
        return any(user.username == username for user in self.users.values())

    def find_linked_account(
        self, *, provider_name: str, provider_uid: str
    ) -> LinkedAccount | None:
        return next(
            (
                linked_account
                for linked_account in self.linked_accounts
                if linked_account.provider_name == provider_name
                and linked_account.provider_uid == provider_uid
            ),
            None,
        )

    def find_linked_account_for_user(
        self, *, provider_name: str, user_id: Any
    ) -> LinkedAccount | None:
        return next(
            (
                linked_account
                for linked_account in self.linked_accounts
                if linked_account.provider_name == provider_name
                and linked_account.user_id == user_id
            ),
            None,
        )

    def _get(self, linked_account_id: Any) -> LinkedAccount:
        linked_account = next(
            (a for a in self.linked_accounts if a.id == linked_account_id), None
        )

        if linked_account is None:
            raise ValueError("Linked account does not exist")

        return linked_account

    def rename_linked_account_provider(
        self, linked_account_id: Any, *, provider_name: str
    ) -> LinkedAccount:
        linked_account = self._get(linked_account_id)
        linked_account.provider_name = provider_name

        return linked_account

    def update_linked_account_info(
        self, linked_account_id: Any, *, info: dict[str, Any]
    ) -> LinkedAccount:
        linked_account = self._get(linked_account_id)
        linked_account.info = info

        return linked_account


class SessionHost:
    """Stands in for the forum's session subsystem."""

    def __init__(self):
        self.results: list[AuthenticationResult] = []

    def get_session_id(self, request: AsyncHTTPRequest) -> str | None:
        return request.headers.get("X-Session-Id")

    def complete_authentication(self, result: AuthenticationResult) -> Response:
        self.results.append(result)

        return Response(status_code=302, body="", headers={"Location": "/"})


@pytest.fixture
def secondary_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def accounts_storage() -> MemoryAccountsStorage:
    return MemoryAccountsStorage()


@pytest.fixture
def session_host() -> SessionHost:
    return SessionHost()


@pytest.fixture
def config() -> VKIDConfig:
    return VKIDConfig(
        enabled=True,
        client_id="test_client_id",
        client_secret="test_client_secret",
        base_url="https://forum.example.com",
    )


@pytest.fixture
def context(
    secondary_storage: MemoryStorage,
    accounts_storage: MemoryAccountsStorage,
    session_host: SessionHost,
) -> Context:
    return Context(
        secondary_storage=secondary_storage,
        accounts_storage=accounts_storage,
        get_session_id=session_host.get_session_id,
        complete_authentication=session_host.complete_authentication,
    )
