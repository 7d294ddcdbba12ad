from typing import Any

from typing_extensions import Protocol


class SecondaryStorage(Protocol):
    def set(self, key: str, value: str): ...

    def get(self, key: str) -> str | None: ...

    def pop(self, key: str) -> str | None:
        """Atomically get and delete a key. Returns None if key doesn't exist."""
        ...


class LinkedAccount(Protocol):
    """Association between a local user and an external provider identity.

    (provider_name, provider_uid) identifies at most one local user.
    """

    id: Any
    user_id: Any
    provider_name: str
    provider_uid: str
    info: dict[str, Any]


class User(Protocol):
    id: Any
    username: str


class AccountsStorage(Protocol):
    def find_user_by_id(self, id: Any) -> User | None: ...

    def username_exists(self, username: str) -> bool: ...

    def find_linked_account(
        self,
        *,
        provider_name: str,
        provider_uid: str,
    ) -> LinkedAccount | None: ...

    def find_linked_account_for_user(
        self,
        *,
        provider_name: str,
        user_id: Any,
    ) -> LinkedAccount | None: ...

    def rename_linked_account_provider(
        self,
        linked_account_id: Any,
        *,
        provider_name: str,
    ) -> LinkedAccount:
        """Move a linked account to another provider namespace.

        The account keeps its user_id and provider_uid.
        """
        ...

    def update_linked_account_info(
        self,
        linked_account_id: Any,
        *,
        info: dict[str, Any],
    ) -> LinkedAccount: ...
