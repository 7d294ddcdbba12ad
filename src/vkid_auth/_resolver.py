import logging
import re
from typing import Any

from ._storage import AccountsStorage, LinkedAccount, User
from .exceptions import MigrationError
from .models.identity import AuthenticationResult, CanonicalIdentity

logger = logging.getLogger(__name__)

# Persisted in linked accounts, must never change once deployed
PROVIDER_NAME = "vkid"
LEGACY_PROVIDER_NAME = "vkontakte"

MAX_USERNAME_LENGTH = 20
MAX_USERNAME_ATTEMPTS = 1000

INVALID_USERNAME_CHARS = re.compile(r"[^a-zA-Z0-9_]")


def primary_email_verified(identity: CanonicalIdentity) -> bool:
    """Strict check: only an explicit ``email_verified: true`` claim counts."""
    return identity.raw_claims.get("email_verified") is True


class AccountResolver:
    def __init__(
        self,
        accounts_storage: AccountsStorage,
        provider_name: str = PROVIDER_NAME,
        legacy_provider_name: str = LEGACY_PROVIDER_NAME,
    ):
        self.accounts_storage = accounts_storage
        self.provider_name = provider_name
        self.legacy_provider_name = legacy_provider_name

    def resolve(self, identity: CanonicalIdentity) -> AuthenticationResult:
        uid_prefix = identity.provider_uid[:4]
        logger.info(f"Resolving account for uid={uid_prefix}...")

        user: User | None = None

        linked_account = self.accounts_storage.find_linked_account(
            provider_name=self.provider_name,
            provider_uid=identity.provider_uid,
        )

        if linked_account:
            try:
                self.accounts_storage.update_linked_account_info(
                    linked_account.id, info=self.account_info(identity)
                )
            except Exception as e:
                logger.error(
                    f"Failed to refresh linked account info for "
                    f"uid={uid_prefix}...: {e.__class__.__name__}"
                )

            user = self.accounts_storage.find_user_by_id(linked_account.user_id)

            if user is None:
                logger.warning(
                    f"Linked account for uid={uid_prefix}... points to missing "
                    f"user_id={linked_account.user_id}"
                )
        else:
            try:
                user = self.migrate_legacy_account(identity.provider_uid)
            except MigrationError as e:
                logger.error(
                    f"Migration failed for uid={uid_prefix}...: {e.error_description}"
                )
                user = None

        if user is not None:
            username = user.username
        else:
            username = self.generate_username(identity)

        result = AuthenticationResult(
            email=identity.email,
            email_valid=identity.email_verified,
            username=username,
            name=identity.name,
            avatar_url=identity.avatar_url,
            extra_data={
                f"{self.provider_name}_user_id": identity.provider_uid,
                f"{self.provider_name}_first_name": identity.first_name,
                f"{self.provider_name}_last_name": identity.last_name,
                f"{self.provider_name}_phone": identity.phone,
                f"{self.provider_name}_scope": identity.scope,
            },
            user=user,
        )

        logger.info(
            f"Auth result for uid={uid_prefix}...: username={result.username}, "
            f"email_valid={result.email_valid}, existing_user={user is not None}"
        )

        return result

    def migrate_legacy_account(self, provider_uid: str) -> User | None:
        """Move a legacy linked account with the same uid to this provider.

        Returns the owner of the migrated account, or None when there is no
        legacy account. Once migrated, the account is found by the regular
        lookup and this is never reached again for that uid.

        Raises:
            MigrationError: If looking up or updating the legacy account fails
        """
        try:
            legacy_account = self.accounts_storage.find_linked_account(
                provider_name=self.legacy_provider_name,
                provider_uid=provider_uid,
            )

            if legacy_account is None:
                return None

            logger.info(
                f"Found {self.legacy_provider_name} account for "
                f"uid={provider_uid[:4]}..., user_id={legacy_account.user_id}"
            )

            migrated = self.accounts_storage.rename_linked_account_provider(
                legacy_account.id, provider_name=self.provider_name
            )

            user = self.accounts_storage.find_user_by_id(migrated.user_id)
        except Exception as e:
            raise MigrationError(str(e)) from e

        logger.info(
            f"Migrated account to {self.provider_name}: user_id={migrated.user_id}"
        )

        return user

    def generate_username(self, identity: CanonicalIdentity) -> str:
        if identity.first_name:
            candidate = identity.first_name.lower()
        elif identity.email:
            candidate = identity.email.split("@")[0]
        else:
            candidate = f"{self.provider_name}_{identity.provider_uid}"

        candidate = INVALID_USERNAME_CHARS.sub("_", candidate)
        candidate = candidate[:MAX_USERNAME_LENGTH]

        return self.ensure_unique_username(candidate)

    def ensure_unique_username(self, username: str) -> str:
        """Append ``_<n>`` until the username is free.

        Gives up after MAX_USERNAME_ATTEMPTS and returns the last candidate,
        which may still be taken. The host's unique constraint is the final
        check.
        """
        original = username
        counter = 1

        while self.accounts_storage.username_exists(username):
            username = f"{original}_{counter}"
            counter += 1

            if counter > MAX_USERNAME_ATTEMPTS:
                logger.warning(
                    f"Could not find a free username for {original!r} "
                    f"after {MAX_USERNAME_ATTEMPTS} attempts"
                )
                break

        return username

    def account_info(self, identity: CanonicalIdentity) -> dict[str, Any]:
        return {
            "email": identity.email,
            "name": identity.name or None,
            "first_name": identity.first_name,
            "last_name": identity.last_name,
            "phone": identity.phone,
            "image": identity.avatar_url,
        }

    def describe_user(self, user: User) -> str:
        """Short label for the user's linked VK ID account, name or email."""
        linked_account: LinkedAccount | None = (
            self.accounts_storage.find_linked_account_for_user(
                provider_name=self.provider_name, user_id=user.id
            )
        )

        if linked_account is None or not linked_account.info:
            return ""

        info = linked_account.info

        return info.get("name") or info.get("email") or ""
