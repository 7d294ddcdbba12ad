import logging
from collections.abc import Callable

from lia import AsyncHTTPRequest, Response
from pydantic import ValidationError

from ._storage import AccountsStorage, SecondaryStorage
from .models.identity import AuthenticationResult
from .models.pending_authorization import PendingAuthorization

logger = logging.getLogger(__name__)


class AuthSession:
    """Pending authorization slot of one browser session.

    Holds at most one PendingAuthorization. ``take`` reads and clears it,
    so a verifier can only be used by a single token exchange.
    """

    def __init__(
        self, session_id: str, storage: SecondaryStorage, pending_ttl: int = 600
    ):
        self.session_id = session_id
        self.storage = storage
        self.pending_ttl = pending_ttl

    @property
    def key(self) -> str:
        return f"vkid:pending_authorization:{self.session_id}"

    def put(self, pending: PendingAuthorization) -> None:
        self.storage.set(self.key, pending.model_dump_json())

    def take(self) -> PendingAuthorization | None:
        raw = self.storage.pop(self.key)

        if raw is None:
            return None

        try:
            pending = PendingAuthorization.model_validate_json(raw)
        except ValidationError as e:
            logger.error("Invalid pending authorization data", exc_info=e)
            return None

        if pending.is_expired(self.pending_ttl):
            logger.warning("Pending authorization has expired")
            return None

        return pending


class Context:
    def __init__(
        self,
        secondary_storage: SecondaryStorage,
        accounts_storage: AccountsStorage,
        get_session_id: Callable[[AsyncHTTPRequest], str | None],
        complete_authentication: Callable[[AuthenticationResult], Response],
    ):
        self.secondary_storage = secondary_storage
        self.accounts_storage = accounts_storage
        self.get_session_id = get_session_id
        self.complete_authentication = complete_authentication

    def get_auth_session(
        self, request: AsyncHTTPRequest, pending_ttl: int = 600
    ) -> AuthSession | None:
        session_id = self.get_session_id(request)

        if not session_id:
            return None

        return AuthSession(session_id, self.secondary_storage, pending_ttl=pending_ttl)
