from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CanonicalIdentity(BaseModel):
    """Provider data for one authentication event, normalized."""

    model_config = ConfigDict(frozen=True)

    provider_uid: str
    email: str | None = None
    email_verified: bool = False
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    avatar_url: str | None = None
    raw_claims: dict[str, Any] = Field(default_factory=dict)
    raw_user_info: dict[str, Any] = Field(default_factory=dict)
    scope: str = ""

    @property
    def name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


@dataclass
class AuthenticationResult:
    email: str | None
    email_valid: bool
    username: str
    name: str
    avatar_url: str | None = None
    extra_data: dict[str, Any] = field(default_factory=dict)

    # Owner of the matched or migrated linked account, None for new accounts
    user: Any | None = None
