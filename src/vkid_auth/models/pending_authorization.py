from datetime import datetime, timedelta, timezone

from pydantic import AwareDatetime, BaseModel, Field


class PendingAuthorization(BaseModel):
    """PKCE secret issued for one authorization request of one session."""

    verifier: str = Field(min_length=43, max_length=128)
    state: str
    created_at: AwareDatetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)
    )

    def is_expired(self, ttl: int) -> bool:
        return self.created_at + timedelta(seconds=ttl) < datetime.now(
            tz=timezone.utc
        )
