from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .exceptions import ConfigurationError

DEFAULT_SCOPE = "profile email phone"


@dataclass
class VKIDConfig:
    """Settings the host exposes for the VK ID provider."""

    enabled: bool = False
    client_id: str | None = None
    client_secret: str | None = None

    # Overrides DEFAULT_SCOPE when set
    scope: str | None = None

    # Public URL of the forum, the callback path is appended to it
    base_url: str | None = None
    callback_path: str = "/auth/vkid/callback"

    provider_base: str = "https://id.vk.ru"

    # Seconds, applied to the token and user info requests
    timeout: float = 5.0

    # Seconds a pending authorization stays usable
    pending_ttl: int = 600

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> VKIDConfig:
        return cls(
            enabled=bool(settings.get("vkid_enabled", False)),
            client_id=settings.get("vkid_client_id") or None,
            client_secret=settings.get("vkid_client_secret") or None,
            scope=settings.get("vkid_scope") or None,
            base_url=settings.get("vkid_callback_base_url") or None,
        )

    @property
    def effective_scope(self) -> str:
        if self.scope and self.scope.strip():
            return self.scope.strip()

        return DEFAULT_SCOPE

    @property
    def redirect_uri(self) -> str:
        if not self.base_url:
            raise ConfigurationError("No callback base URL configured")

        return f"{self.base_url.rstrip('/')}/{self.callback_path.lstrip('/')}"

    @property
    def authorization_endpoint(self) -> str:
        return f"{self.provider_base}/authorize"

    @property
    def token_endpoint(self) -> str:
        return f"{self.provider_base}/oauth2/auth"

    @property
    def user_info_endpoint(self) -> str:
        return f"{self.provider_base}/oauth2/user_info"

    def validate(self) -> None:
        if not self.enabled:
            raise ConfigurationError("VK ID authentication is disabled")

        if not self.client_id:
            raise ConfigurationError("No client_id configured")

        if not self.client_secret:
            raise ConfigurationError("No client_secret configured")

        if not self.base_url:
            raise ConfigurationError("No callback base URL configured")
