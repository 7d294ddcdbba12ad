from vkid_auth._claims import decode_unverified_claims
from vkid_auth._config import VKIDConfig
from vkid_auth._context import AuthSession, Context
from vkid_auth._mapping import map_identity
from vkid_auth._resolver import (
    LEGACY_PROVIDER_NAME,
    PROVIDER_NAME,
    AccountResolver,
    primary_email_verified,
)
from vkid_auth.models.identity import AuthenticationResult, CanonicalIdentity
from vkid_auth.models.pending_authorization import PendingAuthorization
from vkid_auth.social_providers.vkid import VKIDProvider

__all__ = [
    "LEGACY_PROVIDER_NAME",
    "PROVIDER_NAME",
    "AccountResolver",
    "AuthSession",
    "AuthenticationResult",
    "CanonicalIdentity",
    "Context",
    "PendingAuthorization",
    "VKIDConfig",
    "VKIDProvider",
    "decode_unverified_claims",
    "map_identity",
    "primary_email_verified",
]
