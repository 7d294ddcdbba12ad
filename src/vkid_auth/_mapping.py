import logging
from collections.abc import Callable, Mapping
from typing import Any

from .exceptions import MissingIdentityError
from .models.identity import CanonicalIdentity

logger = logging.getLogger(__name__)

Extractor = Callable[[Mapping[str, Any], Mapping[str, Any]], Any]


def _user_field(name: str) -> Extractor:
    def extract(user_info: Mapping[str, Any], claims: Mapping[str, Any]) -> Any:
        user = user_info.get("user")

        if not isinstance(user, Mapping):
            return None

        return user.get(name)

    return extract


def _claim(name: str) -> Extractor:
    def extract(user_info: Mapping[str, Any], claims: Mapping[str, Any]) -> Any:
        return claims.get(name)

    return extract


# Sources for each identity field, in priority order
FIELD_SOURCES: dict[str, list[Extractor]] = {
    "provider_uid": [_user_field("user_id"), _claim("sub")],
    "email": [_user_field("email"), _claim("email")],
    "first_name": [_user_field("first_name"), _claim("given_name")],
    "last_name": [_user_field("last_name"), _claim("family_name")],
    "phone": [_user_field("phone")],
    "avatar_url": [_user_field("avatar"), _user_field("photo_200")],
}


def _is_absent(value: Any) -> bool:
    return value is None or value == ""


def first_present(
    extractors: list[Extractor],
    user_info: Mapping[str, Any],
    claims: Mapping[str, Any],
) -> Any:
    for extract in extractors:
        value = extract(user_info, claims)

        if not _is_absent(value):
            return value

    return None


def is_email_verified(claims: Mapping[str, Any], scope: str | None) -> bool:
    # A granted "email" scope counts as verification when VK ID sends no
    # explicit claim. This is a heuristic, not a guarantee of ownership.
    if claims.get("email_verified") is True:
        return True

    return "email" in (scope or "")


def map_identity(
    user_info: Mapping[str, Any],
    claims: Mapping[str, Any],
    scope: str | None,
) -> CanonicalIdentity:
    """Combine user info and ID token claims into a CanonicalIdentity.

    Raises:
        MissingIdentityError: If no user id is present in either source
    """
    values = {
        field: first_present(extractors, user_info, claims)
        for field, extractors in FIELD_SOURCES.items()
    }

    if values["provider_uid"] is None:
        logger.error(
            f"No user id in user info or id_token (scope={scope!r}, "
            f"user_info_present={bool(user_info)}, claims_present={bool(claims)})"
        )
        raise MissingIdentityError("No user id found in user info or id_token")

    return CanonicalIdentity(
        provider_uid=str(values["provider_uid"]),
        email=_as_optional_str(values["email"]),
        email_verified=is_email_verified(claims, scope),
        first_name=_as_optional_str(values["first_name"]),
        last_name=_as_optional_str(values["last_name"]),
        phone=_as_optional_str(values["phone"]),
        avatar_url=_as_optional_str(values["avatar_url"]),
        raw_claims=dict(claims),
        raw_user_info=dict(user_info),
        scope=scope or "",
    )


def _as_optional_str(value: Any) -> str | None:
    return None if value is None else str(value)
