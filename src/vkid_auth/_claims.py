"""Unverified ID token claim extraction.

The signature of the ID token is NOT checked. Claims are only trustworthy
because the token arrives in the response of the server-to-server token
exchange, which is already authenticated with our client credentials.
Never pass an ID token that came from the browser to this function.
"""

import binascii
import json
import logging
from typing import Any

from jwt.utils import base64url_decode

from .exceptions import ClaimDecodeError

logger = logging.getLogger(__name__)


def _decode(id_token: str) -> dict[str, Any]:
    segments = id_token.split(".")

    if len(segments) != 3:
        raise ClaimDecodeError("ID token must have exactly three segments")

    # Only the payload is read, the header plays no part without verification
    try:
        claims = json.loads(base64url_decode(segments[1].encode()))
    except (binascii.Error, ValueError) as e:
        raise ClaimDecodeError(f"Invalid payload segment: {e}") from e

    if not isinstance(claims, dict):
        raise ClaimDecodeError("ID token payload is not an object")

    return claims


def decode_unverified_claims(id_token: str | None) -> dict[str, Any]:
    """Return the payload of ``id_token``, or an empty dict if it is malformed."""
    if not id_token:
        return {}

    try:
        claims = _decode(id_token)
    except ClaimDecodeError as e:
        logger.error(f"Failed to parse id_token: {e.error_description}")
        return {}

    logger.info(
        f"ID token parsed: sub_present={'sub' in claims}, "
        f"email_verified={claims.get('email_verified')}"
    )

    return claims
