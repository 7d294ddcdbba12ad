import base64
import hashlib
import secrets

from ..exceptions import PKCEGenerationError

# 32 random bytes encode to 43 URL-safe characters, the minimum PKCE allows
VERIFIER_BYTES = 32


def _urlsafe_nopad(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def generate_code_verifier() -> str:
    """Generate a PKCE code verifier (43-128 characters)."""
    try:
        random_bytes = secrets.token_bytes(VERIFIER_BYTES)
    except (NotImplementedError, OSError) as e:
        raise PKCEGenerationError("No randomness source available") from e

    return _urlsafe_nopad(random_bytes)


def calculate_s256_challenge(verifier: str) -> str:
    return _urlsafe_nopad(hashlib.sha256(verifier.encode("ascii")).digest())


def generate_state() -> str:
    try:
        return secrets.token_hex(16)
    except (NotImplementedError, OSError) as e:
        raise PKCEGenerationError("No randomness source available") from e
