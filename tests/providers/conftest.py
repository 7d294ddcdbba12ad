import base64
import json

import jwt
import pytest
from lia import AsyncHTTPRequest
from lia.request import TestingRequestAdapter

from vkid_auth._config import VKIDConfig
from vkid_auth.social_providers.vkid import VKIDProvider

SESSION_ID = "test_session"
SIGNING_KEY = "test-signing-key-of-at-least-32-bytes"


@pytest.fixture
def vkid_provider(config: VKIDConfig) -> VKIDProvider:
    return VKIDProvider(config)


def make_request(
    path: str,
    query_params: dict[str, str] | None = None,
    session_id: str | None = SESSION_ID,
) -> AsyncHTTPRequest:
    headers = {"X-Session-Id": session_id} if session_id else {}

    return AsyncHTTPRequest(
        TestingRequestAdapter(
            method="GET",
            url=f"https://forum.example.com{path}",
            query_params=query_params or {},
            headers=headers,
        )
    )


def make_id_token(claims: dict) -> str:
    return jwt.encode(claims, SIGNING_KEY, algorithm="HS256")


def make_unsigned_token(payload: str) -> str:
    """Compact token whose payload segment is arbitrary text."""

    def encode(value: str) -> str:
        return base64.urlsafe_b64encode(value.encode()).rstrip(b"=").decode()

    header = encode(json.dumps({"alg": "HS256", "typ": "JWT"}))

    return f"{header}.{encode(payload)}.c2lnbmF0dXJl"


@pytest.fixture
def user_info_response() -> dict:
    return {
        "user": {
            "user_id": "12345",
            "first_name": "Ivan",
            "last_name": "Petrov",
            "phone": "79991234567",
            "avatar": "https://sun1.userapi.com/test.jpg",
            "email": "test@example.com",
            "sex": 2,
            "verified": False,
            "birthday": "01.01.2000",
        }
    }


@pytest.fixture
def token_response() -> dict:
    return {
        "access_token": "test_access_token",
        "refresh_token": "test_refresh_token",
        "id_token": make_id_token(
            {"sub": "12345", "email": "test@example.com", "email_verified": True}
        ),
        "token_type": "Bearer",
        "expires_in": 3600,
        "user_id": 12345,
        "state": "test_state",
        "scope": "profile email phone",
    }
