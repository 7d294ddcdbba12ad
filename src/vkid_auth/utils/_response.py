import json
from typing import Self

from lia import Response as DuckResponse

GENERIC_FAILURE_MESSAGE = "Authentication failed, please try again"


class Response(DuckResponse):
    @classmethod
    def error(
        cls,
        error: str,
        error_description: str | None = None,
        status_code: int = 400,
    ) -> Self:
        body = {"error": error}

        if error_description:
            body["error_description"] = error_description

        return cls(
            status_code=status_code,
            body=json.dumps(body),
            headers={"Content-Type": "application/json"},
        )

    @classmethod
    def generic_failure(cls) -> Self:
        """Failure shown to the end user, details stay in the server log."""
        return cls.error(
            "authentication_failed",
            error_description=GENERIC_FAILURE_MESSAGE,
        )

    @classmethod
    def provider_disabled(cls) -> Self:
        return cls.error(
            "provider_disabled",
            error_description="VK ID authentication is not available",
            status_code=404,
        )
