class VKIDException(Exception):
    def __init__(self, error: str, error_description: str | None = None) -> None:
        super().__init__(error, error_description)
        self.error = error
        self.error_description = error_description


class ConfigurationError(VKIDException):
    """Provider is disabled or missing credentials."""

    def __init__(self, error_description: str | None = None) -> None:
        super().__init__("provider_disabled", error_description)


class PKCEGenerationError(VKIDException):
    def __init__(self, error_description: str | None = None) -> None:
        super().__init__("server_error", error_description)


class TokenExchangeError(VKIDException):
    def __init__(self, error_description: str | None = None) -> None:
        super().__init__("token_exchange_failed", error_description)


class UserInfoFetchError(VKIDException):
    def __init__(self, error_description: str | None = None) -> None:
        super().__init__("user_info_unavailable", error_description)


class ClaimDecodeError(VKIDException):
    def __init__(self, error_description: str | None = None) -> None:
        super().__init__("invalid_id_token", error_description)


class MissingIdentityError(VKIDException):
    def __init__(self, error_description: str | None = None) -> None:
        super().__init__("missing_identity", error_description)


class MigrationError(VKIDException):
    def __init__(self, error_description: str | None = None) -> None:
        super().__init__("migration_failed", error_description)
