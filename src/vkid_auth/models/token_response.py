from pydantic import BaseModel, Field, RootModel


class TokenResponse(BaseModel):
    token_type: str | None = Field(
        None, description="The type of token, usually 'Bearer'"
    )

    access_token: str = Field(description="The issued access token")
    expires_in: int | None = Field(
        None, description="Lifetime of the access token in seconds"
    )
    refresh_token: str | None = Field(
        None, description="Token used to obtain new access tokens"
    )
    id_token: str | None = Field(
        None,
        description="Compact JWT with identity claims, issued alongside the access token",
    )
    scope: str | None = Field(
        None,
        description="Space-delimited list of scopes granted to the access token",
    )
    user_id: int | str | None = Field(
        None, description="VK ID user identifier the token was issued for"
    )
    state: str | None = Field(None, description="State echoed back by VK ID")


class TokenErrorResponse(BaseModel):
    error: str = Field(description="OAuth 2.0 error code")
    error_description: str | None = Field(
        None, description="Human-readable explanation of the error"
    )
    state: str | None = None


class TokenEndpointResponse(RootModel):
    root: TokenResponse | TokenErrorResponse

    def is_error(self) -> bool:
        return isinstance(self.root, TokenErrorResponse)
