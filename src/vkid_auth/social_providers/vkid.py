import logging
from typing import Any, ClassVar
from urllib.parse import urlencode

import httpx
from lia import AsyncHTTPRequest
from pydantic import ValidationError

from vkid_auth.exceptions import (
    ConfigurationError,
    TokenExchangeError,
    UserInfoFetchError,
    VKIDException,
)
from vkid_auth.utils._pkce import (
    calculate_s256_challenge,
    generate_code_verifier,
    generate_state,
)
from vkid_auth.utils._response import Response

from .._claims import decode_unverified_claims
from .._config import VKIDConfig
from .._context import AuthSession, Context
from .._mapping import map_identity
from .._resolver import PROVIDER_NAME, AccountResolver
from .._storage import AccountsStorage
from ..models.identity import AuthenticationResult, CanonicalIdentity
from ..models.pending_authorization import PendingAuthorization
from ..models.token_response import (
    TokenEndpointResponse,
    TokenErrorResponse,
    TokenResponse,
)

logger = logging.getLogger(__name__)


def _prefix(value: str | None, length: int = 10) -> str:
    if not value:
        return "<none>"

    return f"{value[:length]}..."


class AuthenticationAttempt:
    """Data gathered for one callback, each source fetched at most once."""

    def __init__(self, provider: "VKIDProvider", token_response: TokenResponse):
        self.provider = provider
        self.token_response = token_response
        self._user_info: dict[str, Any] | None = None
        self._id_token_claims: dict[str, Any] | None = None

    @property
    def user_info(self) -> dict[str, Any]:
        if self._user_info is None:
            self._user_info = self.provider.fetch_user_info(
                self.token_response.access_token
            )

        return self._user_info

    @property
    def id_token_claims(self) -> dict[str, Any]:
        if self._id_token_claims is None:
            self._id_token_claims = decode_unverified_claims(
                self.token_response.id_token
            )

        return self._id_token_claims

    @property
    def scope(self) -> str | None:
        return self.token_response.scope

    def identity(self) -> CanonicalIdentity:
        return map_identity(self.user_info, self.id_token_claims, self.scope)


class VKIDProvider:
    """VK ID sign in: OAuth 2.1 authorization code flow with mandatory PKCE."""

    id: ClassVar[str] = PROVIDER_NAME

    def __init__(self, config: VKIDConfig):
        self.config = config

    @property
    def enabled(self) -> bool:
        try:
            self.config.validate()
        except ConfigurationError:
            return False

        return True

    def build_authorization_params(
        self, code_challenge: str, state: str
    ) -> dict[str, str]:
        return {
            "response_type": "code",
            "client_id": self.config.client_id or "",
            "redirect_uri": self.config.redirect_uri,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
            "state": state,
            "scope": self.config.effective_scope,
            "prompt": "login",
        }

    def start_authorization(self, session: AuthSession) -> dict[str, str]:
        """Issue a pending authorization for ``session`` and return the query
        parameters for the redirect to the authorization endpoint.

        Raises:
            ConfigurationError: If the provider is disabled or misconfigured
            PKCEGenerationError: If no randomness source is available
        """
        self.config.validate()

        verifier = generate_code_verifier()
        state = generate_state()

        session.put(PendingAuthorization(verifier=verifier, state=state))

        params = self.build_authorization_params(
            code_challenge=calculate_s256_challenge(verifier), state=state
        )

        logger.info(
            f"Authorization started: challenge_method=S256, scope={params['scope']}"
        )

        return params

    def authorization_url(self, session: AuthSession) -> str:
        """Start an authorization for ``session`` and return the VK ID URL
        to redirect the browser to.
        """
        params = self.start_authorization(session)

        return f"{self.config.authorization_endpoint}?{urlencode(params)}"

    def build_token_exchange_params(
        self, code: str, code_verifier: str, device_id: str | None
    ) -> dict[str, str]:
        params = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.config.redirect_uri,
            "code_verifier": code_verifier,
            "client_id": self.config.client_id or "",
            "client_secret": self.config.client_secret or "",
        }

        if device_id:
            params["device_id"] = device_id

        return params

    def send_token_request(self, data: dict[str, str]) -> httpx.Response:
        """Send the token request, the client secret goes in the Authorization
        header and never in the body.
        """
        body = dict(data)
        client_secret = body.pop("client_secret", None)

        auth = None

        if client_secret:
            auth = httpx.BasicAuth(self.config.client_id or "", client_secret)

        return httpx.post(
            self.config.token_endpoint,
            headers={
                "Accept": "application/json",
                "Content-Type": "application/x-www-form-urlencoded",
            },
            data=body,
            auth=auth,
            timeout=self.config.timeout,
        )

    def parse_token_response(
        self, response: httpx.Response
    ) -> TokenEndpointResponse | None:
        try:
            return TokenEndpointResponse.model_validate_json(response.text)
        except ValidationError as e:
            logger.error(f"Failed to parse token response: {str(e)}")
            return None

    def exchange_code(
        self, code: str, code_verifier: str, device_id: str | None
    ) -> TokenResponse:
        """Exchange the authorization code for tokens.

        Raises:
            TokenExchangeError: If the request fails or VK ID rejects it
        """
        logger.info(
            f"Token exchange: device_id={device_id}, "
            f"verifier_present={bool(code_verifier)}"
        )

        try:
            params = self.build_token_exchange_params(code, code_verifier, device_id)

            response = self.send_token_request(params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"HTTP error during token exchange: {e.response.status_code}"
            )
            raise TokenExchangeError("Token exchange failed") from e
        except httpx.RequestError as e:
            logger.error(f"Failed to exchange code for token: {str(e)}")
            raise TokenExchangeError("Failed to exchange code for token") from e

        token_response = self.parse_token_response(response)

        if token_response is None:
            raise TokenExchangeError("Failed to parse token response")

        if token_response.is_error():
            assert isinstance(token_response.root, TokenErrorResponse)

            logger.error(f"Token exchange failed: {token_response.root.error}")

            raise TokenExchangeError(
                f"Token exchange failed: {token_response.root.error}"
            )

        assert isinstance(token_response.root, TokenResponse)
        return token_response.root

    def _request_user_info(self, access_token: str) -> dict[str, Any]:
        try:
            response = httpx.post(
                self.config.user_info_endpoint,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                data={
                    "access_token": access_token,
                    "client_id": self.config.client_id or "",
                },
                timeout=self.config.timeout,
            )
            response.raise_for_status()
            user_info = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise UserInfoFetchError(str(e)) from e

        if not isinstance(user_info, dict) or not isinstance(
            user_info.get("user"), dict
        ):
            raise UserInfoFetchError("Response has no user object")

        return user_info

    def fetch_user_info(self, access_token: str) -> dict[str, Any]:
        """Fetch the user profile. Returns an empty dict if it is unavailable."""
        try:
            user_info = self._request_user_info(access_token)
        except UserInfoFetchError as e:
            logger.error(f"Failed to fetch user info: {e.error_description}")
            return {}

        user = user_info["user"]
        logger.info(
            f"User info fetched: user_id={_prefix(str(user.get('user_id')), 4)}, "
            f"email_present={bool(user.get('email'))}"
        )

        return user_info

    def authenticate(
        self,
        code: str,
        device_id: str | None,
        pending: PendingAuthorization,
        accounts_storage: AccountsStorage,
    ) -> AuthenticationResult:
        """Run the flow from the authorization code to an AuthenticationResult.

        Raises:
            TokenExchangeError: If the code can't be exchanged
            MissingIdentityError: If no user id can be derived
        """
        token_response = self.exchange_code(code, pending.verifier, device_id)

        attempt = AuthenticationAttempt(self, token_response)
        identity = attempt.identity()

        return AccountResolver(accounts_storage, provider_name=self.id).resolve(
            identity
        )

    async def authorize(self, request: AsyncHTTPRequest, context: Context) -> Response:
        """Redirect the browser to VK ID's authorization page."""
        if not self.enabled:
            logger.error("Authorization requested but VK ID is disabled")
            return Response.provider_disabled()

        session = context.get_auth_session(request, self.config.pending_ttl)

        if session is None:
            logger.error("No session found for authorization request")
            return Response.generic_failure()

        try:
            location = self.authorization_url(session)
        except VKIDException as e:
            logger.error(f"Request phase error: {e.error} - {e.error_description}")
            return Response.generic_failure()

        return Response(status_code=302, body="", headers={"Location": location})

    async def callback(self, request: AsyncHTTPRequest, context: Context) -> Response:
        """Handle VK ID redirecting back with ``code``, ``device_id`` and
        ``state``, and hand the result to the host.
        """
        code = request.query_params.get("code")
        device_id = request.query_params.get("device_id")
        state = request.query_params.get("state")

        logger.info(
            f"Callback phase started: code={_prefix(code)}, "
            f"device_id={device_id}, state={_prefix(state)}"
        )

        if not self.enabled:
            logger.error("Callback received but VK ID is disabled")
            return Response.provider_disabled()

        session = context.get_auth_session(request, self.config.pending_ttl)

        if session is None:
            logger.error("No session found for callback")
            return Response.generic_failure()

        # Taken before anything else so the verifier can't be replayed
        pending = session.take()

        if error := request.query_params.get("error"):
            logger.error(
                f"VK ID returned an error: {error} - "
                f"{request.query_params.get('error_description')}"
            )
            return Response.generic_failure()

        if pending is None:
            logger.error("No pending authorization found for session")
            return Response.generic_failure()

        if not code:
            logger.error("No authorization code received in callback")
            return Response.generic_failure()

        if not device_id:
            logger.warning("No device_id received in callback")

        try:
            result = self.authenticate(
                code, device_id, pending, context.accounts_storage
            )
        except VKIDException as e:
            logger.error(f"Callback phase error: {e.error} - {e.error_description}")
            return Response.generic_failure()
        except Exception as e:
            logger.error(
                f"Callback phase error: {e.__class__.__name__}", exc_info=e
            )
            return Response.generic_failure()

        return context.complete_authentication(result)
