"""Authentication hooks.

Both hooks inject an `Authorization: Bearer <token>` header in
`before_request`. `ClientCredentialsAuth` obtains its token with the OAuth2
client-credentials grant and refreshes it after a 401.
"""

import asyncio

import httpx

from .exceptions import AuthError, ConfigurationError, HTTPStatusError, RequestError
from .hooks import Hook
from .log_config import logger
from .types import Request


class AuthHook(Hook):
    """Adds a static Bearer token to every request.

    Suitable for APIs that use a pre-issued, long-lived token (e.g. a personal
    access token).

    Attributes:
        _token: The static API token.
    """

    def __init__(self, token: str | None):
        """Initializes AuthHook with the provided API token.

        Raises:
            ConfigurationError: If the token is None or empty.
        """
        if not token:
            raise ConfigurationError("AuthHook requires a non-empty 'token'.")
        self._token: str = token
        logger.debug("AuthHook initialized.")

    async def before_request(self, request: Request) -> Request:
        logger.trace("Authenticating request using AuthHook.")
        return request.with_header("Authorization", f"Bearer {self._token}")


class ClientCredentialsAuth(Hook):
    """Authenticates with the OAuth2 Client Credentials Grant.

    The token is fetched lazily on the first request and shared by all
    requests of the client. A lock prevents concurrent token requests. When an
    attempt fails with 401 the cached token is dropped, and the next retry
    fetches a fresh one.

    Attributes:
        _client_id: The OAuth2 client ID.
        _client_secret: The OAuth2 client secret.
        _token_url: The URL of the OAuth2 token endpoint.
        _access_token: The currently active access token.
        _token_client: An internal httpx.AsyncClient for fetching the token.
        _fetch_lock: An asyncio.Lock to prevent concurrent token fetches.
    """

    def __init__(
        self,
        client_id: str | None,
        client_secret: str | None,
        token_url: str | None,
        *,
        token_client: httpx.AsyncClient | None = None,
    ):
        if not all([client_id, client_secret, token_url]):
            raise ConfigurationError(
                "ClientCredentialsAuth requires 'client_id', 'client_secret', and 'token_url'."
            )
        assert client_id is not None, "client_id cannot be None here"
        assert client_secret is not None, "client_secret cannot be None here"
        assert token_url is not None, "token_url cannot be None here"
        self._client_id: str = client_id
        self._client_secret: str = client_secret
        self._token_url: str = token_url
        self._access_token: str | None = None
        self._token_client: httpx.AsyncClient | None = token_client
        self._should_close_client = token_client is None
        self._fetch_lock = asyncio.Lock()
        logger.debug("ClientCredentialsAuth initialized.")

    def _get_token_client(self) -> httpx.AsyncClient:
        """Lazily initializes the internal httpx.AsyncClient for token requests."""
        if self._token_client is None:
            self._token_client = httpx.AsyncClient(timeout=15.0)
        return self._token_client

    async def _fetch_access_token(self) -> str:
        """Fetches an access token, unless another task already did.

        Returns:
            The access token.

        Raises:
            AuthError: If the token endpoint fails or returns no token.
        """
        async with self._fetch_lock:
            # Double-check if token was fetched while waiting for the lock
            if self._access_token:
                return self._access_token

            logger.info(f"Fetching new access token from {self._token_url}")
            client = self._get_token_client()
            try:
                response = await client.post(
                    url=self._token_url,
                    auth=httpx.BasicAuth(
                        username=self._client_id, password=self._client_secret
                    ),
                    data={"grant_type": "client_credentials"},
                )
                response.raise_for_status()
                access_token = response.json().get("access_token")
            except httpx.HTTPStatusError as e:
                logger.error(
                    f"HTTP error fetching token: {e.response.status_code} - {e.response.text}"
                )
                raise AuthError(
                    f"Failed to fetch access token: {e.response.status_code} - {e.response.text}"
                ) from e
            except (httpx.RequestError, ValueError, AttributeError) as e:
                logger.error(f"Error fetching token: {e}")
                raise AuthError(f"Failed to fetch access token: {e}") from e

            if not access_token:
                raise AuthError("Access token not found in token response.")
            logger.info("Successfully fetched new access token.")
            self._access_token = access_token
            return access_token

    async def _authenticate(self, request: Request) -> Request:
        token = self._access_token or await self._fetch_access_token()
        return request.with_header("Authorization", f"Bearer {token}")

    async def before_request(self, request: Request) -> Request:
        logger.trace("Authenticating request using ClientCredentialsAuth.")
        return await self._authenticate(request)

    async def before_retry(
        self, request: Request, error: RequestError, attempt_number: int
    ) -> Request:
        return await self._authenticate(request)

    async def on_error(self, request: Request, error: RequestError) -> RequestError:
        if isinstance(error, HTTPStatusError) and error.status == 401:
            logger.info("Received 401; discarding cached access token.")
            self._access_token = None
        return error

    async def aclose(self) -> None:
        """Closes the internal HTTP client used for token fetching."""
        if self._token_client and self._should_close_client:
            await self._token_client.aclose()
            self._token_client = None
            logger.debug("ClientCredentialsAuth internal client closed.")
