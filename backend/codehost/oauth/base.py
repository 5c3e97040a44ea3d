"""Base code host OAuth adapter.

Defines the contract every code host adapter implements: build the
authorize URL that carries our opaque state, and exchange the
authorization code delivered to the callback for a token pair.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx

from codehost.core.errors import ProviderExchangeError


@dataclass
class OAuthToken:
    """Token pair returned by a code host."""

    access_token: str
    refresh_token: str = ""
    token_type: str | None = None
    expires_in: int | None = None


@dataclass
class OAuthConfig:
    """Adapter configuration, built per request from a code host record."""

    callback_url: str
    client_id: str
    client_secret: str
    address: str = ""

    # Scopes to request (provider defaults when empty)
    scopes: list[str] = field(default_factory=list)

    # Timeout for token endpoint calls, in seconds
    timeout: float = 10.0


class CodeHostOAuth(ABC):
    """Abstract base class for code host OAuth adapters.

    Each adapter must implement:
    - login_url(): authorize-endpoint URL embedding the opaque state
    - handle_callback(): exchange the callback's code for tokens
    """

    def __init__(
        self,
        config: OAuthConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self._transport = transport

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider kind handled by this adapter (e.g. 'github')."""
        pass

    @property
    @abstractmethod
    def default_address(self) -> str:
        """Base URL used when the record carries no address."""
        pass

    @abstractmethod
    def login_url(self, state: str) -> str:
        """Build the authorize URL.

        Args:
            state: Opaque token the code host must echo back unchanged

        Returns:
            Full authorization URL to redirect the user to
        """
        pass

    @abstractmethod
    async def handle_callback(self, params: Mapping[str, str]) -> OAuthToken:
        """Exchange the callback's authorization code for tokens.

        Args:
            params: Query parameters the code host sent to the callback

        Returns:
            Access/refresh token pair

        Raises:
            ProviderExchangeError: the code host denied or failed the exchange
        """
        pass

    @abstractmethod
    def _default_scopes(self) -> list[str]:
        """Default scopes for this provider."""
        pass

    @property
    def base_url(self) -> str:
        """Code host base URL without trailing slash."""
        return (self.config.address or self.default_address).rstrip("/")

    def get_scopes(self) -> list[str]:
        """Configured scopes or provider defaults."""
        return self.config.scopes or self._default_scopes()

    def authorization_code(self, params: Mapping[str, str]) -> str:
        """Pull the authorization code out of callback parameters.

        Raises:
            ProviderExchangeError: the code host reported an error, or sent no code
        """
        if error := params.get("error"):
            description = params.get("error_description") or error
            raise ProviderExchangeError(f"{self.provider_name} authorization failed: {description}")

        code = params.get("code")
        if not code:
            raise ProviderExchangeError(f"{self.provider_name} callback is missing the authorization code")
        return code

    async def _request_token(self, url: str, data: dict[str, str]) -> dict[str, Any]:
        """POST to a token endpoint and return the decoded JSON body."""
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.config.timeout) as client:
                response = await client.post(
                    url,
                    data=data,
                    headers={"Accept": "application/json"},
                )
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            # Unparseable code host addresses surface as InvalidURL or ValueError
            raise ProviderExchangeError(f"{self.provider_name} token request failed: {e}") from e

        if response.status_code != 200:
            raise ProviderExchangeError(f"Token exchange failed: {response.text}")

        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderExchangeError(f"{self.provider_name} returned a non-JSON token response") from e

        if not isinstance(payload, dict):
            raise ProviderExchangeError(f"{self.provider_name} returned an unexpected token response")
        if error := payload.get("error"):
            description = payload.get("error_description") or error
            raise ProviderExchangeError(f"Token exchange failed: {description}")
        if not payload.get("access_token"):
            raise ProviderExchangeError(f"{self.provider_name} token response has no access_token")

        return payload

    @staticmethod
    def _expires_in(value: Any) -> int | None:
        """Token lifetime in seconds, or None when absent or unreadable."""
        if value is None or isinstance(value, bool):
            return None
        try:
            return int(float(value))
        except (TypeError, ValueError, OverflowError):
            return None

    def _token_from_payload(self, payload: dict[str, Any]) -> OAuthToken:
        access_token = payload["access_token"]
        refresh_token = payload.get("refresh_token") or ""
        if not isinstance(access_token, str) or not isinstance(refresh_token, str):
            raise ProviderExchangeError(f"{self.provider_name} returned an unexpected token response")

        return OAuthToken(
            access_token=access_token,
            refresh_token=refresh_token,
            token_type=payload.get("token_type"),
            expires_in=self._expires_in(payload.get("expires_in")),
        )
