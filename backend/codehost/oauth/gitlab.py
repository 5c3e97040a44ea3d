"""GitLab OAuth adapter.

Self-managed instances expose the same endpoints as gitlab.com under
their own address.
"""

from collections.abc import Mapping
from urllib.parse import urlencode

from codehost.oauth.base import CodeHostOAuth, OAuthToken


class GitLabOAuth(CodeHostOAuth):
    """GitLab application adapter."""

    AUTHORIZE_PATH = "/oauth/authorize"
    TOKEN_PATH = "/oauth/token"

    @property
    def provider_name(self) -> str:
        return "gitlab"

    @property
    def default_address(self) -> str:
        return "https://gitlab.com"

    def _default_scopes(self) -> list[str]:
        return ["api", "read_user"]

    def login_url(self, state: str) -> str:
        """Generate GitLab authorization URL."""
        params = {
            "client_id": self.config.client_id,
            "redirect_uri": self.config.callback_url,
            "response_type": "code",
            "scope": " ".join(self.get_scopes()),
            "state": state,
        }
        return f"{self.base_url}{self.AUTHORIZE_PATH}?{urlencode(params)}"

    async def handle_callback(self, params: Mapping[str, str]) -> OAuthToken:
        """Exchange code for GitLab access and refresh tokens."""
        code = self.authorization_code(params)
        payload = await self._request_token(
            f"{self.base_url}{self.TOKEN_PATH}",
            {
                "client_id": self.config.client_id,
                "client_secret": self.config.client_secret,
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": self.config.callback_url,
            },
        )
        return self._token_from_payload(payload)
