"""GitHub OAuth adapter.

Works against github.com and GitHub Enterprise Server, where the OAuth
endpoints live under the instance address.
"""

from collections.abc import Mapping
from urllib.parse import urlencode

from codehost.oauth.base import CodeHostOAuth, OAuthToken


class GitHubOAuth(CodeHostOAuth):
    """GitHub OAuth App adapter."""

    AUTHORIZE_PATH = "/login/oauth/authorize"
    TOKEN_PATH = "/login/oauth/access_token"

    @property
    def provider_name(self) -> str:
        return "github"

    @property
    def default_address(self) -> str:
        return "https://github.com"

    def _default_scopes(self) -> list[str]:
        return ["repo", "user"]

    def login_url(self, state: str) -> str:
        """Generate GitHub authorization URL."""
        params = {
            "client_id": self.config.client_id,
            "redirect_uri": self.config.callback_url,
            "scope": ",".join(self.get_scopes()),
            "state": state,
        }
        return f"{self.base_url}{self.AUTHORIZE_PATH}?{urlencode(params)}"

    async def handle_callback(self, params: Mapping[str, str]) -> OAuthToken:
        """Exchange code for GitHub access token."""
        code = self.authorization_code(params)
        payload = await self._request_token(
            f"{self.base_url}{self.TOKEN_PATH}",
            {
                "client_id": self.config.client_id,
                "client_secret": self.config.client_secret,
                "code": code,
                "redirect_uri": self.config.callback_url,
            },
        )
        return self._token_from_payload(payload)
