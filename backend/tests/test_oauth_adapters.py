"""Tests for code host OAuth adapters and the adapter registry."""

from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from codehost.core.errors import ProviderExchangeError, UnsupportedProviderError
from codehost.oauth import new_oauth, supported_providers
from codehost.oauth.github import GitHubOAuth
from codehost.oauth.gitlab import GitLabOAuth

CALLBACK = "https://app.example.com/api/directory/codehosts/callback"


def query_of(url: str) -> dict[str, list[str]]:
    return parse_qs(urlsplit(url).query)


class TestRegistry:
    """Tests for provider selection."""

    def test_github(self):
        adapter = new_oauth("github", CALLBACK, "id", "secret", "https://github.com")

        assert isinstance(adapter, GitHubOAuth)
        assert adapter.config.callback_url == CALLBACK
        assert adapter.config.client_id == "id"
        assert adapter.config.client_secret == "secret"

    def test_gitlab(self):
        adapter = new_oauth("gitlab", CALLBACK, "id", "secret", "https://gitlab.example.com")

        assert isinstance(adapter, GitLabOAuth)
        assert adapter.base_url == "https://gitlab.example.com"

    @pytest.mark.parametrize("provider", ["gerrit", "codehub", "bitbucket", "", "GitHub"])
    def test_unsupported_provider(self, provider):
        with pytest.raises(UnsupportedProviderError) as exc_info:
            new_oauth(provider, CALLBACK, "id", "secret", "https://example.com")

        assert exc_info.value.provider == provider

    def test_supported_providers(self):
        assert supported_providers() == ["github", "gitlab"]

    def test_missing_credentials_become_empty_strings(self):
        adapter = new_oauth("github", CALLBACK, None, None, None)

        assert adapter.config.client_id == ""
        assert adapter.base_url == "https://github.com"


class TestGitHubOAuth:
    """Tests for the GitHub adapter."""

    def test_login_url(self):
        adapter = new_oauth("github", CALLBACK, "gh-id", "gh-secret", "https://github.com")

        url = adapter.login_url("opaque-state")
        parts = urlsplit(url)
        query = query_of(url)

        assert f"{parts.scheme}://{parts.netloc}{parts.path}" == "https://github.com/login/oauth/authorize"
        assert query["client_id"] == ["gh-id"]
        assert query["redirect_uri"] == [CALLBACK]
        assert query["state"] == ["opaque-state"]
        assert query["scope"] == ["repo,user"]

    def test_login_url_enterprise_address(self):
        adapter = new_oauth("github", CALLBACK, "gh-id", "gh-secret", "https://ghe.example.com/")

        assert adapter.login_url("s").startswith("https://ghe.example.com/login/oauth/authorize?")

    def test_state_is_echoed_unchanged(self):
        adapter = new_oauth("github", CALLBACK, "gh-id", "gh-secret", "")
        state = "gAAAAABl-x_y=="

        assert query_of(adapter.login_url(state))["state"] == [state]

    @pytest.mark.asyncio
    async def test_handle_callback(self, make_token_handler):
        seen = []
        handler = make_token_handler(
            {"access_token": "gho_abc", "token_type": "bearer", "scope": "repo,user"},
            seen=seen,
        )
        adapter = new_oauth(
            "github", CALLBACK, "gh-id", "gh-secret", "https://github.com",
            transport=httpx.MockTransport(handler),
        )

        token = await adapter.handle_callback({"code": "the-code", "state": "s"})

        assert token.access_token == "gho_abc"
        assert token.refresh_token == ""
        assert token.token_type == "bearer"

        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://github.com/login/oauth/access_token"
        assert request.headers["Accept"] == "application/json"
        form = parse_qs(request.content.decode())
        assert form["code"] == ["the-code"]
        assert form["client_id"] == ["gh-id"]
        assert form["client_secret"] == ["gh-secret"]
        assert form["redirect_uri"] == [CALLBACK]

    @pytest.mark.asyncio
    async def test_error_in_token_response(self, make_token_handler):
        handler = make_token_handler({"error": "bad_verification_code", "error_description": "The code is incorrect"})
        adapter = new_oauth(
            "github", CALLBACK, "id", "secret", "", transport=httpx.MockTransport(handler)
        )

        with pytest.raises(ProviderExchangeError, match="The code is incorrect"):
            await adapter.handle_callback({"code": "stale"})

    @pytest.mark.asyncio
    async def test_non_200_response(self, make_token_handler):
        handler = make_token_handler({"message": "boom"}, status_code=500)
        adapter = new_oauth(
            "github", CALLBACK, "id", "secret", "", transport=httpx.MockTransport(handler)
        )

        with pytest.raises(ProviderExchangeError, match="Token exchange failed"):
            await adapter.handle_callback({"code": "c"})

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        adapter = new_oauth(
            "github", CALLBACK, "id", "secret", "", transport=httpx.MockTransport(handler)
        )

        with pytest.raises(ProviderExchangeError, match="token request failed"):
            await adapter.handle_callback({"code": "c"})

    @pytest.mark.asyncio
    async def test_user_denied_access(self, make_token_handler):
        seen = []
        adapter = new_oauth(
            "github", CALLBACK, "id", "secret", "",
            transport=httpx.MockTransport(make_token_handler({}, seen=seen)),
        )

        with pytest.raises(ProviderExchangeError, match="denied"):
            await adapter.handle_callback({"error": "access_denied", "error_description": "User denied access"})

        assert seen == []

    @pytest.mark.asyncio
    async def test_missing_code(self):
        adapter = new_oauth("github", CALLBACK, "id", "secret", "")

        with pytest.raises(ProviderExchangeError, match="missing the authorization code"):
            await adapter.handle_callback({"state": "s"})

    @pytest.mark.asyncio
    async def test_missing_access_token(self, make_token_handler):
        adapter = new_oauth(
            "github", CALLBACK, "id", "secret", "",
            transport=httpx.MockTransport(make_token_handler({"token_type": "bearer"})),
        )

        with pytest.raises(ProviderExchangeError, match="no access_token"):
            await adapter.handle_callback({"code": "c"})


class TestGitLabOAuth:
    """Tests for the GitLab adapter."""

    def test_login_url(self):
        adapter = new_oauth("gitlab", CALLBACK, "gl-id", "gl-secret", "https://gitlab.example.com")

        url = adapter.login_url("opaque-state")
        query = query_of(url)

        assert url.startswith("https://gitlab.example.com/oauth/authorize?")
        assert query["response_type"] == ["code"]
        assert query["state"] == ["opaque-state"]
        assert query["redirect_uri"] == [CALLBACK]
        assert query["scope"] == ["api read_user"]

    @pytest.mark.asyncio
    async def test_handle_callback(self, make_token_handler):
        seen = []
        handler = make_token_handler(
            {
                "access_token": "glpat-access",
                "refresh_token": "glpat-refresh",
                "token_type": "Bearer",
                "expires_in": 7200,
            },
            seen=seen,
        )
        adapter = new_oauth(
            "gitlab", CALLBACK, "gl-id", "gl-secret", "https://gitlab.example.com",
            transport=httpx.MockTransport(handler),
        )

        token = await adapter.handle_callback({"code": "the-code"})

        assert token.access_token == "glpat-access"
        assert token.refresh_token == "glpat-refresh"
        assert token.expires_in == 7200
        assert str(seen[0].url) == "https://gitlab.example.com/oauth/token"
        form = parse_qs(seen[0].content.decode())
        assert form["grant_type"] == ["authorization_code"]
        assert form["code"] == ["the-code"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "expires_in, expected",
        [("3600", 3600), ("3600.0", 3600), (7200.5, 7200), ("soon", None), (None, None), ([1], None)],
    )
    async def test_expires_in_parsing(self, make_token_handler, expires_in, expected):
        handler = make_token_handler({"access_token": "glpat-access", "expires_in": expires_in})
        adapter = new_oauth(
            "gitlab", CALLBACK, "gl-id", "gl-secret", "https://gitlab.example.com",
            transport=httpx.MockTransport(handler),
        )

        token = await adapter.handle_callback({"code": "the-code"})

        assert token.expires_in == expected

    @pytest.mark.asyncio
    async def test_invalid_address(self, make_token_handler):
        adapter = new_oauth(
            "gitlab", CALLBACK, "gl-id", "gl-secret", "http://[::1",
            transport=httpx.MockTransport(make_token_handler({"access_token": "glpat-access"})),
        )

        with pytest.raises(ProviderExchangeError, match="gitlab token request failed"):
            await adapter.handle_callback({"code": "the-code"})
