"""Code host OAuth adapter registry.

Maps provider kinds to adapter classes and builds a configured adapter
for a given code host. Only the kinds registered here can go through
the OAuth flow; Gerrit and CodeHub records are ready at creation.
"""

import httpx

from codehost.core.errors import UnsupportedProviderError
from codehost.oauth.base import CodeHostOAuth, OAuthConfig
from codehost.oauth.github import GitHubOAuth
from codehost.oauth.gitlab import GitLabOAuth

_provider_classes: dict[str, type[CodeHostOAuth]] = {}


def register_provider_class(name: str, provider_class: type[CodeHostOAuth]) -> None:
    """Register an adapter class for a provider kind."""
    _provider_classes[name] = provider_class


def supported_providers() -> list[str]:
    """Provider kinds that support the OAuth flow."""
    return sorted(_provider_classes)


def new_oauth(
    provider: str,
    callback_url: str,
    client_id: str,
    client_secret: str,
    address: str,
    transport: httpx.AsyncBaseTransport | None = None,
    timeout: float = 10.0,
) -> CodeHostOAuth:
    """Build the adapter for a provider kind.

    Raises:
        UnsupportedProviderError: provider kind has no registered adapter
    """
    provider_class = _provider_classes.get(provider)
    if provider_class is None:
        raise UnsupportedProviderError(provider)

    config = OAuthConfig(
        callback_url=callback_url,
        client_id=client_id or "",
        client_secret=client_secret or "",
        address=address or "",
        timeout=timeout,
    )
    return provider_class(config, transport=transport)


register_provider_class("github", GitHubOAuth)
register_provider_class("gitlab", GitLabOAuth)
