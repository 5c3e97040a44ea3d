"""Code host OAuth adapters.

Supported providers:
- GitHub (github.com and Enterprise Server)
- GitLab (gitlab.com and self-managed)
"""

from codehost.oauth.base import CodeHostOAuth, OAuthConfig, OAuthToken
from codehost.oauth.registry import (
    new_oauth,
    register_provider_class,
    supported_providers,
)

__all__ = [
    "CodeHostOAuth",
    "OAuthConfig",
    "OAuthToken",
    "new_oauth",
    "register_provider_class",
    "supported_providers",
]
