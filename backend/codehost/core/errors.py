"""Code host service exceptions."""


class CodeHostError(Exception):
    """Base code host exception."""
    pass


class CodeHostNotFoundError(CodeHostError):
    """Code host record does not exist."""

    def __init__(self, code_host_id: int):
        self.code_host_id = code_host_id
        super().__init__(f"Code host {code_host_id} not found")


class UnsupportedProviderError(CodeHostError):
    """No OAuth adapter for the requested provider kind."""

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"Unsupported provider: {provider}")


class StateDecodeError(CodeHostError):
    """OAuth state token could not be turned back into a correlation state."""
    pass


class DecryptFailureError(StateDecodeError):
    """State token was not produced by this service's key, or has expired."""
    pass


class MalformedPayloadError(StateDecodeError):
    """State token decrypted but its payload is not a correlation state."""
    pass


class StoreUnavailableError(CodeHostError):
    """Persistent store could not serve the request."""
    pass


class ProviderExchangeError(CodeHostError):
    """Code host rejected or failed the authorization code exchange."""
    pass


class MalformedRedirectURIError(CodeHostError):
    """Redirect URI is not an absolute URL."""

    def __init__(self, uri: str, reason: str = "expected an absolute URL"):
        self.uri = uri
        super().__init__(f"Malformed redirect URI {uri!r}: {reason}")
