"""Code host OAuth authorization flow.

Two halves of one round trip:

1. begin_auth() resolves the code host's adapter, encrypts a
   CorrelationState (code host id + the caller's redirect URI) into the
   OAuth state parameter and returns the code host's login URL.
2. resolve_callback() runs when the code host redirects the browser to
   CALLBACK_PATH. It decrypts the state, exchanges the authorization
   code for tokens, stores them and returns where to send the browser.

Once the state is decoded the browser must always land on the caller's
redirect URL, so failures after that point are reported through an
``err`` query parameter instead of being raised. Only a bad state token
or an unusable redirect URL, where no destination is known, raise.
"""

from collections.abc import Callable, Mapping
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from codehost.core.codehost_manager import code_host_manager
from codehost.core.codehost_store import CodeHostStore
from codehost.core.errors import CodeHostError, MalformedRedirectURIError
from codehost.core.logging import get_logger
from codehost.core.state_codec import CorrelationState, StateCodec
from codehost.models import CodeHost
from codehost.oauth import CodeHostOAuth, new_oauth

logger = get_logger(__name__)

CALLBACK_PATH = "/api/directory/codehosts/callback"


def build_callback_url(redirect_uri: str) -> str:
    """Callback URL on the same scheme and host as the caller's redirect URI.

    Raises:
        MalformedRedirectURIError: redirect URI has no scheme or host
    """
    try:
        parsed = urlsplit(redirect_uri)
        # Port parsing is lazy and rejects out-of-range values
        parsed.port
    except ValueError as e:
        raise MalformedRedirectURIError(redirect_uri, str(e)) from e

    host = parsed.netloc.rpartition("@")[2]
    if not parsed.scheme or not host:
        raise MalformedRedirectURIError(redirect_uri)
    return f"{parsed.scheme}://{host}{CALLBACK_PATH}"


def append_query_param(url: str, key: str, value: str) -> str:
    """Return url with key=value added to its query string.

    Raises:
        MalformedRedirectURIError: url cannot be parsed
    """
    try:
        parsed = urlsplit(url)
    except ValueError as e:
        raise MalformedRedirectURIError(url, str(e)) from e

    query = parse_qsl(parsed.query, keep_blank_values=True)
    query.append((key, value))
    return urlunsplit(parsed._replace(query=urlencode(query)))


class OAuthFlow:
    """Initiates and completes the code host OAuth flow."""

    def __init__(
        self,
        codec: StateCodec,
        provider_factory: Callable[..., CodeHostOAuth] = new_oauth,
        timeout: float = 10.0,
    ):
        self.codec = codec
        self.provider_factory = provider_factory
        self.timeout = timeout

    def _adapter_for(self, code_host: CodeHost, callback_url: str) -> CodeHostOAuth:
        return self.provider_factory(
            code_host.type,
            callback_url,
            code_host.application_id,
            code_host.client_secret,
            code_host.address,
            timeout=self.timeout,
        )

    async def begin_auth(self, store: CodeHostStore, redirect_uri: str, code_host_id: int) -> str:
        """Build the code host login URL for an authorization request.

        Args:
            store: Code host store
            redirect_uri: Where the browser goes once authorization completes
            code_host_id: Code host being authorized

        Returns:
            Login URL to redirect the user to

        Raises:
            CodeHostNotFoundError: no such code host
            MalformedRedirectURIError: redirect_uri is not an absolute URL
            UnsupportedProviderError: code host kind has no OAuth adapter
        """
        code_host = await code_host_manager.get_code_host(store, code_host_id)
        callback_url = build_callback_url(redirect_uri)
        adapter = self._adapter_for(code_host, callback_url)

        state = self.codec.encode(
            CorrelationState(code_host_id=code_host.id, redirect_url=redirect_uri)
        )

        logger.info(
            "Starting code host authorization",
            code_host_id=code_host.id,
            provider=code_host.type,
            callback_url=callback_url,
        )
        return adapter.login_url(state)

    async def resolve_callback(
        self,
        store: CodeHostStore,
        state_token: str,
        params: Mapping[str, str],
    ) -> str:
        """Complete the flow and return the URL to redirect the browser to.

        Args:
            store: Code host store
            state_token: Opaque state echoed back by the code host
            params: All query parameters of the callback request

        Returns:
            The caller's redirect URL with ``success=true`` or ``err=<message>``

        Raises:
            DecryptFailureError: state token is forged, foreign or expired
            MalformedPayloadError: state token does not hold a correlation state
            MalformedRedirectURIError: stored redirect URL is unusable
        """
        try:
            state = self.codec.decode(state_token)
        except CodeHostError as e:
            logger.error("Rejected OAuth state", error=str(e))
            raise

        try:
            code_host = await code_host_manager.get_code_host(store, state.code_host_id)
        except CodeHostError as e:
            return self._finish(state, e)

        try:
            callback_url = build_callback_url(state.redirect_url)
        except MalformedRedirectURIError as e:
            logger.error("Stored redirect URL is unusable", redirect_url=state.redirect_url, error=str(e))
            raise

        try:
            adapter = self._adapter_for(code_host, callback_url)
            token = await adapter.handle_callback(params)
            await code_host_manager.update_code_host_token(
                store, code_host, token.access_token, token.refresh_token
            )
        except CodeHostError as e:
            return self._finish(state, e)

        return self._finish(state)

    def _finish(self, state: CorrelationState, error: Exception | None = None) -> str:
        if error is not None:
            logger.warning(
                "Code host authorization failed",
                code_host_id=state.code_host_id,
                error=str(error),
            )
            return append_query_param(state.redirect_url, "err", str(error))

        logger.info("Code host authorized", code_host_id=state.code_host_id)
        return append_query_param(state.redirect_url, "success", "true")
