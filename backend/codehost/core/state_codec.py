"""OAuth correlation state codec.

The state parameter of an authorization request carries which code host
started the flow and where the user should land afterwards. Nothing is
stored server side: the payload is serialized to canonical JSON and
encrypted, so any instance holding the same secret can resume the flow
and the browser can neither read nor forge it.
"""

import json
from dataclasses import dataclass
from functools import lru_cache

from codehost.config import get_settings
from codehost.core.cipher import StateCipher
from codehost.core.errors import MalformedPayloadError


@dataclass(frozen=True)
class CorrelationState:
    """Context carried across the OAuth redirect round trip."""
    code_host_id: int
    redirect_url: str


class StateCodec:
    """Turns correlation state into an opaque token and back."""

    def __init__(self, cipher: StateCipher, ttl_seconds: int | None = None):
        self.cipher = cipher
        self.ttl_seconds = ttl_seconds

    def encode(self, state: CorrelationState) -> str:
        """Serialize and encrypt state into a URL-embeddable token."""
        payload = json.dumps(
            {"code_host_id": state.code_host_id, "redirect_url": state.redirect_url},
            sort_keys=True,
            separators=(",", ":"),
        )
        return self.cipher.encrypt(payload)

    def decode(self, token: str) -> CorrelationState:
        """Decrypt and parse a token produced by encode().

        Raises:
            DecryptFailureError: token is not ours or has expired
            MalformedPayloadError: token decrypted to something other than
                a correlation state
        """
        plaintext = self.cipher.decrypt(token, ttl=self.ttl_seconds)

        try:
            data = json.loads(plaintext)
        except json.JSONDecodeError as e:
            raise MalformedPayloadError("State payload is not valid JSON") from e

        if not isinstance(data, dict):
            raise MalformedPayloadError("State payload must be an object")

        code_host_id = data.get("code_host_id")
        redirect_url = data.get("redirect_url")
        # bool is an int subclass
        if not isinstance(code_host_id, int) or isinstance(code_host_id, bool):
            raise MalformedPayloadError("State payload has no integer code_host_id")
        if not isinstance(redirect_url, str):
            raise MalformedPayloadError("State payload has no redirect_url")

        return CorrelationState(code_host_id=code_host_id, redirect_url=redirect_url)


@lru_cache
def get_state_codec() -> StateCodec:
    """Process-wide codec built once from settings."""
    settings = get_settings()
    return StateCodec(
        StateCipher(settings.codehost_state_secret),
        ttl_seconds=settings.state_ttl,
    )
