"""Code host record lifecycle.

Creation applies the provider-specific defaults: Gerrit authenticates
with HTTP basic credentials, so its token is derived from the username
and password and the record is ready immediately; CodeHub records are
ready immediately as well. Ids come from the database sequence.
"""

import base64
import time

from codehost.core.codehost_store import CodeHostStore
from codehost.core.logging import get_logger, log_operation
from codehost.models import CodeHost, CodeHostType, READY_WITHOUT_OAUTH

logger = get_logger(__name__)


def basic_auth_token(username: str | None, password: str | None) -> str:
    """base64("username:password"), as sent in a Basic Authorization header."""
    raw = f"{username or ''}:{password or ''}"
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


class CodeHostManager:
    """Create, list, update and delete code host records."""

    def apply_provider_defaults(self, code_host: CodeHost) -> None:
        """Apply the defaults of providers that never go through OAuth."""
        if code_host.type == CodeHostType.CODEHUB.value:
            code_host.is_ready = READY_WITHOUT_OAUTH
        if code_host.type == CodeHostType.GERRIT.value:
            code_host.is_ready = READY_WITHOUT_OAUTH
            code_host.access_token = basic_auth_token(code_host.username, code_host.password)

    @log_operation("create_code_host")
    async def create_code_host(self, store: CodeHostStore, code_host: CodeHost) -> CodeHost:
        """Create a record.

        Args:
            store: Code host store
            code_host: New record; any id it carries is ignored

        Returns:
            The stored record with id and timestamps assigned
        """
        self.apply_provider_defaults(code_host)

        now = int(time.time())
        code_host.created_at = now
        code_host.updated_at = now
        code_host.id = None

        created = await store.add(code_host)
        logger.info(
            "Code host created",
            code_host_id=created.id,
            type=created.type,
            address=created.address,
        )
        return created

    async def list_code_hosts(
        self,
        store: CodeHostStore,
        address: str | None = None,
        owner: str | None = None,
        source: str | None = None,
    ) -> list[CodeHost]:
        """List records matching the optional filters."""
        return await store.list(address=address, owner=owner, source=source)

    async def get_code_host(self, store: CodeHostStore, code_host_id: int) -> CodeHost:
        """Fetch a record; raises CodeHostNotFoundError when absent."""
        return await store.get_by_id(code_host_id)

    async def update_code_host(self, store: CodeHostStore, code_host_id: int, changes: dict) -> CodeHost:
        """Apply field changes to a record.

        A Gerrit record's token follows its credentials, so it is derived
        again whenever the type, username or password changes.
        """
        code_host = await store.get_by_id(code_host_id)
        for name, value in changes.items():
            setattr(code_host, name, value)

        if code_host.type == CodeHostType.GERRIT.value and changes.keys() & {"type", "username", "password"}:
            self.apply_provider_defaults(code_host)
        elif code_host.type == CodeHostType.CODEHUB.value and "type" in changes:
            self.apply_provider_defaults(code_host)

        code_host.updated_at = int(time.time())
        updated = await store.update_fields(code_host)
        logger.info("Code host updated", code_host_id=updated.id, fields=sorted(changes))
        return updated

    async def update_code_host_token(
        self,
        store: CodeHostStore,
        code_host: CodeHost,
        access_token: str,
        refresh_token: str,
    ) -> CodeHost:
        """Store a fresh token pair on a record."""
        code_host.access_token = access_token
        code_host.refresh_token = refresh_token
        code_host.updated_at = int(time.time())
        return await store.update_token_fields(code_host)

    @log_operation("delete_code_host")
    async def delete_code_host(self, store: CodeHostStore, code_host_id: int) -> None:
        """Delete a record; raises CodeHostNotFoundError when absent."""
        await store.delete_by_id(code_host_id)
        logger.info("Code host deleted", code_host_id=code_host_id)


# Singleton instance
code_host_manager = CodeHostManager()
