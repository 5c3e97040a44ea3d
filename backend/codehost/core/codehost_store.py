"""Persistent store for code host records.

Thin data-access layer over an AsyncSession. Missing ids surface as
CodeHostNotFoundError and database failures as StoreUnavailableError,
so callers never handle SQLAlchemy exceptions directly.
"""

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from codehost.core.errors import CodeHostNotFoundError, StoreUnavailableError
from codehost.core.logging import get_logger
from codehost.models import CodeHost

logger = get_logger(__name__)

# Columns an explicit update may change
UPDATABLE_FIELDS = (
    "type",
    "address",
    "namespace",
    "region",
    "username",
    "password",
    "application_id",
    "client_secret",
    "access_token",
    "refresh_token",
    "is_ready",
    "enable_proxy",
    "updated_at",
)

# Columns touched when the OAuth flow stores fresh tokens
TOKEN_FIELDS = ("access_token", "refresh_token", "updated_at")


class CodeHostStore:
    """CRUD over the code_hosts table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(
        self,
        address: str | None = None,
        owner: str | None = None,
        source: str | None = None,
    ) -> list[CodeHost]:
        """List records, optionally filtered by address, owner and type."""
        query = select(CodeHost).order_by(CodeHost.id)
        if address:
            query = query.where(CodeHost.address == address)
        if owner:
            query = query.where(CodeHost.namespace == owner)
        if source:
            query = query.where(CodeHost.type == source)

        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise await self._unavailable("list", e)
        return list(result.scalars().all())

    async def add(self, code_host: CodeHost) -> CodeHost:
        """Insert a record; the database assigns its id."""
        try:
            self.db.add(code_host)
            await self.db.commit()
            await self.db.refresh(code_host)
        except SQLAlchemyError as e:
            raise await self._unavailable("add", e)
        return code_host

    async def get_by_id(self, code_host_id: int) -> CodeHost:
        """Fetch a record by id."""
        try:
            result = await self.db.execute(
                select(CodeHost).where(CodeHost.id == code_host_id)
            )
        except SQLAlchemyError as e:
            raise await self._unavailable("get", e)

        code_host = result.scalar_one_or_none()
        if code_host is None:
            raise CodeHostNotFoundError(code_host_id)
        return code_host

    async def update_fields(self, code_host: CodeHost) -> CodeHost:
        """Persist every updatable column of a record."""
        return await self._update(code_host, UPDATABLE_FIELDS)

    async def update_token_fields(self, code_host: CodeHost) -> CodeHost:
        """Persist only the token columns of a record."""
        return await self._update(code_host, TOKEN_FIELDS)

    async def delete_by_id(self, code_host_id: int) -> None:
        """Delete a record by id."""
        code_host = await self.get_by_id(code_host_id)
        try:
            await self.db.delete(code_host)
            await self.db.commit()
        except SQLAlchemyError as e:
            raise await self._unavailable("delete", e)

    async def _update(self, code_host: CodeHost, fields: tuple[str, ...]) -> CodeHost:
        stored = await self.get_by_id(code_host.id)
        if stored is not code_host:
            for name in fields:
                setattr(stored, name, getattr(code_host, name))

        try:
            await self.db.commit()
            await self.db.refresh(stored)
        except SQLAlchemyError as e:
            raise await self._unavailable("update", e)
        return stored

    async def _unavailable(self, operation: str, error: SQLAlchemyError) -> StoreUnavailableError:
        await self.db.rollback()
        logger.error("Code host store failure", operation=operation, error=str(error))
        return StoreUnavailableError(f"Code host store unavailable during {operation}: {error}")
