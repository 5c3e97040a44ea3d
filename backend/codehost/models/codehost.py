"""Code host model.

A CodeHost is one configured code-hosting integration (a GitHub
organisation, a self-hosted GitLab, a Gerrit server, ...). It carries
the OAuth client credentials the platform uses to authorize against the
host and the tokens obtained once authorization completes.
"""

import time
from enum import Enum

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from codehost.database import Base


class CodeHostType(str, Enum):
    """Known code host kinds."""
    GITHUB = "github"
    GITLAB = "gitlab"
    GERRIT = "gerrit"
    CODEHUB = "codehub"
    GITEE = "gitee"
    OTHER = "other"


# Integration needs no OAuth round trip
READY_WITHOUT_OAUTH = "2"


def _now() -> int:
    return int(time.time())


class CodeHost(Base):
    """Configured code host integration."""

    __tablename__ = "code_hosts"
    # Ids are never handed out twice, even after deletion
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    address: Mapped[str] = mapped_column(String(512), nullable=False, index=True)
    namespace: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    region: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Basic credentials (Gerrit and friends)
    username: Mapped[str | None] = mapped_column(String(255), nullable=True)
    password: Mapped[str | None] = mapped_column(Text, nullable=True)

    # OAuth client
    application_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    client_secret: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Tokens
    access_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    refresh_token: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_ready: Mapped[str | None] = mapped_column(String(8), nullable=True)
    enable_proxy: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Unix timestamps
    created_at: Mapped[int] = mapped_column(Integer, default=_now, nullable=False)
    updated_at: Mapped[int] = mapped_column(Integer, default=_now, nullable=False)

    def __repr__(self) -> str:
        return f"<CodeHost {self.id} {self.type} {self.address}>"

    @property
    def needs_oauth(self) -> bool:
        """Whether the integration still goes through the OAuth flow."""
        return self.is_ready != READY_WITHOUT_OAUTH
