"""Database models."""

from codehost.models.codehost import CodeHost, CodeHostType, READY_WITHOUT_OAUTH

__all__ = [
    "CodeHost",
    "CodeHostType",
    "READY_WITHOUT_OAUTH",
]
