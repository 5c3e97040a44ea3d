"""API routes."""

from codehost.api.codehosts import router as codehosts_router

__all__ = [
    "codehosts_router",
]
