"""Code host API routes.

Provides endpoints for managing code host integrations:
- Create, list, get, update and delete code hosts
- Start the OAuth authorization of a code host
- OAuth callback the code host redirects the browser back to
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from codehost.config import get_settings
from codehost.core.codehost_manager import code_host_manager
from codehost.core.codehost_store import CodeHostStore
from codehost.core.errors import (
    CodeHostNotFoundError,
    MalformedRedirectURIError,
    ProviderExchangeError,
    StateDecodeError,
    StoreUnavailableError,
    UnsupportedProviderError,
)
from codehost.core.oauth_flow import OAuthFlow
from codehost.core.state_codec import get_state_codec
from codehost.database import get_db
from codehost.models import CodeHost

router = APIRouter(prefix="/api/directory/codehosts", tags=["codehosts"])

# Columns that cannot be cleared by an update
REQUIRED_FIELDS = {"type", "address", "enable_proxy"}


# ============================================================================
# Request/Response Models
# ============================================================================


class CodeHostCreate(BaseModel):
    """Code host creation schema."""
    type: str = Field(..., min_length=1, max_length=32)
    address: str = Field(..., min_length=1, max_length=512)
    namespace: str | None = Field(None, max_length=255)
    region: str | None = Field(None, max_length=64)
    username: str | None = Field(None, max_length=255)
    password: str | None = None
    application_id: str | None = Field(None, max_length=255)
    client_secret: str | None = None
    access_token: str | None = None
    is_ready: str | None = Field(None, max_length=8)
    enable_proxy: bool = False


class CodeHostUpdate(BaseModel):
    """Code host update schema; only the fields sent are changed."""
    type: str | None = Field(None, min_length=1, max_length=32)
    address: str | None = Field(None, min_length=1, max_length=512)
    namespace: str | None = Field(None, max_length=255)
    region: str | None = Field(None, max_length=64)
    username: str | None = Field(None, max_length=255)
    password: str | None = None
    application_id: str | None = Field(None, max_length=255)
    client_secret: str | None = None
    access_token: str | None = None
    refresh_token: str | None = None
    is_ready: str | None = Field(None, max_length=8)
    enable_proxy: bool | None = None


class CodeHostResponse(BaseModel):
    """Code host response schema; credentials are reported, never echoed."""
    id: int
    type: str
    address: str
    namespace: str | None
    region: str | None
    username: str | None
    application_id: str | None
    is_ready: str | None
    enable_proxy: bool
    created_at: int
    updated_at: int
    has_password: bool
    has_client_secret: bool
    has_access_token: bool
    has_refresh_token: bool


# ============================================================================
# Helper Functions
# ============================================================================


def code_host_to_response(code_host: CodeHost) -> CodeHostResponse:
    """Convert CodeHost model to response."""
    return CodeHostResponse(
        id=code_host.id,
        type=code_host.type,
        address=code_host.address,
        namespace=code_host.namespace,
        region=code_host.region,
        username=code_host.username,
        application_id=code_host.application_id,
        is_ready=code_host.is_ready,
        enable_proxy=code_host.enable_proxy,
        created_at=code_host.created_at,
        updated_at=code_host.updated_at,
        has_password=bool(code_host.password),
        has_client_secret=bool(code_host.client_secret),
        has_access_token=bool(code_host.access_token),
        has_refresh_token=bool(code_host.refresh_token),
    )


# ============================================================================
# Dependencies
# ============================================================================


def get_store(db: Annotated[AsyncSession, Depends(get_db)]) -> CodeHostStore:
    """Code host store bound to the request's session."""
    return CodeHostStore(db)


def get_oauth_flow() -> OAuthFlow:
    """OAuth flow using the process-wide state codec."""
    return OAuthFlow(get_state_codec(), timeout=get_settings().oauth_http_timeout)


def to_http_error(error: Exception) -> HTTPException:
    """Translate a service exception into an HTTP error."""
    if isinstance(error, CodeHostNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, (UnsupportedProviderError, MalformedRedirectURIError, StateDecodeError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    if isinstance(error, ProviderExchangeError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(error))
    if isinstance(error, StoreUnavailableError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(error))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))


# ============================================================================
# Routes
# ============================================================================


@router.post("", response_model=CodeHostResponse, status_code=status.HTTP_201_CREATED)
async def create_code_host(
    data: CodeHostCreate,
    store: Annotated[CodeHostStore, Depends(get_store)],
):
    """Register a code host."""
    try:
        code_host = await code_host_manager.create_code_host(store, CodeHost(**data.model_dump()))
    except StoreUnavailableError as e:
        raise to_http_error(e)
    return code_host_to_response(code_host)


@router.get("", response_model=list[CodeHostResponse])
async def list_code_hosts(
    store: Annotated[CodeHostStore, Depends(get_store)],
    address: str | None = None,
    owner: str | None = None,
    source: str | None = None,
):
    """List code hosts, optionally filtered by address, owner and type."""
    try:
        code_hosts = await code_host_manager.list_code_hosts(store, address=address, owner=owner, source=source)
    except StoreUnavailableError as e:
        raise to_http_error(e)
    return [code_host_to_response(code_host) for code_host in code_hosts]


@router.get("/callback")
async def oauth_callback(
    request: Request,
    store: Annotated[CodeHostStore, Depends(get_store)],
    flow: Annotated[OAuthFlow, Depends(get_oauth_flow)],
    state: str = Query(..., min_length=1),
):
    """Handle the redirect back from the code host.

    Always redirects the browser to the URL given when authorization
    started, unless the state cannot be trusted.
    """
    try:
        redirect_url = await flow.resolve_callback(store, state, request.query_params)
    except (StateDecodeError, MalformedRedirectURIError) as e:
        raise to_http_error(e)
    return RedirectResponse(redirect_url, status_code=status.HTTP_302_FOUND)


@router.get("/{code_host_id}", response_model=CodeHostResponse)
async def get_code_host(
    code_host_id: int,
    store: Annotated[CodeHostStore, Depends(get_store)],
):
    """Get a code host."""
    try:
        code_host = await code_host_manager.get_code_host(store, code_host_id)
    except (CodeHostNotFoundError, StoreUnavailableError) as e:
        raise to_http_error(e)
    return code_host_to_response(code_host)


@router.patch("/{code_host_id}", response_model=CodeHostResponse)
async def update_code_host(
    code_host_id: int,
    data: CodeHostUpdate,
    store: Annotated[CodeHostStore, Depends(get_store)],
):
    """Update a code host."""
    changes = {
        name: value
        for name, value in data.model_dump(exclude_unset=True).items()
        if value is not None or name not in REQUIRED_FIELDS
    }
    try:
        code_host = await code_host_manager.update_code_host(store, code_host_id, changes)
    except (CodeHostNotFoundError, StoreUnavailableError) as e:
        raise to_http_error(e)
    return code_host_to_response(code_host)


@router.delete("/{code_host_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_code_host(
    code_host_id: int,
    store: Annotated[CodeHostStore, Depends(get_store)],
):
    """Delete a code host."""
    try:
        await code_host_manager.delete_code_host(store, code_host_id)
    except (CodeHostNotFoundError, StoreUnavailableError) as e:
        raise to_http_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{code_host_id}/auth")
async def auth_code_host(
    code_host_id: int,
    store: Annotated[CodeHostStore, Depends(get_store)],
    flow: Annotated[OAuthFlow, Depends(get_oauth_flow)],
    redirect_uri: str = Query(..., min_length=1),
):
    """Start OAuth authorization of a code host.

    Redirects to the code host's login page; after authorization the
    browser ends up at redirect_uri with success=true or err=<message>.
    """
    try:
        login_url = await flow.begin_auth(store, redirect_uri, code_host_id)
    except (
        CodeHostNotFoundError,
        MalformedRedirectURIError,
        UnsupportedProviderError,
        StoreUnavailableError,
    ) as e:
        raise to_http_error(e)
    return RedirectResponse(login_url, status_code=status.HTTP_302_FOUND)
