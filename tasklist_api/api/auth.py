from typing import Optional

from fastapi import APIRouter, Body, Depends, Request, Response

from tasklist_api.api.deps import get_app_settings, get_auth_service
from tasklist_api.core.config import Settings
from tasklist_api.core.errors import AuthenticationError
from tasklist_api.models.schemas import AuthResponse, LoginRequest, RefreshRequest, RegisterRequest, RevokeResponse
from tasklist_api.service.auth_service import AuthService

router = APIRouter()


def set_refresh_cookie(resp: Response, settings: Settings, auth: AuthResponse) -> None:
    if not auth.refresh_token:
        return
    resp.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=auth.refresh_token,
        httponly=True,
        secure=settings.REFRESH_COOKIE_SECURE,
        samesite=settings.REFRESH_COOKIE_SAMESITE,
        path=settings.REFRESH_COOKIE_PATH,
        expires=auth.refresh_token_expires_on,
    )


def _refresh_token_from(request: Request, settings: Settings, body: Optional[RefreshRequest]) -> str:
    raw = body.refresh_token if body is not None else None
    if not raw:
        raw = request.cookies.get(settings.REFRESH_COOKIE_NAME)
    if not raw:
        raise AuthenticationError("Refresh token is missing.")
    return raw


@router.post("/register", response_model=AuthResponse)
async def register(
    resp: Response,
    req: RegisterRequest,
    svc: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
):
    auth = await svc.register(req.name, req.email, req.password)
    set_refresh_cookie(resp, settings, auth)
    return auth


@router.post("/login", response_model=AuthResponse)
async def login(
    resp: Response,
    req: LoginRequest,
    svc: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
):
    auth = await svc.login(req.email, req.password)
    set_refresh_cookie(resp, settings, auth)
    return auth


@router.post("/refresh-token", response_model=AuthResponse)
async def refresh_token(
    request: Request,
    resp: Response,
    body: Optional[RefreshRequest] = Body(default=None),
    svc: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
):
    auth = await svc.refresh(_refresh_token_from(request, settings, body))
    set_refresh_cookie(resp, settings, auth)
    return auth


@router.put("/revoke-token", response_model=RevokeResponse)
async def revoke_token(
    request: Request,
    resp: Response,
    body: Optional[RefreshRequest] = Body(default=None),
    svc: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
):
    revoked = await svc.revoke(_refresh_token_from(request, settings, body))
    resp.delete_cookie(settings.REFRESH_COOKIE_NAME, path=settings.REFRESH_COOKIE_PATH)
    return RevokeResponse(revoked=revoked)
