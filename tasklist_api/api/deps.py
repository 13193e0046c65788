from typing import AsyncIterator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from tasklist_api.core.config import Settings
from tasklist_api.core.errors import AuthenticationError
from tasklist_api.service.auth_service import AuthService
from tasklist_api.service.task_service import TaskService
from tasklist_api.utils.security import TokenIssuer

bearer = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    # Closing without a commit rolls back whatever the request left behind.
    async with request.app.state.sessionmaker() as session:
        yield session


def get_auth_service(request: Request, session: AsyncSession = Depends(get_session)) -> AuthService:
    state = request.app.state
    return AuthService(session, hasher=state.hasher, tokens=state.tokens, clock=state.clock)


def get_task_service(request: Request, session: AsyncSession = Depends(get_session)) -> TaskService:
    return TaskService(session, clock=request.app.state.clock)


def get_current_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> int:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authorization: Bearer <token> required.")
    tokens: TokenIssuer = request.app.state.tokens
    claims = tokens.decode_access_token(credentials.credentials)
    try:
        user_id = int(claims["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise AuthenticationError("Invalid access token.") from exc
    if user_id <= 0:
        raise AuthenticationError("You are not authorized.")
    return user_id
