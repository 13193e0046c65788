import logging
from typing import Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from tasklist_api.core.clock import SystemClock, ensure_utc
from tasklist_api.core.errors import AuthenticationError, NotFoundError, ValidationError
from tasklist_api.db.database import unit_of_work
from tasklist_api.db.repositories.auth_repo import AuthRepo
from tasklist_api.models.orm import RefreshToken, User
from tasklist_api.models.schemas import AuthResponse
from tasklist_api.utils.security import PasswordHasher, TokenIssuer
from tasklist_api.utils.validation import email_errors, format_errors, name_errors, normalize_email, password_errors

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password."
INVALID_REFRESH = "Invalid or expired refresh token."
REVOKE_FAILED = "Token already revoked or not found."


class AuthService:
    def __init__(self, session: AsyncSession, hasher: PasswordHasher, tokens: TokenIssuer, clock: SystemClock):
        self.session = session
        self.repo = AuthRepo(session)
        self.hasher = hasher
        self.tokens = tokens
        self.clock = clock

    async def register(self, name: str, email: str, password: str) -> AuthResponse:
        name = (name or "").strip()
        email = normalize_email(email)
        await self._validate_registration(name, email, password)

        pwd_hash = await self.hasher.hash_async(password)
        async with unit_of_work(self.session):
            user = await self.repo.create_user(name=name, email=email, password_hash=pwd_hash)
            refresh = await self._issue_refresh(user.id)
        logger.info("Registered user %s", user.id)
        return self._response("User registered successfully", user, refresh)

    async def login(self, email: str, password: str) -> AuthResponse:
        user = await self.repo.get_user_by_email(normalize_email(email))
        # unknown emails still pay for a bcrypt check
        password_hash = user.password_hash if user is not None else self.hasher.dummy_hash
        verified = await self.hasher.verify_async(password_hash, password or "")
        if user is None or not verified:
            logger.warning("Rejected login attempt")
            raise AuthenticationError(INVALID_CREDENTIALS)

        async with unit_of_work(self.session):
            refresh = await self.repo.find_active_refresh(user.id, self.clock.now())
            if refresh is None:
                refresh = await self._issue_refresh(user.id)
        logger.info("User %s logged in", user.id)
        return self._response("User logged in successfully", user, refresh)

    async def refresh(self, token: str) -> AuthResponse:
        current = await self._find_active(token, INVALID_REFRESH)
        user = await self.repo.get_user(current.user_id)
        if user is None:
            raise NotFoundError("User not found.")

        # revoke + reissue commit together so a user is never left without a token
        async with unit_of_work(self.session):
            if not await self.repo.revoke_refresh(current, self.clock.now()):
                raise AuthenticationError(INVALID_REFRESH)
            refresh = await self._issue_refresh(user.id)
        logger.info("Rotated refresh token %s for user %s", current.id, user.id)
        return self._response("Token refreshed successfully", user, refresh)

    async def revoke(self, token: str) -> bool:
        current = await self._find_active(token, REVOKE_FAILED)
        async with unit_of_work(self.session):
            if not await self.repo.revoke_refresh(current, self.clock.now()):
                raise AuthenticationError(REVOKE_FAILED)
        logger.info("Revoked refresh token %s for user %s", current.id, current.user_id)
        return True

    async def _validate_registration(self, name: str, email: str, password: str) -> None:
        errors: Dict[str, List[str]] = {
            "Name": name_errors(name),
            "Email": email_errors(email),
            "Password": password_errors(password),
        }
        if not errors["Email"] and await self.repo.email_exists(email):
            errors["Email"].append("Email already exists.")
        if any(errors.values()):
            raise ValidationError(format_errors(errors))

    async def _find_active(self, token: str, message: str) -> RefreshToken:
        if not token:
            raise AuthenticationError(message)
        current = await self.repo.find_refresh(token)
        if current is None or not current.is_active(self.clock.now()):
            raise AuthenticationError(message)
        return current

    async def _issue_refresh(self, user_id: int) -> RefreshToken:
        issued = self.tokens.issue_refresh_token()
        return await self.repo.add_refresh(
            user_id=user_id,
            token=issued.token,
            created_on=issued.created_on,
            expires_on=issued.expires_on,
        )

    def _response(self, message: str, user: User, refresh: RefreshToken) -> AuthResponse:
        return AuthResponse(
            message=message,
            is_authenticated=True,
            email=user.email,
            access_token=self.tokens.issue_access_token(user.id, user.email),
            refresh_token=refresh.token,
            refresh_token_expires_on=ensure_utc(refresh.expires_on),
        )
