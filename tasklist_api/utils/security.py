import asyncio
import base64
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict

import bcrypt
import jwt

from tasklist_api.core.clock import SystemClock
from tasklist_api.core.config import Settings
from tasklist_api.core.errors import AuthenticationError

ACCESS_TOKEN_ALGORITHM = "HS256"
ACCESS_TOKEN_ROLE = "User"
REFRESH_TOKEN_BYTES = 32


class PasswordHasher:
    """Salted bcrypt hashes. ``verify`` never raises on a mismatch."""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds
        # verified against when a login names an unknown account
        self.dummy_hash = self.hash(secrets.token_urlsafe(16))

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(self.rounds)
        return bcrypt.hashpw(password.encode(), salt).decode()

    def verify(self, password_hash: str, password: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode(), password_hash.encode())
        except ValueError:
            # malformed hash or a password over bcrypt's 72-byte input limit
            return False

    async def hash_async(self, password: str) -> str:
        return await asyncio.to_thread(self.hash, password)

    async def verify_async(self, password_hash: str, password: str) -> bool:
        return await asyncio.to_thread(self.verify, password_hash, password)


@dataclass(frozen=True)
class IssuedRefreshToken:
    token: str
    created_on: datetime
    expires_on: datetime


class TokenIssuer:
    def __init__(self, settings: Settings, clock: SystemClock):
        self.settings = settings
        self.clock = clock

    def issue_access_token(self, user_id: int, email: str) -> str:
        now = self.clock.now()
        exp = now + timedelta(minutes=self.settings.AUTH_ACCESS_TTL_MIN)
        payload = {
            "jti": str(uuid.uuid4()),
            "sub": str(user_id),
            "email": email,
            "role": ACCESS_TOKEN_ROLE,
            "iss": self.settings.AUTH_ISS,
            "aud": self.settings.AUTH_AUD,
            "iat": int(now.timestamp()),
            "exp": int(exp.timestamp()),
        }
        return jwt.encode(payload, self.settings.AUTH_JWT_SECRET, algorithm=ACCESS_TOKEN_ALGORITHM)

    def decode_access_token(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(
                token,
                self.settings.AUTH_JWT_SECRET,
                algorithms=[ACCESS_TOKEN_ALGORITHM],
                audience=self.settings.AUTH_AUD,
                issuer=self.settings.AUTH_ISS,
                leeway=0,
                options={"require": ["exp", "sub", "jti"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise AuthenticationError("Access token expired.") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthenticationError("Invalid access token.") from exc

    def issue_refresh_token(self) -> IssuedRefreshToken:
        now = self.clock.now()
        raw = self.clock.random_bytes(REFRESH_TOKEN_BYTES)
        return IssuedRefreshToken(
            token=base64.b64encode(raw).decode(),
            created_on=now,
            expires_on=now + timedelta(days=self.settings.AUTH_REFRESH_TTL_DAYS),
        )
