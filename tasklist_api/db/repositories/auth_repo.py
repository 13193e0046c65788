from datetime import datetime
from typing import Optional

from sqlalchemy import exists, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from tasklist_api.models.orm import RefreshToken, User


class AuthRepo:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def email_exists(self, email: str) -> bool:
        res = await self.session.execute(select(exists().where(User.email == email)))
        return bool(res.scalar())

    async def get_user_by_email(self, email: str) -> Optional[User]:
        res = await self.session.execute(select(User).where(User.email == email))
        return res.scalar_one_or_none()

    async def get_user(self, user_id: int) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def create_user(self, name: str, email: str, password_hash: str) -> User:
        u = User(name=name, email=email, password_hash=password_hash)
        self.session.add(u)
        await self.session.flush()
        return u

    async def add_refresh(self, user_id: int, token: str, created_on: datetime, expires_on: datetime) -> RefreshToken:
        rt = RefreshToken(
            user_id=user_id,
            token=token,
            created_on=created_on,
            expires_on=expires_on,
        )
        self.session.add(rt)
        await self.session.flush()
        return rt

    async def find_refresh(self, token: str) -> Optional[RefreshToken]:
        res = await self.session.execute(select(RefreshToken).where(RefreshToken.token == token))
        return res.scalar_one_or_none()

    async def find_active_refresh(self, user_id: int, now: datetime) -> Optional[RefreshToken]:
        res = await self.session.execute(
            select(RefreshToken)
            .where(
                RefreshToken.user_id == user_id,
                RefreshToken.revoked_on.is_(None),
                RefreshToken.expires_on > now,
            )
            .order_by(RefreshToken.id.desc())
            .limit(1)
        )
        return res.scalar_one_or_none()

    async def revoke_refresh(self, refresh: RefreshToken, now: datetime) -> bool:
        """Revoke only if the token is still active in storage. Returns False when
        another request revoked it first or it has expired."""
        res = await self.session.execute(
            update(RefreshToken)
            .where(
                RefreshToken.id == refresh.id,
                RefreshToken.revoked_on.is_(None),
                RefreshToken.expires_on > now,
            )
            .values(revoked_on=now)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            return False
        set_committed_value(refresh, "revoked_on", now)
        return True
