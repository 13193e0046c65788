from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from tasklist_api.core.clock import SystemClock
from tasklist_api.core.config import Settings
from tasklist_api.db.database import build_engine, build_sessionmaker, init_models
from tasklist_api.models.orm import Tag
from tasklist_api.service.auth_service import AuthService
from tasklist_api.service.task_service import TaskService
from tasklist_api.utils.security import PasswordHasher, TokenIssuer

TEST_SECRET = "test-signing-key-that-is-long-enough-for-hs256"
STRONG_PASSWORD = "Str0ng!Pass"


class FakeClock(SystemClock):
    def __init__(self) -> None:
        self.current = datetime.now(timezone.utc)

    def now(self) -> datetime:
        return self.current

    def advance(self, **delta) -> None:
        self.current += timedelta(**delta)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        AUTH_JWT_SECRET=TEST_SECRET,
        AUTH_BCRYPT_ROUNDS=4,
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        _env_file=None,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tokens(settings, clock) -> TokenIssuer:
    return TokenIssuer(settings, clock)


@pytest.fixture
def hasher(settings) -> PasswordHasher:
    return PasswordHasher(rounds=settings.AUTH_BCRYPT_ROUNDS)


@pytest.fixture
async def engine(settings):
    engine = build_engine(settings.DATABASE_URL)
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    async with build_sessionmaker(engine)() as session:
        yield session


@pytest.fixture
def auth_service(session, hasher, tokens, clock) -> AuthService:
    return AuthService(session, hasher=hasher, tokens=tokens, clock=clock)


@pytest.fixture
def task_service(session, clock) -> TaskService:
    return TaskService(session, clock=clock)


@pytest.fixture
async def user_id(auth_service, tokens) -> int:
    resp = await auth_service.register("Ann", "ann@x.com", STRONG_PASSWORD)
    return int(tokens.decode_access_token(resp.access_token)["sub"])


async def count_tags(session) -> int:
    res = await session.execute(select(func.count(Tag.id)))
    return int(res.scalar() or 0)
