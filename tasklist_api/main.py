import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from tasklist_api.api import auth as auth_api
from tasklist_api.api import tasks as tasks_api
from tasklist_api.core.clock import SystemClock
from tasklist_api.core.config import Settings, get_settings
from tasklist_api.core.errors import register_exception_handlers
from tasklist_api.core.logging import setup_logging
from tasklist_api.db.database import build_engine, build_sessionmaker, init_models
from tasklist_api.utils.audit import AuditMiddleware
from tasklist_api.utils.security import PasswordHasher, TokenIssuer

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_models(app.state.engine)
    logger.info("Database schema ready")
    yield
    await app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(title="Task List API", version="0.1.0", lifespan=lifespan)

    clock = SystemClock()
    engine = build_engine(settings.DATABASE_URL)
    app.state.settings = settings
    app.state.engine = engine
    app.state.sessionmaker = build_sessionmaker(engine)
    app.state.clock = clock
    app.state.hasher = PasswordHasher(rounds=settings.AUTH_BCRYPT_ROUNDS)
    app.state.tokens = TokenIssuer(settings, clock)

    app.add_middleware(AuditMiddleware)
    register_exception_handlers(app, detailed=settings.is_development)

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok"}

    app.include_router(auth_api.router, prefix="/api/auth", tags=["auth"])
    app.include_router(tasks_api.router, prefix="/api/tasks", tags=["tasks"])

    return app


def run() -> None:
    # also: uvicorn tasklist_api.main:create_app --factory
    import uvicorn

    uvicorn.run(
        create_app(),
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
    )


if __name__ == "__main__":
    run()
