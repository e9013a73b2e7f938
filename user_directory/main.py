"""
User Directory — application entry point.

This is the **only** file that assembles the app.  All business logic
lives in the `services/`, `api/`, `models/`, and `core/` packages.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from user_directory.api.api import api_router
from user_directory.api.endpoints.users import limiter
from user_directory.core.config import settings
from user_directory.core.exceptions import register_exception_handlers
from user_directory.db.session import Database
from user_directory.models.user import Role
from user_directory.services.user_service import UserService

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


async def seed_first_admin(database: Database) -> None:
    """Create the configured SUPERADMIN account if it does not exist yet."""
    if not (settings.FIRST_ADMIN_EMAIL and settings.FIRST_ADMIN_PASSWORD):
        return
    async with database.session() as session:
        service = UserService(session)
        if await service.get_user_by_email(settings.FIRST_ADMIN_EMAIL) is not None:
            return
        admin = await service.create_user(
            settings.FIRST_ADMIN_NAME,
            settings.FIRST_ADMIN_EMAIL,
            settings.FIRST_ADMIN_PASSWORD,
            Role.SUPERADMIN,
        )
        logger.info(
            "Default admin created: %s (password: <redacted>)",
            admin.email,
        )


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    database = Database(settings.database_url)
    await database.create_all()
    await seed_first_admin(database)
    application.state.database = database

    logger.info("%s v%s started", settings.PROJECT_NAME, settings.VERSION)
    yield
    await database.close()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="User account registration, login and management",
        version=settings.VERSION,
        lifespan=lifespan,
    )

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # Login rate limiting
    application.state.limiter = limiter

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    application.include_router(api_router)
    return application


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn on ``PORT``."""
    uvicorn.run("user_directory.main:app", host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    run()
