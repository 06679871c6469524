import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError

from sunny.core.config import get_settings
from sunny.core.logging import setup_logging
from sunny.db.database import init_db, init_engine
from sunny.routers import (
    auth,
    chat,
    dashboard,
    leaderboard,
    missions,
    notes,
    progress,
    quiz,
    session,
    system,
    users,
)

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)

    init_engine(settings.DATABASE_URL)
    init_db()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="API backend de Sunny, tuteur IA pour enfants (sessions, quiz adaptatifs, notes, XP)",
    )

    # Middleware CORS
    origins = []
    if settings.CORS_ORIGINS:
        origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],  # fallback si mal configuré
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Database error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Database error. Please try again later."})

    # Routers
    app.include_router(system.router)
    app.include_router(session.router)
    app.include_router(quiz.router)
    app.include_router(notes.router)
    app.include_router(dashboard.router)
    app.include_router(progress.router)
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(chat.router)
    app.include_router(leaderboard.router)
    app.include_router(missions.router)

    logger.info(
        "%s %s started (env=%s, demo_mode=%s)",
        settings.APP_NAME, settings.APP_VERSION, settings.APP_ENV, settings.demo_mode,
    )

    # Redirect root → docs
    @app.get("/", include_in_schema=False)
    async def root():
        return RedirectResponse(url="/docs")

    return app


app = create_app()
