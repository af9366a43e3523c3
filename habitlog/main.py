import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy import text

from habitlog.db.base import Base, get_db, get_session_factory
from habitlog.core.config import settings
from habitlog.routers import state as state_router
from habitlog.core.errors import (
    HabitLogException,
    habitlog_exception_handler,
    validation_exception_handler,
    unhandled_exception_handler,
)
from habitlog.services.clock import Clock, SystemClock
from habitlog.services.persistence import PersistenceGateway
from habitlog.services.recovery import RecoveryLoader
from habitlog.services.scheduler import RolloverScheduler, SchedulerThread
import habitlog.models  # noqa: F401  (registers tables on Base.metadata)

logger = logging.getLogger("habitlog")


def create_app(
    session_factory: Optional[sessionmaker[Session]] = None,
    clock: Optional[Clock] = None,
    start_scheduler: bool = True,
) -> FastAPI:
    """
    Build the API. The lifespan recovers every known user's day state
    before the first request and runs the rollover scheduler until shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        factory = session_factory or get_session_factory()
        app_clock = clock or SystemClock(settings.TIMEZONE or None)

        if settings.CREATE_TABLES:
            with factory() as db:
                Base.metadata.create_all(bind=db.get_bind())

        gateway = PersistenceGateway(factory)
        credentials = settings.credentials
        # Raises on any persistence error: nobody is served with unknown history.
        registry = RecoveryLoader(gateway, app_clock).load_all(credentials.keys())
        logger.info("Recovered day state for %d users", len(registry.usernames()))

        scheduler = RolloverScheduler(
            registry,
            gateway,
            app_clock,
            snapshot_hours=settings.snapshot_hours_set,
            window_minutes=settings.SNAPSHOT_WINDOW_MINUTES,
        )
        runner = SchedulerThread(scheduler, interval=settings.TICK_INTERVAL_SECONDS)

        app.state.session_factory = factory
        app.state.gateway = gateway
        app.state.registry = registry
        app.state.scheduler = scheduler
        app.state.credentials = credentials

        if start_scheduler:
            runner.start()
        try:
            yield
        finally:
            runner.stop()

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="habitlog API",
        description=(
            "**Per-user daily habit counters**\n\n"
            "Counters and named events accumulate in memory for the current day, "
            "are checkpointed at fixed hours and archived at midnight.\n\n"
            "All error responses follow the `{code, message, details}` envelope."
        ),
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers (most specific first) ---
    app.add_exception_handler(HabitLogException, habitlog_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --- Routers ---
    app.include_router(state_router.router)

    @app.get("/health", tags=["health"], summary="Health check")
    def health(db: Session = Depends(get_db)):
        """
        Returns `{"status": "ok", "db": "ok"}` when both the API and the database
        are reachable. Returns HTTP 503 if the DB is down.
        """
        try:
            db.execute(text("SELECT 1"))
            db_status = "ok"
        except Exception:
            db_status = "unreachable"

        if db_status != "ok":
            return JSONResponse(
                status_code=503,
                content={"status": "error", "db": db_status},
            )
        return {"status": "ok", "db": "ok", "env": settings.APP_ENV}

    # --- Web client (mounted last so API routes win) ---
    if os.path.isdir(settings.STATIC_DIR):
        app.mount("/", StaticFiles(directory=settings.STATIC_DIR, html=True), name="static")

    return app


app = create_app()
