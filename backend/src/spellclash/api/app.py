"""FastAPI application: startup progress and health endpoints.

Bootstrapping runs on a worker thread so the server can answer
``/startup`` and ``/health`` while migrations and seeds are still running.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from spellclash.config import AppConfig
from spellclash.maintenance import SessionJanitor
from spellclash.persistence import Database
from spellclash.startup import StartupStatus, bootstrap

logger = logging.getLogger(__name__)

Bootstrapper = Callable[[AppConfig, StartupStatus], Database]

BOOTSTRAP_JOIN_TIMEOUT = 30.0


class StartupStepResponse(BaseModel):
    name: str
    completed: bool


class StartupResponse(BaseModel):
    ready: bool
    current: str
    progress: int
    steps: list[StartupStepResponse]
    error: str | None = None


class HealthResponse(BaseModel):
    status: str


def _run_bootstrap(app: FastAPI, bootstrapper: Bootstrapper) -> None:
    status: StartupStatus = app.state.startup
    try:
        db = bootstrapper(app.state.config, status)
    except Exception as exc:
        logger.exception("Startup failed")
        status.fail(str(exc))
        return
    with app.state.publish_lock:
        if app.state.shutting_down.is_set():
            logger.info("Shutdown began during startup, closing database")
            db.close()
            return
        app.state.db = db
        janitor = SessionJanitor(db)
        janitor.start()
        app.state.janitor = janitor


def create_app(
    config: AppConfig | None = None,
    bootstrapper: Bootstrapper = bootstrap,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Start bootstrapping on startup, release resources on shutdown."""
        app.state.config = config or AppConfig.from_env()
        app.state.startup = StartupStatus()
        app.state.db = None
        app.state.janitor = None
        app.state.shutting_down = threading.Event()
        app.state.publish_lock = threading.Lock()

        worker = threading.Thread(
            target=_run_bootstrap,
            args=(app, bootstrapper),
            name="bootstrap",
            daemon=True,
        )
        app.state.bootstrap_worker = worker
        worker.start()
        yield

        with app.state.publish_lock:
            app.state.shutting_down.set()
        worker.join(timeout=BOOTSTRAP_JOIN_TIMEOUT)
        if app.state.janitor is not None:
            app.state.janitor.stop()
        if app.state.db is not None:
            app.state.db.close()

    app = FastAPI(title="SpellClash API", lifespan=lifespan)

    @app.get("/startup", response_model=StartupResponse)
    async def startup_status() -> StartupResponse:
        snap = app.state.startup.snapshot()
        return StartupResponse(
            ready=snap.ready,
            current=snap.current,
            progress=snap.progress,
            steps=[StartupStepResponse(name=s.name, completed=s.completed) for s in snap.steps],
            error=snap.error,
        )

    @app.get("/health", response_model=HealthResponse)
    async def health():
        if not app.state.startup.ready:
            return JSONResponse(status_code=503, content={"status": "starting"})
        return HealthResponse(status="ok")

    return app


app = create_app()
