from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator
from datetime import datetime, timezone

from fastapi import FastAPI

from app.schemas.reports import HealthResponse

_ALLOWED_LLM_ADAPTERS = ("anthropic", "openai", "mock")


def _validate_env() -> None:
    """
    Refuse to start without a usable model configuration.

    LLM_ADAPTER must name a known adapter, and every adapter except mock
    needs a non-empty API key. All problems are reported in one
    RuntimeError.
    """

    from app.config import load_env_files

    load_env_files()

    errors: list[str] = []

    # --- LLM adapter ----------------------------------------------------
    adapter = os.getenv("LLM_ADAPTER", "anthropic").strip().lower() or "anthropic"
    if adapter not in _ALLOWED_LLM_ADAPTERS:
        errors.append(
            f"LLM_ADAPTER='{adapter}' is not valid. Allowed values: {list(_ALLOWED_LLM_ADAPTERS)}."
        )

    # --- LLM API key ----------------------------------------------------
    if adapter == "openai":
        key_names = ("LLM_API_KEY", "OPENAI_API_KEY")
    else:
        key_names = ("LLM_API_KEY", "CLAUDE_API_KEY", "ANTHROPIC_API_KEY")
    if adapter != "mock" and not any(os.getenv(name, "").strip() for name in key_names):
        errors.append(
            f"LLM API key is not set. Provide one of {', '.join(key_names)}. "
            "Empty strings are not permitted."
        )

    if errors:
        raise RuntimeError(
            "Startup validation failed: missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Start the report cleanup scheduler on boot; shut it down on exit."""
    from app.config import get_report_settings

    log = logging.getLogger(__name__)
    settings = get_report_settings()
    settings.reports_dir.mkdir(parents=True, exist_ok=True)
    log.info("Report directory ready at %s", settings.reports_dir)

    if not settings.scheduler_enabled:
        log.info("Scheduler disabled by SCHEDULER_ENABLED")
        yield
        return

    from app.scheduler.jobs import build_scheduler

    scheduler = build_scheduler()
    scheduler.start()
    log.info("Scheduler started with %d jobs", len(scheduler.get_jobs()))
    try:
        yield
    finally:
        scheduler.shutdown(wait=True)
        log.info("Scheduler shut down")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="SLA Report API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import reports_router, upload_router

    application.include_router(upload_router)
    application.include_router(reports_router)

    @application.get("/api/health", response_model=HealthResponse)
    def healthcheck() -> HealthResponse:
        return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc))

    return application


app = create_app()
