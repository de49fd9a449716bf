from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.config import validate_settings
from app.logging_utils import configure_logging


def _validate_env() -> None:
    """
    Validate all required environment variables at startup.

    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.

    Rules:
    - LLM API key check is skipped only when LLM_ADAPTER=mock.
    - DISPLAY_TIMEZONE must name a known IANA zone.
    - SEED_RECORDS_PATH, when set, must point to a file.
    """

    errors = validate_settings()
    if errors:
        raise RuntimeError(
            "Startup validation failed - missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Build the validation session on boot; stop any running batch on exit."""
    from app.services.validation_service import get_validation_session

    session_factory = application.dependency_overrides.get(get_validation_session, get_validation_session)
    session = session_factory()
    logging.getLogger(__name__).info(
        "Validation session ready with %d seed records", len(session.records())
    )
    try:
        yield
    finally:
        await session.shutdown()
        logging.getLogger(__name__).info("Validation session shut down")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    configure_logging()

    application = FastAPI(
        title="Category Cop API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import descriptions_router, export_router, validation_router

    application.include_router(validation_router)
    application.include_router(export_router)
    application.include_router(descriptions_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
