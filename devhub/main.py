from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from devhub.api.deps import build_sweepers
from devhub.api.rate_limit import limiter, rate_limit_exceeded_handler
from devhub.api.routers import admin, auth, billing, purchases
from devhub.shared.config import get_settings


logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    sweepers = build_sweepers(settings)
    for sweeper in sweepers:
        sweeper.start()
    app.state.sweepers = sweepers
    try:
        yield
    finally:
        for sweeper in sweepers:
            sweeper.stop()


def create_app(*, run_sweepers: bool = True) -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="DevHub Connect API", lifespan=lifespan if run_sweepers else None)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_allowed_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    app.include_router(auth.router)
    app.include_router(billing.router)
    app.include_router(purchases.router)
    app.include_router(admin.router)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled error method=%s path=%s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error."})

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()
