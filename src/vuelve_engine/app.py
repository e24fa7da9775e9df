"""FastAPI application factory for Vuelve-Engine."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vuelve_engine.common.config import get_settings
from vuelve_engine.common.exceptions import RateLimitedError, VuelveError
from vuelve_engine.common.logging import setup_logging
from vuelve_engine.common.schemas import ErrorResponse, HealthResponse


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        from vuelve_engine.deps import get_db
        db = get_db()
        await db.init()
        await db.create_all()
        yield
        # Shutdown
        await db.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(VuelveError)
    async def vuelve_error_handler(request: Request, exc: VuelveError):
        headers = {}
        if isinstance(exc, RateLimitedError) and exc.retry_after:
            headers["Retry-After"] = str(exc.retry_after)
        return JSONResponse(
            ErrorResponse(error=exc.message, code=exc.code).model_dump(),
            status_code=exc.status_code,
            headers=headers,
        )

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    from vuelve_engine.auth.router import router as auth_router

    app.include_router(auth_router, prefix=settings.api_prefix)

    return app
