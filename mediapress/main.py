import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from redis.exceptions import RedisError

from .api.routes import compress, health, jobs, process
from .config import VERSION, Settings
from .errors import MediaPressError, RateLimitError
from .services.container import Services, build_services

logger = logging.getLogger(__name__)


def create_app(
        settings: Optional[Settings] = None,
        services_factory: Optional[Callable[[Settings], Services]] = None
) -> FastAPI:
    settings = settings or Settings.from_env()
    services_factory = services_factory or build_services

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        services = services_factory(settings)
        app.state.services = services

        try:
            await services.redis.ping()
            logger.info("✅ Redis connected")
        except (RedisError, OSError) as e:
            logger.warning(f"⚠️ Redis not available: {e}")

        if not settings.api_keys:
            logger.warning("⚠️ API_KEYS não configurada: autenticação desativada")
        if not settings.signing_keys:
            logger.warning("⚠️ Chaves de assinatura ausentes: gatilhos não serão verificados")

        yield

        await services.close()
        logger.info("Serviços encerrados")

    app = FastAPI(
        title="MediaPress - Compression API",
        description="API para compressão assíncrona de imagem, vídeo e áudio",
        version=VERSION,
        lifespan=lifespan,
    )

    if settings.storage_backend == "local":
        Path(settings.storage_dir).mkdir(parents=True, exist_ok=True)
        app.mount("/uploads", StaticFiles(directory=settings.storage_dir), name="uploads")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(MediaPressError)
    async def mediapress_error_handler(request: Request, exc: MediaPressError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(RateLimitError)
    async def rate_limit_handler(request: Request, exc: RateLimitError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": {"error": exc.message, "resetAfter": exc.reset_after_ms}},
            headers=exc.headers,
        )

    app.include_router(health.router, tags=["health"])
    app.include_router(compress.router, prefix="/api", tags=["compress"])
    app.include_router(jobs.router, prefix="/api", tags=["jobs"])
    app.include_router(process.router, prefix="/api", tags=["process"])

    @app.get("/")
    async def root():
        return {"message": "MediaPress Compression API is running", "version": VERSION}

    return app
