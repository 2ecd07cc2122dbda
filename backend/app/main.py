"""
Applicazione FastAPI
Progetto: Beleg Manager (Gestionale Documenti Commerciali)

Avvio: uvicorn app.main:app --reload (dalla cartella backend/)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1 import api_v1_router
from app.core.config import settings
from app.core.database import close_db, engine, init_db
from app.core.exceptions import AppException

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
)
# L'echo SQL segue il flag debug, non il livello applicativo
logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if settings.debug else logging.WARNING)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Verifica il database all'avvio e rilascia il pool all'arresto."""
    logger.info(f"{settings.app_name} {settings.app_version} in avvio ({settings.app_env})")
    await init_db()
    try:
        yield
    finally:
        await close_db()
        logger.info(f"{settings.app_name} arrestato")


async def handle_app_exception(request: Request, exc: AppException) -> JSONResponse:
    """
    Errori di dominio → {"detail", "error_code", "extra"}.

    Lo status viene dalla classe dell'eccezione (404, 409, 422).
    """
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code} su {request.method} {request.url.path}: {exc.detail}")
    body = {"detail": exc.detail, "error_code": exc.error_code, "extra": exc.extra}
    return JSONResponse(status_code=exc.status_code, content=body)


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Errore non gestito su {request.method} {request.url.path}: {exc!r}", exc_info=exc)
    body = {"detail": "Errore interno del server", "error_code": "INTERNAL_SERVER_ERROR", "extra": None}
    return JSONResponse(status_code=500, content=body)


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.app_name,
        description="Offerte, fatture, note di credito, storni e contratti d'acquisto",
        version=settings.app_version,
        lifespan=lifespan,
        # Documentazione interattiva solo in debug
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
    )

    application.add_exception_handler(AppException, handle_app_exception)
    application.add_exception_handler(Exception, handle_unexpected)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["*"],
    )

    @application.get("/health", tags=["System"], summary="Stato dell'applicazione")
    async def health_check() -> dict[str, str]:
        return {
            "status": "ok",
            "app": settings.app_name,
            "version": settings.app_version,
            "environment": settings.app_env,
            "database": engine.dialect.name,
        }

    application.include_router(api_v1_router)
    return application


app = create_app()
