"""
Configurazione Database - SQLAlchemy 2.0 Async
Progetto: Beleg Manager (Gestionale Documenti Commerciali)

Engine, session factory e dependency FastAPI. Le sessioni non scadono
al commit: i service restituiscono documenti già caricati con le righe
e la serializzazione avviene dopo il commit.
"""

import logging
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings

logger = logging.getLogger(__name__)

# Dialetti con INSERT ... ON CONFLICT ... RETURNING per i contatori
SUPPORTED_DIALECTS = ("postgresql", "sqlite")


def engine_options(database_url: str) -> dict:
    """
    Opzioni di create_async_engine per il dialetto dell'URL.

    PostgreSQL: pool dimensionato da settings e READ COMMITTED, il livello
    minimo richiesto dal contatore dei numeri documento. SQLite non accetta
    né l'uno né l'altro: usa il pool di default del driver.
    """
    options = {"echo": settings.debug, "pool_pre_ping": True}
    if make_url(database_url).get_backend_name() == "postgresql":
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            isolation_level="READ COMMITTED",
        )
    return options


engine: AsyncEngine = create_async_engine(settings.database_url, **engine_options(settings.database_url))

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Sessione per richiesta HTTP.

    Il commit è responsabilità del service (app.core.transaction.atomic);
    qui si annulla solo quanto rimasto aperto da un errore.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """
    Verifica all'avvio che il database sia raggiungibile e supportato.

    Raises:
        RuntimeError: Dialetto senza upsert atomico per i contatori
    """
    if engine.dialect.name not in SUPPORTED_DIALECTS:
        raise RuntimeError(
            f"Database {engine.dialect.name} non supportato (ammessi: {', '.join(SUPPORTED_DIALECTS)})"
        )
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Database non raggiungibile: %s", e)
        raise
    logger.info(f"Database {engine.dialect.name} raggiungibile")


async def close_db() -> None:
    await engine.dispose()
    logger.info("Connessioni database chiuse")
