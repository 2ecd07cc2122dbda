"""
Gestione transazioni per il service layer
Progetto: Beleg Manager (Gestionale Documenti Commerciali)

Ogni operazione pubblica dei service è una singola transazione:
commit se tutto va a buon fine, rollback completo altrimenti.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def atomic(db: AsyncSession, operation: str = "operazione") -> AsyncIterator[AsyncSession]:
    """
    Esegue il blocco come unica transazione.

    - Nessuna eccezione: commit.
    - IntegrityError: rollback e ConflictError.
    - Qualsiasi altra eccezione: rollback e rilancio invariato.

    Args:
        db: Sessione database
        operation: Descrizione usata nei log

    Example:
        async with atomic(db, "finalizzazione documento"):
            document.is_final = True
    """
    try:
        yield db
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.error(f"Errore di integrità durante {operation}: {e}")
        raise ConflictError(f"Errore di integrità durante {operation}") from e
    except Exception:
        await db.rollback()
        raise
