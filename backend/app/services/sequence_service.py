"""
Allocazione numeri documento
Progetto: Beleg Manager (Gestionale Documenti Commerciali)

Due spazi di numerazione indipendenti per (tipo documento, anno):
- numeri bozza:  DR-<n>
- numeri finali: <PREFISSO>-<anno>-<00001>

Ogni incremento è un unico upsert atomico sulla riga contatore, eseguito
nella stessa transazione che usa il numero. Due transazioni concorrenti
non possono leggere lo stesso valore: la seconda attende il lock di riga
della prima. I valori non vengono mai recuperati né riutilizzati.
"""

import logging
from typing import Type, Union

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import DocumentCounter, DocumentDraftCounter
from app.schemas.document import DocType

logger = logging.getLogger(__name__)

PREFIXES = {
    DocType.OFFER: "ANG",
    DocType.INVOICE: "RE",
    DocType.CREDIT_NOTE: "GS",
    DocType.STORNO: "ST",
    DocType.PURCHASE_CONTRACT: "ORD",
}

DRAFT_PREFIX = "DR-"

CounterModel = Type[Union[DocumentCounter, DocumentDraftCounter]]


def format_final_number(doc_type: DocType, year: int, seq: int) -> str:
    """Formatta un numero finale, es. RE-2025-00001."""
    return f"{PREFIXES[DocType(doc_type)]}-{year}-{seq:05d}"


def format_draft_number(seq: int) -> str:
    return f"{DRAFT_PREFIX}{seq}"


def is_draft_number(number: str | None) -> bool:
    """True se il numero è vuoto o ha la forma di un numero bozza."""
    return not number or number.startswith(DRAFT_PREFIX)


async def _increment(db: AsyncSession, model: CounterModel, doc_type: DocType, year: int) -> int:
    """
    Incrementa (o crea a 1) il contatore (doc_type, year) e restituisce il nuovo valore.

    INSERT ... ON CONFLICT (doc_type, year) DO UPDATE SET last_seq = last_seq + 1
    RETURNING last_seq
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        insert = postgresql.insert
    elif dialect == "sqlite":
        insert = sqlite.insert
    else:
        raise NotImplementedError(f"Dialetto database non supportato per i contatori: {dialect}")

    stmt = insert(model).values(doc_type=DocType(doc_type).value, year=year, last_seq=1)
    stmt = stmt.on_conflict_do_update(
        index_elements=[model.doc_type, model.year],
        set_={"last_seq": model.last_seq + 1},
    ).returning(model.last_seq)

    result = await db.execute(stmt)
    return result.scalar_one()


async def next_draft_number(db: AsyncSession, doc_type: DocType, year: int) -> str:
    """
    Riserva il prossimo numero bozza per (tipo, anno).

    Args:
        db: Sessione database (transazione del chiamante)
        doc_type: Tipo documento
        year: Anno di riferimento

    Returns:
        str: Numero bozza, es. "DR-7"
    """
    seq = await _increment(db, DocumentDraftCounter, doc_type, year)
    number = format_draft_number(seq)
    logger.debug(f"Numero bozza {number} riservato per {DocType(doc_type).value}/{year}")
    return number


async def next_final_number(db: AsyncSession, doc_type: DocType, year: int) -> str:
    """
    Riserva il prossimo numero finale per (tipo, anno).

    Args:
        db: Sessione database (transazione del chiamante)
        doc_type: Tipo documento
        year: Anno di riferimento

    Returns:
        str: Numero finale, es. "RE-2025-00001"
    """
    seq = await _increment(db, DocumentCounter, doc_type, year)
    number = format_final_number(doc_type, year, seq)
    logger.info(f"Numero finale {number} allocato")
    return number
