"""
Service Layer per le schede di lavoro
Progetto: Beleg Manager (Gestionale Documenti Commerciali)

Aggrega i tempi registrati sulle schede di lavoro per categoria e
risolve i parametri di fatturazione (minuti per AW, tariffa oraria).
La generazione della fattura vive in derived_document_service.
"""

import logging
import uuid
import unicodedata
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import BusinessValidationError, NotFoundError
from app.models import CompanySettings, WorkCard, WorkCardStep
from app.schemas.work_card import WorkCategory
from app.services.calculator import round_cents

# Logger per questo modulo
logger = logging.getLogger(__name__)

COMPANY_SETTINGS_ID = "default"

MIN_AW_MINUTES = 1
MAX_AW_MINUTES = 120

# Ordine delle righe in fattura
CATEGORY_ORDER = (
    WorkCategory.INNEN,
    WorkCategory.AUSSEN,
    WorkCategory.POLIEREN,
    WorkCategory.SONSTIGES,
)

CATEGORY_TITLES = {
    WorkCategory.INNEN: "Innenaufbereitung",
    WorkCategory.AUSSEN: "Außenwäsche",
    WorkCategory.POLIEREN: "Polieren",
    WorkCategory.SONSTIGES: "Sonstiges",
}

_UMLAUTS = str.maketrans({"ä": "ae", "ö": "oe", "ü": "ue", "ß": "ss"})


def normalize_work_step_category(step_name: Optional[str]) -> WorkCategory:
    """
    Riconduce il nome libero di un passo a una categoria fatturabile.

    "Innen" -> INNEN, "Außen"/"Aussen" -> AUSSEN, "Polieren" -> POLIEREN,
    tutto il resto (anche vuoto) -> SONSTIGES.
    """
    raw = unicodedata.normalize("NFC", (step_name or "").strip().lower())
    if not raw:
        return WorkCategory.SONSTIGES

    normalized = raw.translate(_UMLAUTS)
    if "innen" in normalized:
        return WorkCategory.INNEN
    if "aussen" in normalized:
        return WorkCategory.AUSSEN
    if "polier" in normalized:
        return WorkCategory.POLIEREN
    return WorkCategory.SONSTIGES


def aggregate_billable_seconds(steps: Iterable[WorkCardStep]) -> Dict[WorkCategory, int]:
    """
    Somma i secondi fatturabili per categoria.

    Le durate non positive vengono ignorate. Il dizionario restituito
    contiene solo le categorie con tempo, nell'ordine delle righe fattura.
    """
    totals = {category: 0 for category in CATEGORY_ORDER}
    for step in steps:
        seconds = step.duration_seconds or 0
        if seconds <= 0:
            continue
        totals[normalize_work_step_category(step.name)] += seconds
    return {category: seconds for category, seconds in totals.items() if seconds > 0}


def format_duration(total_seconds: int) -> str:
    """Formatta una durata come HH:MM:SS."""
    safe = max(0, int(total_seconds))
    hours, rest = divmod(safe, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_decimal_de(value: Decimal) -> str:
    """Formatta con due decimali e virgola, es. 12,50."""
    return f"{Decimal(value).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)}".replace(".", ",")


def clamp_aw_minutes(minutes: Optional[int]) -> int:
    value = settings.work_card_aw_minutes if minutes is None else int(minutes)
    return min(MAX_AW_MINUTES, max(MIN_AW_MINUTES, value))


def validate_hourly_override(override_cents: Optional[int]) -> None:
    """
    Raises:
        BusinessValidationError: Tariffa esplicita non positiva
    """
    if override_cents is not None and override_cents <= 0:
        raise BusinessValidationError(
            f"Tariffa oraria {override_cents} non valida: deve essere maggiore di zero"
        )


def resolve_hourly_rate(
    override_cents: Optional[int],
    customer_rate_cents: Optional[int],
    company_rate_cents: Optional[int],
) -> int:
    """
    Tariffa oraria effettiva: esplicita > cliente > azienda > configurazione.

    Raises:
        BusinessValidationError: Tariffa esplicita non positiva
    """
    validate_hourly_override(override_cents)
    for candidate in (override_cents, customer_rate_cents, company_rate_cents):
        if candidate is not None:
            return max(1, int(candidate))
    return max(1, settings.work_card_hourly_rate_cents)


def aw_unit_price_cents(hourly_rate_cents: int, aw_minutes: int) -> int:
    """Prezzo netto di una AW: tariffa oraria * minuti AW / 60, almeno 1 centesimo."""
    return max(1, round_cents(Decimal(hourly_rate_cents) * Decimal(aw_minutes) / Decimal(60)))


def billed_aw_qty(seconds: int, aw_minutes: int) -> Decimal:
    """Quantità in AW: secondi / 60 / minuti AW, due decimali, almeno 0,01."""
    raw = Decimal(seconds) / Decimal(60) / Decimal(aw_minutes)
    qty = raw.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return max(Decimal("0.01"), qty)


def work_line_description(
    category: WorkCategory,
    seconds: int,
    qty: Decimal,
    aw_minutes: int,
    hourly_rate_cents: int,
) -> str:
    parts = [
        f"Leistung: {CATEGORY_TITLES[category]}",
        f"Zeit: {format_duration(seconds)}",
        f"Abrechnung: {format_decimal_de(qty)} AW x {aw_minutes} Min",
        f"Stundensatz: {format_decimal_de(Decimal(hourly_rate_cents) / 100)} EUR/h netto",
    ]
    return " | ".join(parts)


class WorkCardService:
    """Accesso in lettura a schede di lavoro e impostazioni aziendali."""

    async def get_by_id(
        self,
        db: AsyncSession,
        card_id: uuid.UUID,
        for_update: bool = False,
    ) -> WorkCard:
        """
        Recupera una scheda di lavoro con i suoi passi.

        Raises:
            NotFoundError: Scheda non trovata
        """
        card = await db.get(WorkCard, card_id, with_for_update=for_update, populate_existing=for_update)
        if not card:
            raise NotFoundError(f"Scheda di lavoro {card_id} non trovata")
        return card

    async def get_company_settings(self, db: AsyncSession) -> Optional[CompanySettings]:
        return await db.get(CompanySettings, COMPANY_SETTINGS_ID)
