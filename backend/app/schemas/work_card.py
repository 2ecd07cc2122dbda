"""
Schemas Pydantic per le schede di lavoro
Progetto: Beleg Manager (Gestionale Documenti Commerciali)
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class WorkCardStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class WorkCategory(str, Enum):
    """Categorie di lavoro fatturabili (una riga fattura per categoria)."""
    INNEN = "INNEN"
    AUSSEN = "AUSSEN"
    POLIEREN = "POLIEREN"
    SONSTIGES = "SONSTIGES"


class WorkCardInvoiceRequest(BaseModel):
    """Richiesta di fatturazione di una scheda di lavoro."""

    hourly_rate_cents: Optional[int] = Field(
        None,
        description="Tariffa oraria netta esplicita in centesimi (prevale su cliente e default)",
    )
