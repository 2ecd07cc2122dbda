"""
Router FastAPI per le schede di lavoro
Progetto: Beleg Manager (Gestionale Documenti Commerciali)
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Body, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.documents import derived_service
from app.core.database import get_db
from app.schemas.document import DocumentRead
from app.schemas.work_card import WorkCardInvoiceRequest

# Logger per questo modulo
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/work-cards",
    tags=["Schede di lavoro"],
)


@router.post(
    "/{card_id}/invoice",
    name="schede_fattura",
    summary="Fattura scheda di lavoro",
    description=(
        "Crea la fattura in bozza di una scheda chiusa, una riga per categoria. "
        "Se la scheda è già fatturata restituisce la fattura esistente."
    ),
    response_model=DocumentRead,
    status_code=status.HTTP_200_OK,
)
async def invoice_work_card(
    data: Optional[WorkCardInvoiceRequest] = Body(None),
    card_id: uuid.UUID = Path(..., description="UUID della scheda di lavoro"),
    db: AsyncSession = Depends(get_db),
) -> DocumentRead:
    hourly_rate = data.hourly_rate_cents if data is not None else None
    return await derived_service.invoice_from_work_card(db, card_id, hourly_rate_cents=hourly_rate)
