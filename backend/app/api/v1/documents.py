"""
Router FastAPI per i Documenti Commerciali
Progetto: Beleg Manager (Gestionale Documenti Commerciali)

Definisce gli endpoint API per il ciclo di vita dei documenti:
creazione, dati base, righe, finalizzazione, pagamento, storno
e generazione di documenti derivati.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Body, Depends, Path, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.document import (
    BasicsUpdate,
    CreditNoteRequest,
    DocType,
    DocumentCreate,
    DocumentList,
    DocumentRead,
    DocumentStatus,
    LineCreate,
    LineMoveRequest,
    LineUpdate,
    SetCustomerRequest,
    SetPaidRequest,
    SetVehicleRequest,
    StockVehicleLineRequest,
)
from app.services.derived_document_service import DerivedDocumentService
from app.services.document_service import DocumentService

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Istanze dei service
document_service = DocumentService()
derived_service = DerivedDocumentService(documents=document_service)

# Router con prefix e tag
router = APIRouter(
    prefix="/documents",
    tags=["Documenti"],
)


# -------------------------------------------------------------------
# Lettura e creazione
# -------------------------------------------------------------------

@router.get(
    "/",
    name="documenti_lista",
    summary="Lista documenti",
    description="Recupera la lista paginata dei documenti con eventuali filtri.",
    response_model=DocumentList,
    status_code=status.HTTP_200_OK,
)
async def list_documents(
    doc_type: Optional[DocType] = Query(None, description="Filtro per tipo documento"),
    status_filter: Optional[DocumentStatus] = Query(None, alias="status", description="Filtro per stato"),
    customer_id: Optional[uuid.UUID] = Query(None, description="Filtro per UUID cliente"),
    search: Optional[str] = Query(None, description="Ricerca sul numero documento"),
    include_converted: bool = Query(True, description="Includi le offerte convertite"),
    page: int = Query(1, ge=1, description="Numero pagina"),
    per_page: int = Query(20, ge=1, le=100, description="Elementi per pagina"),
    db: AsyncSession = Depends(get_db),
) -> DocumentList:
    return await document_service.get_all(
        db=db,
        doc_type=doc_type,
        status_filter=status_filter,
        customer_id=customer_id,
        search=search,
        include_converted=include_converted,
        page=page,
        per_page=per_page,
    )


@router.post(
    "/",
    name="documenti_crea",
    summary="Crea documento",
    description="Crea un documento in bozza con numero bozza e date di default.",
    response_model=DocumentRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_document(
    data: DocumentCreate,
    db: AsyncSession = Depends(get_db),
) -> DocumentRead:
    return await document_service.create(db, data)


@router.get(
    "/{document_id}",
    name="documenti_dettaglio",
    summary="Dettaglio documento",
    response_model=DocumentRead,
)
async def get_document(
    document_id: uuid.UUID = Path(..., description="UUID del documento"),
    db: AsyncSession = Depends(get_db),
) -> DocumentRead:
    return await document_service.get_by_id(db, document_id)


@router.delete(
    "/{document_id}",
    name="documenti_elimina",
    summary="Elimina documento",
    description="Elimina il documento e le sue righe. Non consentito su documenti pagati o stornati.",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_document(
    document_id: uuid.UUID = Path(..., description="UUID del documento"),
    db: AsyncSession = Depends(get_db),
) -> Response:
    await document_service.delete(db, document_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# -------------------------------------------------------------------
# Dati base, cliente, veicolo
# -------------------------------------------------------------------

@router.patch(
    "/{document_id}/basics",
    name="documenti_dati_base",
    summary="Aggiorna dati base",
    description="Aggiorna date e note. Il payload dipende dal tipo documento (campo doc_type).",
    response_model=DocumentRead,
)
async def update_basics(
    payload: BasicsUpdate,
    document_id: uuid.UUID = Path(..., description="UUID del documento"),
    db: AsyncSession = Depends(get_db),
) -> DocumentRead:
    return await document_service.update_basics(db, document_id, payload)


@router.put(
    "/{document_id}/customer",
    name="documenti_cliente",
    summary="Assegna cliente",
    description="Assegna o rimuove il cliente. Il veicolo viene azzerato.",
    response_model=DocumentRead,
)
async def set_customer(
    data: SetCustomerRequest,
    document_id: uuid.UUID = Path(..., description="UUID del documento"),
    db: AsyncSession = Depends(get_db),
) -> DocumentRead:
    return await document_service.set_customer(db, document_id, data.customer_id)


@router.put(
    "/{document_id}/vehicle",
    name="documenti_veicolo",
    summary="Assegna veicolo",
    response_model=DocumentRead,
)
async def set_vehicle(
    data: SetVehicleRequest,
    document_id: uuid.UUID = Path(..., description="UUID del documento"),
    db: AsyncSession = Depends(get_db),
) -> DocumentRead:
    return await document_service.set_vehicle(db, document_id, data.vehicle_id)


# -------------------------------------------------------------------
# Righe
# -------------------------------------------------------------------

@router.post(
    "/{document_id}/lines",
    name="documenti_riga_aggiungi",
    summary="Aggiungi riga libera",
    response_model=DocumentRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_line(
    data: LineCreate,
    document_id: uuid.UUID = Path(..., description="UUID del documento"),
    db: AsyncSession = Depends(get_db),
) -> DocumentRead:
    return await document_service.add_custom_line(db, document_id, data)


@router.post(
    "/{document_id}/lines/from-service/{service_id}",
    name="documenti_riga_da_catalogo",
    summary="Aggiungi riga da catalogo prestazioni",
    response_model=DocumentRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_line_from_service(
    document_id: uuid.UUID = Path(..., description="UUID del documento"),
    service_id: uuid.UUID = Path(..., description="UUID della prestazione"),
    db: AsyncSession = Depends(get_db),
) -> DocumentRead:
    return await document_service.add_line_from_service(db, document_id, service_id)


@router.post(
    "/{document_id}/lines/from-stock-vehicle/{vehicle_id}",
    name="documenti_riga_da_giacenza",
    summary="Aggiungi veicolo in giacenza",
    description="Aggiunge la vendita di un veicolo in giacenza, per default in regime del margine.",
    response_model=DocumentRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_line_from_stock_vehicle(
    data: Optional[StockVehicleLineRequest] = Body(None),
    document_id: uuid.UUID = Path(..., description="UUID del documento"),
    vehicle_id: uuid.UUID = Path(..., description="UUID del veicolo"),
    db: AsyncSession = Depends(get_db),
) -> DocumentRead:
    margin_scheme = data.margin_scheme if data is not None else True
    return await document_service.add_line_from_stock_vehicle(
        db, document_id, vehicle_id, margin_scheme=margin_scheme
    )


@router.patch(
    "/{document_id}/lines/{line_id}",
    name="documenti_riga_modifica",
    summary="Modifica riga",
    response_model=DocumentRead,
)
async def update_line(
    patch: LineUpdate,
    document_id: uuid.UUID = Path(..., description="UUID del documento"),
    line_id: uuid.UUID = Path(..., description="UUID della riga"),
    db: AsyncSession = Depends(get_db),
) -> DocumentRead:
    return await document_service.update_line(db, document_id, line_id, patch)


@router.post(
    "/{document_id}/lines/{line_id}/move",
    name="documenti_riga_sposta",
    summary="Sposta riga",
    response_model=DocumentRead,
)
async def move_line(
    data: LineMoveRequest,
    document_id: uuid.UUID = Path(..., description="UUID del documento"),
    line_id: uuid.UUID = Path(..., description="UUID della riga"),
    db: AsyncSession = Depends(get_db),
) -> DocumentRead:
    return await document_service.move_line(db, document_id, line_id, data.direction)


@router.delete(
    "/{document_id}/lines/{line_id}",
    name="documenti_riga_elimina",
    summary="Elimina riga",
    response_model=DocumentRead,
)
async def delete_line(
    document_id: uuid.UUID = Path(..., description="UUID del documento"),
    line_id: uuid.UUID = Path(..., description="UUID della riga"),
    db: AsyncSession = Depends(get_db),
) -> DocumentRead:
    return await document_service.delete_line(db, document_id, line_id)


# -------------------------------------------------------------------
# Transizioni di stato
# -------------------------------------------------------------------

@router.post(
    "/{document_id}/toggle-finalize",
    name="documenti_finalizza_toggle",
    summary="Finalizza / riporta in bozza",
    response_model=DocumentRead,
)
async def toggle_finalize(
    document_id: uuid.UUID = Path(..., description="UUID del documento"),
    db: AsyncSession = Depends(get_db),
) -> DocumentRead:
    return await document_service.toggle_finalize(db, document_id)


@router.post(
    "/{document_id}/finalize",
    name="documenti_finalizza",
    summary="Finalizza documento",
    response_model=DocumentRead,
)
async def finalize(
    document_id: uuid.UUID = Path(..., description="UUID del documento"),
    db: AsyncSession = Depends(get_db),
) -> DocumentRead:
    return await document_service.finalize(db, document_id)


@router.post(
    "/{document_id}/paid",
    name="documenti_pagato",
    summary="Registra o rimuove il pagamento",
    response_model=DocumentRead,
)
async def set_paid(
    data: SetPaidRequest,
    document_id: uuid.UUID = Path(..., description="UUID del documento"),
    db: AsyncSession = Depends(get_db),
) -> DocumentRead:
    return await document_service.set_paid(db, document_id, data.paid_at)


@router.post(
    "/{document_id}/sent",
    name="documenti_inviato",
    summary="Segna come inviata",
    response_model=DocumentRead,
)
async def set_sent(
    document_id: uuid.UUID = Path(..., description="UUID del documento"),
    db: AsyncSession = Depends(get_db),
) -> DocumentRead:
    return await document_service.set_sent(db, document_id)


@router.post(
    "/{document_id}/cancel",
    name="documenti_storna",
    summary="Storna fattura pagata",
    response_model=DocumentRead,
)
async def cancel(
    document_id: uuid.UUID = Path(..., description="UUID del documento"),
    db: AsyncSession = Depends(get_db),
) -> DocumentRead:
    return await document_service.cancel(db, document_id)


# -------------------------------------------------------------------
# Documenti derivati
# -------------------------------------------------------------------

@router.post(
    "/{document_id}/convert-to-invoice",
    name="documenti_converti_offerta",
    summary="Converti offerta in fattura",
    response_model=DocumentRead,
    status_code=status.HTTP_201_CREATED,
)
async def convert_to_invoice(
    document_id: uuid.UUID = Path(..., description="UUID del documento"),
    db: AsyncSession = Depends(get_db),
) -> DocumentRead:
    return await derived_service.convert_offer_to_invoice(db, document_id)


@router.post(
    "/{document_id}/credit-note",
    name="documenti_nota_credito",
    summary="Crea nota di credito",
    description="Crea una nota di credito parziale da una fattura pagata.",
    response_model=DocumentRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_credit_note(
    data: CreditNoteRequest,
    document_id: uuid.UUID = Path(..., description="UUID del documento"),
    db: AsyncSession = Depends(get_db),
) -> DocumentRead:
    return await derived_service.credit_note_from_invoice(db, document_id, data.selections)


@router.post(
    "/{document_id}/storno",
    name="documenti_storno",
    summary="Crea storno",
    description="Crea lo storno completo di una fattura pagata e la annulla.",
    response_model=DocumentRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_storno(
    document_id: uuid.UUID = Path(..., description="UUID del documento"),
    db: AsyncSession = Depends(get_db),
) -> DocumentRead:
    return await derived_service.storno_from_invoice(db, document_id)
