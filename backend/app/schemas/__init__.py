"""
Schemas Pydantic per il progetto Beleg Manager

Questo modulo contiene tutti gli schemi Pydantic utilizzati per la validazione
e serializzazione delle richieste e risposte API.
"""

# Import degli schemi per renderli disponibili tramite import diretto
# es: from app.schemas import DocumentRead, LineCreate, etc.

from app.schemas.document import (
    BasicsUpdate,
    BasicsVariant,
    CreditNoteBasics,
    CreditNoteRequest,
    CreditNoteSelection,
    DocType,
    DocumentCreate,
    DocumentList,
    DocumentRead,
    DocumentStatus,
    DocumentSummary,
    InvoiceBasics,
    LineCreate,
    LineMoveDirection,
    LineMoveRequest,
    LineRead,
    LineUpdate,
    OfferBasics,
    OfferType,
    PricingType,
    PurchaseContractBasics,
    SetCustomerRequest,
    SetPaidRequest,
    SetVehicleRequest,
    StockVehicleLineRequest,
    StornoBasics,
    TaxTreatment,
)
from app.schemas.work_card import WorkCardInvoiceRequest, WorkCardStatus, WorkCategory

__all__ = [
    "BasicsUpdate",
    "BasicsVariant",
    "CreditNoteBasics",
    "CreditNoteRequest",
    "CreditNoteSelection",
    "DocType",
    "DocumentCreate",
    "DocumentList",
    "DocumentRead",
    "DocumentStatus",
    "DocumentSummary",
    "InvoiceBasics",
    "LineCreate",
    "LineMoveDirection",
    "LineMoveRequest",
    "LineRead",
    "LineUpdate",
    "OfferBasics",
    "OfferType",
    "PricingType",
    "PurchaseContractBasics",
    "SetCustomerRequest",
    "SetPaidRequest",
    "SetVehicleRequest",
    "StockVehicleLineRequest",
    "StornoBasics",
    "TaxTreatment",
    "WorkCardInvoiceRequest",
    "WorkCardStatus",
    "WorkCategory",
]
