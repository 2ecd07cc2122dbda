"""
Schemas Pydantic per i Documenti Commerciali
Progetto: Beleg Manager (Gestionale Documenti Commerciali)

Contiene:
- Enums: DocType, OfferType, DocumentStatus, TaxTreatment, LineMoveDirection, PricingType
- Schemas per DocumentLine (creazione, modifica, spostamento, lettura)
- Schemas per Document (creazione, dati base per tipo, lettura, lista)
- Schemas per le operazioni di stato e i documenti derivati
"""

import uuid
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    RootModel,
    computed_field,
    field_validator,
)

from app.core.config import settings


QTY_STEP = Decimal("0.01")


# -------------------------------------------------------------------
# Enum
# -------------------------------------------------------------------

class DocType(str, Enum):
    """Tipi di documento commerciale."""
    OFFER = "OFFER"
    INVOICE = "INVOICE"
    CREDIT_NOTE = "CREDIT_NOTE"
    STORNO = "STORNO"
    PURCHASE_CONTRACT = "PURCHASE_CONTRACT"


class OfferType(str, Enum):
    """Sottotipo dell'offerta: vincolante o preventivo di massima."""
    OFFER = "OFFER"
    ESTIMATE = "ESTIMATE"


class DocumentStatus(str, Enum):
    """Stati del documento."""
    DRAFT = "DRAFT"
    SENT = "SENT"
    PAID = "PAID"
    CANCELLED = "CANCELLED"
    CONVERTED = "CONVERTED"


class TaxTreatment(str, Enum):
    """
    Trattamento fiscale della riga.

    MARGIN_SCHEME: regime del margine (§25a UStG), nessuna IVA esposta.
    """
    STANDARD = "STANDARD"
    MARGIN_SCHEME = "MARGIN_SCHEME"


class LineMoveDirection(str, Enum):
    """Direzione di spostamento di una riga."""
    UP = "up"
    DOWN = "down"


class PricingType(str, Enum):
    """Modalità di prezzo delle voci di catalogo."""
    AW = "AW"
    HOURLY = "HOURLY"


def quantize_qty(value: Decimal) -> Decimal:
    """Arrotonda una quantità al centesimo (mezzo lontano da zero)."""
    return Decimal(value).quantize(QTY_STEP, rounding=ROUND_HALF_UP)


def _check_vat_rate(value: Optional[int]) -> Optional[int]:
    if value is not None and value not in settings.allowed_vat_rates:
        raise ValueError(
            f"Aliquota IVA {value} non ammessa (ammesse: {settings.allowed_vat_rates})"
        )
    return value


# -------------------------------------------------------------------
# Schemas per DocumentLine
# -------------------------------------------------------------------

class LineCreate(BaseModel):
    """Schema per l'inserimento di una riga libera."""

    title: Optional[str] = Field(
        None,
        max_length=255,
        description="Titolo della riga (vuoto = 'Freitext')",
    )
    description: Optional[str] = Field(None, description="Descrizione della riga")
    qty: Decimal = Field(Decimal("1"), ge=0, description="Quantità")
    unit_net_cents: int = Field(0, description="Prezzo unitario netto in centesimi")
    vat_rate: int = Field(default_factory=lambda: settings.default_vat_rate, description="Aliquota IVA")
    discount_pct: Decimal = Field(Decimal("0"), ge=-100, le=100, description="Sconto percentuale")
    tax_treatment: TaxTreatment = Field(TaxTreatment.STANDARD, description="Trattamento fiscale")

    @field_validator("qty")
    @classmethod
    def round_qty(cls, v: Decimal) -> Decimal:
        return quantize_qty(v)

    @field_validator("vat_rate")
    @classmethod
    def validate_vat_rate(cls, v: int) -> int:
        return _check_vat_rate(v)


class LineUpdate(BaseModel):
    """Schema per la modifica parziale di una riga. Tutti i campi opzionali."""

    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    qty: Optional[Decimal] = Field(None, ge=0)
    unit_net_cents: Optional[int] = None
    vat_rate: Optional[int] = None
    discount_pct: Optional[Decimal] = Field(None, ge=-100, le=100)
    tax_treatment: Optional[TaxTreatment] = None

    @field_validator("qty")
    @classmethod
    def round_qty(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return quantize_qty(v) if v is not None else None

    @field_validator("vat_rate")
    @classmethod
    def validate_vat_rate(cls, v: Optional[int]) -> Optional[int]:
        return _check_vat_rate(v)


class LineMoveRequest(BaseModel):
    """Richiesta di spostamento riga."""

    direction: LineMoveDirection = Field(..., description="up oppure down")


class StockVehicleLineRequest(BaseModel):
    """Opzioni per la riga di vendita di un veicolo in giacenza."""

    margin_scheme: bool = Field(True, description="Applica il regime del margine")


class LineRead(BaseModel):
    """Schema per la lettura di una riga documento."""

    id: uuid.UUID
    document_id: uuid.UUID
    position: int
    title: str
    description: Optional[str] = None
    qty: Decimal
    unit_net_cents: int
    vat_rate: int
    discount_pct: Decimal
    tax_treatment: TaxTreatment
    is_margin_scheme: bool
    line_net_cents: int
    line_vat_cents: int
    line_gross_cents: int

    model_config = ConfigDict(from_attributes=True)


# -------------------------------------------------------------------
# Schemas per Document
# -------------------------------------------------------------------

class DocumentCreate(BaseModel):
    """Schema per la creazione di un documento in bozza."""

    doc_type: DocType = Field(..., description="Tipo documento")
    offer_type: Optional[OfferType] = Field(None, description="Solo per OFFER (default OFFER)")
    customer_id: Optional[uuid.UUID] = Field(None, description="UUID del cliente")
    vehicle_id: Optional[uuid.UUID] = Field(None, description="UUID del veicolo")
    notes_public: Optional[str] = None
    notes_internal: Optional[str] = None


class _BasicsBase(BaseModel):
    """Campi comuni a tutti i tipi di documento."""

    issue_date: Optional[date] = Field(None, description="Data emissione")
    notes_public: Optional[str] = Field(None, description="Note stampate")
    notes_internal: Optional[str] = Field(None, description="Note interne")


class OfferBasics(_BasicsBase):
    """Dati base di un'offerta."""
    doc_type: Literal["OFFER"]
    valid_until: Optional[date] = Field(None, description="Validità dell'offerta")
    offer_type: Optional[OfferType] = None


class InvoiceBasics(_BasicsBase):
    """Dati base di una fattura."""
    doc_type: Literal["INVOICE"]
    due_date: Optional[date] = Field(None, description="Scadenza")
    service_date: Optional[date] = Field(None, description="Data prestazione")


class CreditNoteBasics(_BasicsBase):
    doc_type: Literal["CREDIT_NOTE"]


class StornoBasics(_BasicsBase):
    doc_type: Literal["STORNO"]


class PurchaseContractBasics(_BasicsBase):
    """Dati base di un contratto d'acquisto."""
    doc_type: Literal["PURCHASE_CONTRACT"]
    delivery_date: Optional[date] = Field(None, description="Data consegna")


BasicsVariant = Union[OfferBasics, InvoiceBasics, CreditNoteBasics, StornoBasics, PurchaseContractBasics]


class BasicsUpdate(RootModel[Annotated[BasicsVariant, Field(discriminator="doc_type")]]):
    """
    Dati base del documento, discriminati dal campo doc_type.

    Ogni variante porta solo le date pertinenti al proprio tipo
    (es. solo OFFER ha valid_until).
    """


class SetCustomerRequest(BaseModel):
    customer_id: Optional[uuid.UUID] = Field(None, description="UUID cliente (null = rimuovi)")


class SetVehicleRequest(BaseModel):
    vehicle_id: Optional[uuid.UUID] = Field(None, description="UUID veicolo (null = rimuovi)")


class SetPaidRequest(BaseModel):
    """Imposta o rimuove la data di pagamento di una fattura."""

    paid_at: Optional[datetime] = Field(
        None,
        description="Data/ora pagamento; null rimette la fattura in stato SENT",
    )


class CreditNoteSelection(BaseModel):
    """Riga selezionata per la nota di credito."""

    line_id: uuid.UUID = Field(..., description="UUID della riga della fattura")
    qty: Decimal = Field(..., description="Quantità da accreditare (limitata alla riga)")


class CreditNoteRequest(BaseModel):
    selections: List[CreditNoteSelection] = Field(default_factory=list)


class DocumentSummary(BaseModel):
    """Schema sintetico per le liste (senza righe)."""

    id: uuid.UUID
    doc_type: DocType
    offer_type: Optional[OfferType] = None
    doc_number: str
    status: DocumentStatus
    is_final: bool
    issue_date: Optional[date] = None
    customer_id: Optional[uuid.UUID] = None
    vehicle_id: Optional[uuid.UUID] = None
    net_total_cents: int
    vat_total_cents: int
    gross_total_cents: int

    model_config = ConfigDict(from_attributes=True)


class DocumentRead(DocumentSummary):
    """Schema completo del documento con righe ordinate per posizione."""

    draft_number: Optional[str] = None
    final_number: Optional[str] = None
    due_date: Optional[date] = None
    service_date: Optional[date] = None
    valid_until: Optional[date] = None
    delivery_date: Optional[date] = None
    source_offer_id: Optional[uuid.UUID] = None
    credit_for_id: Optional[uuid.UUID] = None
    paid_at: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    notes_public: Optional[str] = None
    notes_internal: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    lines: List[LineRead] = Field(default_factory=list)


class DocumentList(BaseModel):
    """
    Schema per risposte paginate.

    Include la lista dei documenti con metadati di paginazione.
    """

    items: List[DocumentSummary] = Field(default_factory=list)
    total: int = Field(..., ge=0, description="Numero totale di documenti")
    page: int = Field(..., ge=1, description="Numero pagina corrente")
    per_page: int = Field(..., ge=1, description="Numero elementi per pagina")

    @computed_field
    def total_pages(self) -> int:
        """Numero totale di pagine: ceil(total / per_page)."""
        if self.per_page > 0:
            return (self.total + self.per_page - 1) // self.per_page
        return 0
