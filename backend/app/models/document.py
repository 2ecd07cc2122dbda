"""
Modelli SQLAlchemy per i Documenti Commerciali
Progetto: Beleg Manager (Gestionale Documenti Commerciali)

Contiene:
- Document: Documento (offerta, fattura, nota di credito, storno, contratto d'acquisto)
- DocumentLine: Righe del documento
- DocumentCounter: Contatore numeri finali per (tipo, anno)
- DocumentDraftCounter: Contatore numeri bozza per (tipo, anno)
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models import Base
from app.models.mixins import TimestampMixin, UUIDMixin


# I valori ammessi sono definiti in app.schemas.document (DocType, DocumentStatus, ...)


class Document(Base, UUIDMixin, TimestampMixin):
    """
    Modello per i documenti commerciali.

    Un documento nasce come bozza con un numero bozza (DR-<n>) e riceve
    un numero finale permanente (<PREFISSO>-<anno>-<00001>) alla prima
    finalizzazione. Il numero finale resta riservato anche se il documento
    torna in bozza.

    Attributes:
        id: UUID primary key
        doc_type: OFFER, INVOICE, CREDIT_NOTE, STORNO, PURCHASE_CONTRACT
        offer_type: OFFER o ESTIMATE (solo per OFFER)
        doc_number: Numero attualmente mostrato (bozza o finale)
        draft_number: Numero bozza riservato alla creazione
        final_number: Numero finale riservato alla prima finalizzazione
        status: DRAFT, SENT, PAID, CANCELLED, CONVERTED
        is_final: True se il documento è finalizzato
        issue_date / due_date / service_date / valid_until / delivery_date: Date dipendenti dal tipo
        customer_id / vehicle_id: Riferimenti opzionali
        source_offer_id: Offerta da cui è stata generata la fattura
        credit_for_id: Fattura rispecchiata da nota di credito o storno
        net_total_cents / vat_total_cents / gross_total_cents: Totali in centesimi
        paid_at / sent_at / cancelled_at: Timestamp di stato
        notes_public: Note stampate sul documento
        notes_internal: Note interne

    Relationships:
        lines: Righe del documento (cascade delete)
    """

    __tablename__ = "documents"

    # ------------------------------------------------------------
    # Colonne Identificazione
    # ------------------------------------------------------------
    doc_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        doc="Tipo documento",
    )

    offer_type: Mapped[Optional[str]] = mapped_column(
        String(10),
        nullable=True,
        doc="Sottotipo offerta: OFFER (vincolante) o ESTIMATE (preventivo)",
    )

    doc_number: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        doc="Numero mostrato: bozza (DR-n) o finale",
    )

    draft_number: Mapped[Optional[str]] = mapped_column(
        String(30),
        nullable=True,
        doc="Numero bozza riservato alla creazione",
    )

    final_number: Mapped[Optional[str]] = mapped_column(
        String(30),
        nullable=True,
        unique=True,
        doc="Numero finale permanente, mai riassegnato",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="DRAFT",
        doc="Stato del documento",
    )

    is_final: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        doc="Flag documento finalizzato",
    )

    # ------------------------------------------------------------
    # Colonne Date
    # ------------------------------------------------------------
    issue_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True, doc="Data emissione")
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True, doc="Scadenza (fatture)")
    service_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True, doc="Data prestazione (fatture)")
    valid_until: Mapped[Optional[date]] = mapped_column(Date, nullable=True, doc="Validità (offerte)")
    delivery_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True, doc="Consegna (contratti d'acquisto)")

    # ------------------------------------------------------------
    # Colonne Relazioni
    # ------------------------------------------------------------
    customer_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
        doc="UUID del cliente",
    )

    vehicle_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("vehicles.id", ondelete="SET NULL"),
        nullable=True,
        doc="UUID del veicolo",
    )

    source_offer_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("documents.id", ondelete="SET NULL"),
        nullable=True,
        doc="Offerta da cui è stata convertita la fattura",
    )

    credit_for_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("documents.id", ondelete="RESTRICT"),
        nullable=True,
        doc="Fattura rispecchiata da nota di credito o storno",
    )

    # ------------------------------------------------------------
    # Colonne Importi (centesimi)
    # ------------------------------------------------------------
    net_total_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0, doc="Totale netto")
    vat_total_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0, doc="Totale IVA")
    gross_total_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0, doc="Totale lordo")

    # ------------------------------------------------------------
    # Colonne Stato
    # ------------------------------------------------------------
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # ------------------------------------------------------------
    # Colonne Note
    # ------------------------------------------------------------
    notes_public: Mapped[Optional[str]] = mapped_column(Text, nullable=True, doc="Note stampate sul documento")
    notes_internal: Mapped[Optional[str]] = mapped_column(Text, nullable=True, doc="Note interne")

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    lines: Mapped[List["DocumentLine"]] = relationship(
        "DocumentLine",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="DocumentLine.position",
        lazy="selectin",
        doc="Righe del documento ordinate per posizione",
    )

    # ------------------------------------------------------------
    # Indici e Vincoli
    # ------------------------------------------------------------
    __table_args__ = (
        Index("ix_documents_doc_type_status", "doc_type", "status"),
        Index("ix_documents_customer_id", "customer_id"),
        Index("ix_documents_credit_for_id", "credit_for_id"),
        CheckConstraint(
            "doc_type IN ('OFFER', 'INVOICE', 'CREDIT_NOTE', 'STORNO', 'PURCHASE_CONTRACT')",
            name="ck_documents_doc_type",
        ),
        CheckConstraint(
            "status IN ('DRAFT', 'SENT', 'PAID', 'CANCELLED', 'CONVERTED')",
            name="ck_documents_status",
        ),
        CheckConstraint(
            "gross_total_cents = net_total_cents + vat_total_cents",
            name="ck_documents_gross_is_net_plus_vat",
        ),
    )

    def __repr__(self) -> str:
        return f"<Document(id={self.id}, type={self.doc_type}, number={self.doc_number}, status={self.status})>"


class DocumentLine(Base, UUIDMixin, TimestampMixin):
    """
    Modello per le righe del documento.

    Gli importi di riga sono derivati dal calcolatore e salvati: non vanno
    mai modificati direttamente.

    Attributes:
        document_id: UUID del documento padre
        position: Posizione 1-based, densa e riordinabile
        title / description: Testi della riga
        qty: Quantità (>= 0 sull'originale, assoluta sulle righe rispecchiate)
        unit_net_cents: Prezzo unitario netto (negativo sulle righe di accredito)
        vat_rate: Aliquota IVA (0, 7, 19)
        discount_pct: Sconto percentuale (-100..100)
        tax_treatment: STANDARD o MARGIN_SCHEME (regime del margine, IVA non esposta)
        line_net_cents / line_vat_cents / line_gross_cents: Importi calcolati
    """

    __tablename__ = "document_lines"

    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="UUID del documento padre",
    )

    position: Mapped[int] = mapped_column(Integer, nullable=False, doc="Posizione 1-based")

    title: Mapped[str] = mapped_column(String(255), nullable=False, doc="Titolo della riga")

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True, doc="Descrizione della riga")

    qty: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("1"),
        doc="Quantità",
    )

    unit_net_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0, doc="Prezzo unitario netto")

    vat_rate: Mapped[int] = mapped_column(Integer, nullable=False, default=19, doc="Aliquota IVA")

    discount_pct: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
        default=Decimal("0"),
        doc="Sconto percentuale",
    )

    tax_treatment: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="STANDARD",
        doc="Trattamento fiscale della riga",
    )

    line_net_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    line_vat_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    line_gross_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    document: Mapped["Document"] = relationship(
        "Document",
        back_populates="lines",
        doc="Documento padre",
    )

    @property
    def is_margin_scheme(self) -> bool:
        """True se la riga è in regime del margine."""
        return self.tax_treatment == "MARGIN_SCHEME"

    __table_args__ = (
        Index("ix_document_lines_document_position", "document_id", "position"),
        CheckConstraint("vat_rate IN (0, 7, 19)", name="ck_document_lines_vat_rate"),
        CheckConstraint(
            "discount_pct >= -100 AND discount_pct <= 100",
            name="ck_document_lines_discount_pct",
        ),
        CheckConstraint(
            "tax_treatment IN ('STANDARD', 'MARGIN_SCHEME')",
            name="ck_document_lines_tax_treatment",
        ),
        CheckConstraint(
            "tax_treatment = 'STANDARD' OR line_vat_cents = 0",
            name="ck_document_lines_margin_no_vat",
        ),
    )

    def __repr__(self) -> str:
        return f"<DocumentLine(id={self.id}, pos={self.position}, title={self.title[:30]})>"


class DocumentCounter(Base):
    """
    Contatore dei numeri finali per (tipo documento, anno).

    La riga viene creata o incrementata con un unico upsert atomico.
    Questa tabella non va mai ripulita: i numeri non vengono riutilizzati.
    """

    __tablename__ = "document_counters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    doc_type: Mapped[str] = mapped_column(String(20), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    last_seq: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("doc_type", "year", name="uq_document_counters_type_year"),
    )

    def __repr__(self) -> str:
        return f"<DocumentCounter({self.doc_type}/{self.year}: {self.last_seq})>"


class DocumentDraftCounter(Base):
    """Contatore dei numeri bozza per (tipo documento, anno)."""

    __tablename__ = "document_draft_counters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    doc_type: Mapped[str] = mapped_column(String(20), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    last_seq: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("doc_type", "year", name="uq_document_draft_counters_type_year"),
    )

    def __repr__(self) -> str:
        return f"<DocumentDraftCounter({self.doc_type}/{self.year}: {self.last_seq})>"
