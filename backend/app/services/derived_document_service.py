"""
Service Layer per i documenti derivati
Progetto: Beleg Manager (Gestionale Documenti Commerciali)

Genera nuovi documenti a partire da un documento o da una scheda di lavoro:
- Fattura da offerta (l'offerta diventa CONVERTED)
- Nota di credito parziale da fattura pagata
- Storno completo da fattura pagata (la fattura diventa CANCELLED)
- Fattura da scheda di lavoro (idempotente)

Documento derivato e modifica della sorgente avvengono nella stessa
transazione: o entrambi o nessuno.
"""

import logging
import uuid
from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    BusinessValidationError,
    InvalidSelectionError,
    InvalidTransitionError,
)
from app.core.transaction import atomic
from app.models import Customer, Document, DocumentLine, Vehicle, WorkCard
from app.schemas.document import (
    CreditNoteSelection,
    DocType,
    DocumentStatus,
    TaxTreatment,
    quantize_qty,
)
from app.schemas.work_card import WorkCardStatus
from app.services.document_service import (
    DocumentService,
    append_line,
    recalculate_totals,
    utcnow,
)
from app.services.work_card_service import (
    CATEGORY_TITLES,
    WorkCardService,
    aggregate_billable_seconds,
    aw_unit_price_cents,
    billed_aw_qty,
    clamp_aw_minutes,
    resolve_hourly_rate,
    validate_hourly_override,
    work_line_description,
)

# Logger per questo modulo
logger = logging.getLogger(__name__)


def _mirror_line(
    document: Document,
    source: DocumentLine,
    qty: Decimal,
    unit_net_cents: int,
) -> DocumentLine:
    return append_line(
        document,
        title=source.title,
        description=source.description,
        qty=qty,
        unit_net_cents=unit_net_cents,
        vat_rate=source.vat_rate,
        discount_pct=source.discount_pct,
        tax_treatment=TaxTreatment(source.tax_treatment),
    )


class DerivedDocumentService:
    """
    Service per la generazione dei documenti derivati.

    Usa DocumentService per bozza, numerazione e notifiche; le righe
    vengono sempre ricalcolate, mai copiate con i totali salvati.
    """

    def __init__(
        self,
        documents: Optional[DocumentService] = None,
        work_cards: Optional[WorkCardService] = None,
    ) -> None:
        self.documents = documents or DocumentService()
        self.work_cards = work_cards or WorkCardService()

    @property
    def notifier(self):
        return self.documents.notifier

    async def convert_offer_to_invoice(
        self,
        db: AsyncSession,
        offer_id: uuid.UUID,
    ) -> Document:
        """
        Converte un'offerta finale in una fattura in bozza.

        Steps:
        1. Verifica tipo OFFER, finale, non già convertita
        2. Crea la fattura con nuovo numero bozza, cliente e veicolo dell'offerta
        3. Ricrea ogni riga dell'offerta e ricalcola i totali
        4. Imposta l'offerta a CONVERTED

        Args:
            db: Sessione database
            offer_id: UUID dell'offerta

        Returns:
            Document: Fattura creata

        Raises:
            NotFoundError: Offerta non trovata
            InvalidTransitionError: Non offerta, non finale o già convertita
        """
        async with atomic(db, "conversione offerta in fattura"):
            offer = await self.documents.get_for_update(db, offer_id)

            if DocType(offer.doc_type) is not DocType.OFFER:
                raise InvalidTransitionError(
                    f"Il documento {offer.doc_number} non è un'offerta"
                )
            if not offer.is_final:
                raise InvalidTransitionError(
                    f"L'offerta {offer.doc_number} deve essere finalizzata prima della conversione"
                )
            if DocumentStatus(offer.status) is DocumentStatus.CONVERTED:
                raise InvalidTransitionError(
                    f"L'offerta {offer.doc_number} è già stata convertita in fattura"
                )

            invoice = await self.documents.create_draft(
                db,
                DocType.INVOICE,
                customer_id=offer.customer_id,
                vehicle_id=offer.vehicle_id,
                notes_public=offer.notes_public,
            )
            invoice.source_offer_id = offer.id

            for line in offer.lines:
                _mirror_line(invoice, line, line.qty, line.unit_net_cents)
            recalculate_totals(invoice)

            offer.status = DocumentStatus.CONVERTED.value

        logger.info(f"Offerta {offer.doc_number} convertita nella fattura {invoice.doc_number}")
        self.notifier.notify(invoice.id, DocType.INVOICE)
        self.notifier.notify(offer.id, DocType.OFFER)
        return invoice

    async def credit_note_from_invoice(
        self,
        db: AsyncSession,
        invoice_id: uuid.UUID,
        selections: List[CreditNoteSelection],
    ) -> Document:
        """
        Crea una nota di credito parziale da una fattura pagata.

        Ogni quantità è limitata a [0, quantità della riga]; le selezioni che
        restano a zero e gli ID riga sconosciuti vengono scartati. Più
        selezioni della stessa riga vengono sommate prima del limite.

        Args:
            db: Sessione database
            invoice_id: UUID della fattura
            selections: Righe e quantità da accreditare

        Returns:
            Document: Nota di credito in bozza

        Raises:
            NotFoundError: Fattura non trovata
            InvalidTransitionError: Non fattura, non finale o non pagata
            InvalidSelectionError: Nessuna selezione valida
        """
        async with atomic(db, "creazione nota di credito"):
            invoice = await self.documents.get_for_update(db, invoice_id)
            self._require_paid_invoice(invoice, "nota di credito")

            source_lines = {line.id: line for line in invoice.lines}
            requested: Dict[uuid.UUID, Decimal] = OrderedDict()
            for selection in selections:
                if selection.line_id not in source_lines:
                    logger.warning(
                        f"Riga {selection.line_id} non presente nella fattura {invoice.doc_number}: ignorata"
                    )
                    continue
                requested[selection.line_id] = requested.get(selection.line_id, Decimal("0")) + selection.qty

            picked = []
            for line_id, qty in requested.items():
                source = source_lines[line_id]
                clamped = quantize_qty(min(max(qty, Decimal("0")), source.qty))
                if clamped > 0:
                    picked.append((source, clamped))

            if not picked:
                raise InvalidSelectionError(
                    f"Nessuna posizione valida selezionata per la nota di credito di {invoice.doc_number}"
                )

            credit_note = await self.documents.create_draft(
                db,
                DocType.CREDIT_NOTE,
                customer_id=invoice.customer_id,
                vehicle_id=invoice.vehicle_id,
            )
            credit_note.credit_for_id = invoice.id

            for source, qty in sorted(picked, key=lambda pair: pair[0].position):
                _mirror_line(credit_note, source, qty, -abs(source.unit_net_cents))
            recalculate_totals(credit_note)

        logger.info(f"Nota di credito {credit_note.doc_number} creata per la fattura {invoice.doc_number}")
        self.notifier.notify(credit_note.id, DocType.CREDIT_NOTE)
        self.notifier.notify(invoice.id, DocType.INVOICE)
        return credit_note

    async def storno_from_invoice(
        self,
        db: AsyncSession,
        invoice_id: uuid.UUID,
    ) -> Document:
        """
        Crea lo storno completo di una fattura pagata e la annulla.

        Tutte le righe vengono rispecchiate a quantità piena con prezzo
        unitario negato; la fattura passa a CANCELLED nella stessa transazione.

        Raises:
            NotFoundError: Fattura non trovata
            InvalidTransitionError: Non fattura, non finale o non pagata
        """
        async with atomic(db, "creazione storno"):
            invoice = await self.documents.get_for_update(db, invoice_id)
            self._require_paid_invoice(invoice, "storno")

            storno = await self.documents.create_draft(
                db,
                DocType.STORNO,
                customer_id=invoice.customer_id,
                vehicle_id=invoice.vehicle_id,
            )
            storno.credit_for_id = invoice.id

            for line in invoice.lines:
                _mirror_line(storno, line, abs(line.qty), -line.unit_net_cents)
            recalculate_totals(storno)

            invoice.status = DocumentStatus.CANCELLED.value
            invoice.cancelled_at = utcnow()

        logger.info(f"Storno {storno.doc_number} creato, fattura {invoice.doc_number} annullata")
        self.notifier.notify(storno.id, DocType.STORNO)
        self.notifier.notify(invoice.id, DocType.INVOICE)
        return storno

    async def invoice_from_work_card(
        self,
        db: AsyncSession,
        card_id: uuid.UUID,
        hourly_rate_cents: Optional[int] = None,
    ) -> Document:
        """
        Crea la fattura di una scheda di lavoro chiusa.

        Una riga per categoria con tempo registrato, quantità in AW.
        Se la scheda è già stata fatturata (collegamento diretto o marcatore
        nelle note interne) restituisce la fattura esistente.

        Args:
            db: Sessione database
            card_id: UUID della scheda di lavoro
            hourly_rate_cents: Tariffa oraria esplicita (prevale su cliente e azienda)

        Returns:
            Document: Fattura nuova o già esistente

        Raises:
            NotFoundError: Scheda non trovata
            InvalidTransitionError: Scheda non chiusa
            BusinessValidationError: Nessun tempo fatturabile o tariffa non valida
        """
        validate_hourly_override(hourly_rate_cents)

        created = False
        async with atomic(db, "fatturazione scheda di lavoro"):
            card = await self.work_cards.get_by_id(db, card_id, for_update=True)

            invoice = await self._existing_work_card_invoice(db, card)
            if invoice is not None:
                card.invoice_document_id = invoice.id
            else:
                invoice = await self._build_work_card_invoice(db, card, hourly_rate_cents)
                created = True

        if created:
            logger.info(f"Fattura {invoice.doc_number} creata dalla scheda {card.marker}")
            self.notifier.notify(invoice.id, DocType.INVOICE)
        else:
            logger.info(f"Scheda {card.marker} già fatturata con {invoice.doc_number}")
        return invoice

    # ------------------------------------------------------------
    # Helper interni
    # ------------------------------------------------------------

    async def _existing_work_card_invoice(
        self,
        db: AsyncSession,
        card: WorkCard,
    ) -> Optional[Document]:
        # Il collegamento diretto prevale: le note interne sono modificabili
        if card.invoice_document_id:
            invoice = await db.get(Document, card.invoice_document_id)
            if invoice is not None:
                return invoice

        stmt = (
            select(Document)
            .where(
                Document.doc_type == DocType.INVOICE.value,
                Document.notes_internal.contains(card.marker),
            )
            .order_by(Document.created_at)
            .limit(1)
        )
        return (await db.execute(stmt)).scalar_one_or_none()

    async def _build_work_card_invoice(
        self,
        db: AsyncSession,
        card: WorkCard,
        hourly_rate_override: Optional[int],
    ) -> Document:
        if WorkCardStatus(card.status) is not WorkCardStatus.CLOSED:
            raise InvalidTransitionError(
                f"La scheda {card.marker} deve essere chiusa prima della fatturazione"
            )

        seconds_by_category = aggregate_billable_seconds(card.steps)
        if not seconds_by_category:
            raise BusinessValidationError(
                f"La scheda {card.marker} non contiene tempo fatturabile"
            )

        vehicle = await db.get(Vehicle, card.vehicle_id) if card.vehicle_id else None
        customer_id = card.customer_id or (vehicle.customer_id if vehicle else None)
        customer = await db.get(Customer, customer_id) if customer_id else None

        company = await self.work_cards.get_company_settings(db)
        aw_minutes = clamp_aw_minutes(company.work_card_aw_minutes if company else None)
        hourly_rate = resolve_hourly_rate(
            hourly_rate_override,
            customer.hourly_rate_cents if customer else None,
            company.work_card_hourly_rate_cents if company else None,
        )
        unit_net_cents = aw_unit_price_cents(hourly_rate, aw_minutes)

        invoice = await self.documents.create_draft(
            db,
            DocType.INVOICE,
            customer_id=customer.id if customer else None,
            vehicle_id=vehicle.id if vehicle else None,
            notes_internal=f"Erstellt aus Arbeitskarte {card.marker}",
        )
        if card.closed_at is not None:
            invoice.service_date = card.closed_at.date()
        else:
            invoice.service_date = card.work_date or date.today()
        invoice.source_offer_id = card.source_offer_id

        for category, seconds in seconds_by_category.items():
            qty = billed_aw_qty(seconds, aw_minutes)
            append_line(
                invoice,
                title=CATEGORY_TITLES[category],
                description=work_line_description(category, seconds, qty, aw_minutes, hourly_rate),
                qty=qty,
                unit_net_cents=unit_net_cents,
                vat_rate=settings.work_card_vat_rate,
            )
        recalculate_totals(invoice)

        await db.flush()

        card.invoice_document_id = invoice.id
        if customer is not None:
            card.customer_id = customer.id
            if vehicle is not None and vehicle.customer_id is None:
                vehicle.customer_id = customer.id

        return invoice

    @staticmethod
    def _require_paid_invoice(invoice: Document, target: str) -> None:
        if DocType(invoice.doc_type) is not DocType.INVOICE:
            raise InvalidTransitionError(
                f"{target.capitalize()} possibile solo da una fattura ({invoice.doc_number} è {invoice.doc_type})"
            )
        if not invoice.is_final:
            raise InvalidTransitionError(
                f"La fattura {invoice.doc_number} non è finale: {target} non consentito"
            )
        if DocumentStatus(invoice.status) is not DocumentStatus.PAID:
            raise InvalidTransitionError(
                f"Solo le fatture pagate ammettono {target} ({invoice.doc_number} è {invoice.status})"
            )
