"""
Service Layer per i Documenti Commerciali
Progetto: Beleg Manager (Gestionale Documenti Commerciali)

Definisce la logica di business del ciclo di vita dei documenti:
creazione in bozza, modifica dati base e righe, finalizzazione con
numerazione permanente, invio, pagamento, storno ed eliminazione.

Ogni operazione pubblica è un'unica transazione (vedi app.core.transaction).
"""

import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    BusinessValidationError,
    InvalidTransitionError,
    NotFoundError,
)
from app.core.transaction import atomic
from app.models import Customer, Document, DocumentLine, ServiceItem, Vehicle
from app.schemas.document import (
    BasicsUpdate,
    BasicsVariant,
    DocType,
    DocumentCreate,
    DocumentList,
    DocumentStatus,
    LineCreate,
    LineMoveDirection,
    LineUpdate,
    OfferType,
    PricingType,
    TaxTreatment,
    quantize_qty,
)
from app.services.calculator import LineTotals, calc_line, sum_totals
from app.services.edit_guard import assert_draft, assert_editable
from app.services.notification_service import DocumentChangeNotifier, document_notifier
from app.services.sequence_service import (
    is_draft_number,
    next_draft_number,
    next_final_number,
)

# Logger per questo modulo
logger = logging.getLogger(__name__)

DEFAULT_LINE_TITLE = "Freitext"

# Tipi che diventano SENT alla finalizzazione (le offerte mantengono il loro stato)
SENT_ON_FINALIZE = frozenset({
    DocType.INVOICE,
    DocType.CREDIT_NOTE,
    DocType.STORNO,
    DocType.PURCHASE_CONTRACT,
})


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ------------------------------------------------------------
# Helper righe e totali
# ------------------------------------------------------------

def apply_line_totals(line: DocumentLine) -> None:
    """Ricalcola e salva sulla riga netto, IVA e lordo."""
    totals = calc_line(
        line.qty,
        line.unit_net_cents,
        line.vat_rate,
        line.discount_pct,
        TaxTreatment(line.tax_treatment),
    )
    line.line_net_cents = totals.net_cents
    line.line_vat_cents = totals.vat_cents
    line.line_gross_cents = totals.gross_cents


def recalculate_totals(document: Document) -> None:
    """
    Ricalcola tutte le righe e i totali del documento.

    I totali sono sempre la somma delle righe, mai aggiornati in modo
    incrementale.
    """
    for line in document.lines:
        apply_line_totals(line)
    totals = sum_totals(
        LineTotals(line.line_net_cents, line.line_vat_cents, line.line_gross_cents)
        for line in document.lines
    )
    document.net_total_cents = totals.net_cents
    document.vat_total_cents = totals.vat_cents
    document.gross_total_cents = totals.gross_cents


def next_position(document: Document) -> int:
    return max((line.position for line in document.lines), default=0) + 1


def append_line(
    document: Document,
    *,
    title: Optional[str],
    description: Optional[str] = None,
    qty: Decimal = Decimal("1"),
    unit_net_cents: int = 0,
    vat_rate: Optional[int] = None,
    discount_pct: Decimal = Decimal("0"),
    tax_treatment: TaxTreatment = TaxTreatment.STANDARD,
) -> DocumentLine:
    """
    Aggiunge una riga in coda al documento con importi calcolati.

    Non ricalcola i totali del documento: il chiamante chiama
    recalculate_totals dopo l'ultima riga.
    """
    line = DocumentLine(
        position=next_position(document),
        title=(title or "").strip() or DEFAULT_LINE_TITLE,
        description=description,
        qty=quantize_qty(qty),
        unit_net_cents=int(unit_net_cents),
        vat_rate=settings.default_vat_rate if vat_rate is None else int(vat_rate),
        discount_pct=Decimal(str(discount_pct)),
        tax_treatment=TaxTreatment(tax_treatment).value,
    )
    apply_line_totals(line)
    document.lines.append(line)
    return line


def _renumber(document: Document) -> None:
    document.lines.sort(key=lambda line: line.position)
    for index, line in enumerate(document.lines, start=1):
        line.position = index


class DocumentService:
    """
    Service per la gestione del ciclo di vita dei documenti.

    Fornisce metodi asincroni per interagire con il database
    in modo centralizzato, senza dipendenze da FastAPI.

    Implementa:
    - Creazione bozza con numero bozza e date di default per tipo
    - Modifica dati base, cliente, veicolo e righe (con controllo modificabilità)
    - Finalizzazione / ritorno in bozza con numero finale permanente
    - Transizioni fattura: inviata, pagata, stornata
    - Eliminazione documento con le sue righe
    """

    def __init__(self, notifier: DocumentChangeNotifier = document_notifier) -> None:
        self.notifier = notifier

    # ------------------------------------------------------------
    # Lettura
    # ------------------------------------------------------------

    async def get_by_id(
        self,
        db: AsyncSession,
        document_id: uuid.UUID,
    ) -> Document:
        """
        Recupera un documento per ID con le righe ordinate.

        Raises:
            NotFoundError: Documento non trovato
        """
        result = await db.execute(select(Document).where(Document.id == document_id))
        document = result.scalar_one_or_none()

        if not document:
            raise NotFoundError(f"Documento {document_id} non trovato")

        return document

    async def get_for_update(
        self,
        db: AsyncSession,
        document_id: uuid.UUID,
    ) -> Document:
        """
        Recupera un documento bloccando la riga fino alla fine della transazione.

        Raises:
            NotFoundError: Documento non trovato
        """
        stmt = (
            select(Document)
            .where(Document.id == document_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        document = result.scalar_one_or_none()

        if not document:
            raise NotFoundError(f"Documento {document_id} non trovato")

        return document

    async def get_all(
        self,
        db: AsyncSession,
        doc_type: Optional[DocType] = None,
        status_filter: Optional[DocumentStatus] = None,
        customer_id: Optional[uuid.UUID] = None,
        search: Optional[str] = None,
        include_converted: bool = True,
        page: int = 1,
        per_page: int = 20,
    ) -> DocumentList:
        """
        Recupera la lista paginata dei documenti con filtri.

        Args:
            db: Sessione database
            doc_type: Filtro per tipo documento
            status_filter: Filtro per stato
            customer_id: Filtro per cliente
            search: Ricerca parziale sul numero documento
            include_converted: Se False esclude le offerte già convertite
            page: Numero pagina
            per_page: Elementi per pagina

        Returns:
            DocumentList: Lista paginata
        """
        conditions = []

        if doc_type:
            conditions.append(Document.doc_type == DocType(doc_type).value)
        if status_filter:
            conditions.append(Document.status == DocumentStatus(status_filter).value)
        if customer_id:
            conditions.append(Document.customer_id == customer_id)
        if search:
            conditions.append(Document.doc_number.ilike(f"%{search.strip()}%"))
        if not include_converted:
            conditions.append(Document.status != DocumentStatus.CONVERTED.value)

        count_stmt = select(func.count(Document.id))
        stmt = select(Document)
        if conditions:
            count_stmt = count_stmt.where(and_(*conditions))
            stmt = stmt.where(and_(*conditions))

        total = (await db.execute(count_stmt)).scalar() or 0

        stmt = (
            stmt.order_by(Document.created_at.desc(), Document.doc_number.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        documents = (await db.execute(stmt)).scalars().all()

        return DocumentList(items=list(documents), total=total, page=page, per_page=per_page)

    # ------------------------------------------------------------
    # Creazione
    # ------------------------------------------------------------

    async def create_draft(
        self,
        db: AsyncSession,
        doc_type: DocType,
        *,
        customer_id: Optional[uuid.UUID] = None,
        vehicle_id: Optional[uuid.UUID] = None,
        offer_type: Optional[OfferType] = None,
        notes_public: Optional[str] = None,
        notes_internal: Optional[str] = None,
    ) -> Document:
        """
        Crea un documento in bozza nella transazione corrente, senza commit.

        Riserva il numero bozza e imposta le date di default per tipo:
        - tutti: data emissione = oggi
        - INVOICE: scadenza = emissione + invoice_due_days, data prestazione = oggi
        - OFFER: validità = emissione + offer_valid_days, sottotipo OFFER
        """
        doc_type = DocType(doc_type)
        today = date.today()
        draft_number = await next_draft_number(db, doc_type, today.year)

        document = Document(
            doc_type=doc_type.value,
            doc_number=draft_number,
            draft_number=draft_number,
            status=DocumentStatus.DRAFT.value,
            is_final=False,
            issue_date=today,
            customer_id=customer_id,
            vehicle_id=vehicle_id,
            net_total_cents=0,
            vat_total_cents=0,
            gross_total_cents=0,
            notes_public=notes_public,
            notes_internal=notes_internal,
            lines=[],
        )

        if doc_type is DocType.INVOICE:
            document.due_date = today + timedelta(days=settings.invoice_due_days)
            document.service_date = today
        elif doc_type is DocType.OFFER:
            document.valid_until = today + timedelta(days=settings.offer_valid_days)
            document.offer_type = OfferType(offer_type or OfferType.OFFER).value

        db.add(document)
        return document

    async def create(
        self,
        db: AsyncSession,
        data: DocumentCreate,
    ) -> Document:
        """
        Crea un nuovo documento in bozza.

        Args:
            db: Sessione database
            data: Tipo documento e riferimenti opzionali

        Returns:
            Document: Documento creato (DRAFT, numero DR-n)

        Raises:
            NotFoundError: Cliente o veicolo inesistente
        """
        async with atomic(db, "creazione documento"):
            if data.customer_id:
                await self._ensure_customer(db, data.customer_id)
            if data.vehicle_id:
                await self._ensure_vehicle(db, data.vehicle_id)

            document = await self.create_draft(
                db,
                data.doc_type,
                customer_id=data.customer_id,
                vehicle_id=data.vehicle_id,
                offer_type=data.offer_type,
                notes_public=data.notes_public,
                notes_internal=data.notes_internal,
            )

        logger.info(f"Documento {document.doc_number} ({document.doc_type}) creato")
        self.notifier.notify(document.id, DocType(document.doc_type))
        return document

    # ------------------------------------------------------------
    # Dati base, cliente, veicolo
    # ------------------------------------------------------------

    async def update_basics(
        self,
        db: AsyncSession,
        document_id: uuid.UUID,
        payload: Union[BasicsUpdate, BasicsVariant],
    ) -> Document:
        """
        Aggiorna date e note del documento.

        Il payload è una variante per tipo: porta solo le date pertinenti.

        Raises:
            NotFoundError: Documento non trovato
            ImmutableDocumentError: Documento pagato o stornato
            BusinessValidationError: Tipo del payload diverso da quello del documento
        """
        async with atomic(db, "aggiornamento dati documento"):
            document = await self.get_for_update(db, document_id)
            assert_editable(document.status)

            if isinstance(payload, BasicsUpdate):
                payload = payload.root

            if payload.doc_type != document.doc_type:
                raise BusinessValidationError(
                    f"Dati per {payload.doc_type} non applicabili a un documento {document.doc_type}"
                )

            changes = payload.model_dump(exclude_unset=True, exclude={"doc_type"})
            for field, value in changes.items():
                if field == "offer_type" and value is not None:
                    value = OfferType(value).value
                setattr(document, field, value)

        self.notifier.notify(document.id, DocType(document.doc_type))
        return document

    async def set_customer(
        self,
        db: AsyncSession,
        document_id: uuid.UUID,
        customer_id: Optional[uuid.UUID],
    ) -> Document:
        """
        Assegna (o rimuove) il cliente del documento.

        Il veicolo viene azzerato: appartiene al cliente precedente.

        Raises:
            NotFoundError: Documento o cliente non trovato
            ImmutableDocumentError: Documento pagato o stornato
        """
        async with atomic(db, "assegnazione cliente"):
            document = await self.get_for_update(db, document_id)
            assert_editable(document.status)
            if customer_id is not None:
                await self._ensure_customer(db, customer_id)
            document.customer_id = customer_id
            document.vehicle_id = None

        self.notifier.notify(document.id, DocType(document.doc_type))
        return document

    async def set_vehicle(
        self,
        db: AsyncSession,
        document_id: uuid.UUID,
        vehicle_id: Optional[uuid.UUID],
    ) -> Document:
        """
        Assegna (o rimuove) il veicolo del documento.

        Raises:
            NotFoundError: Documento o veicolo non trovato
            ImmutableDocumentError: Documento pagato o stornato
        """
        async with atomic(db, "assegnazione veicolo"):
            document = await self.get_for_update(db, document_id)
            assert_editable(document.status)
            if vehicle_id is not None:
                await self._ensure_vehicle(db, vehicle_id)
            document.vehicle_id = vehicle_id

        self.notifier.notify(document.id, DocType(document.doc_type))
        return document

    # ------------------------------------------------------------
    # Righe
    # ------------------------------------------------------------

    async def add_custom_line(
        self,
        db: AsyncSession,
        document_id: uuid.UUID,
        data: LineCreate,
    ) -> Document:
        """
        Aggiunge una riga libera in coda al documento.

        Un titolo vuoto diventa "Freitext".

        Raises:
            NotFoundError: Documento non trovato
            ImmutableDocumentError: Documento pagato o stornato
            InvalidTransitionError: Documento finale
        """
        async with atomic(db, "inserimento riga"):
            document = await self.get_for_update(db, document_id)
            assert_editable(document.status)
            assert_draft(document, "nuove righe")

            append_line(
                document,
                title=data.title,
                description=data.description,
                qty=data.qty,
                unit_net_cents=data.unit_net_cents,
                vat_rate=data.vat_rate,
                discount_pct=data.discount_pct,
                tax_treatment=data.tax_treatment,
            )
            recalculate_totals(document)

        self.notifier.notify(document.id, DocType(document.doc_type))
        return document

    async def add_line_from_service(
        self,
        db: AsyncSession,
        document_id: uuid.UUID,
        service_item_id: uuid.UUID,
    ) -> Document:
        """
        Aggiunge una riga copiata da una voce del catalogo prestazioni.

        - AW: quantità = AW proposte (default 1), prezzo = prezzo per AW
        - HOURLY: quantità = minuti proposti / 60 (default 60 minuti), prezzo = tariffa oraria

        Raises:
            NotFoundError: Documento o voce di catalogo non trovati
            ImmutableDocumentError: Documento pagato o stornato
            InvalidTransitionError: Documento finale
        """
        async with atomic(db, "inserimento riga da catalogo"):
            document = await self.get_for_update(db, document_id)
            assert_editable(document.status)
            assert_draft(document, "nuove righe")

            item = await db.get(ServiceItem, service_item_id)
            if not item:
                raise NotFoundError(f"Prestazione {service_item_id} non trovata")

            if PricingType(item.pricing_type) is PricingType.HOURLY:
                minutes = item.default_minutes or 60
                qty = Decimal(minutes) / Decimal(60)
                unit = item.hourly_rate_cents or 0
            else:
                qty = item.aw_default_qty if item.aw_default_qty is not None else Decimal("1")
                unit = item.aw_unit_price_cents or 0

            vat_rate = item.vat_rate if item.vat_rate in settings.allowed_vat_rates else settings.default_vat_rate

            append_line(
                document,
                title=item.name,
                description=item.short_text,
                qty=qty,
                unit_net_cents=unit,
                vat_rate=vat_rate,
            )
            recalculate_totals(document)

        self.notifier.notify(document.id, DocType(document.doc_type))
        return document

    async def add_line_from_stock_vehicle(
        self,
        db: AsyncSession,
        document_id: uuid.UUID,
        vehicle_id: uuid.UUID,
        margin_scheme: bool = True,
    ) -> Document:
        """
        Aggiunge la riga di vendita di un veicolo in giacenza.

        Per default la riga è in regime del margine: nessuna IVA esposta.

        Raises:
            NotFoundError: Documento o veicolo non trovati
            ImmutableDocumentError: Documento pagato o stornato
            InvalidTransitionError: Documento finale
            BusinessValidationError: Veicolo non in giacenza o già venduto
        """
        async with atomic(db, "inserimento veicolo in giacenza"):
            document = await self.get_for_update(db, document_id)
            assert_editable(document.status)
            assert_draft(document, "nuove righe")

            vehicle = await db.get(Vehicle, vehicle_id)
            if not vehicle:
                raise NotFoundError(f"Veicolo {vehicle_id} non trovato")
            if not vehicle.is_stock or vehicle.is_sold:
                raise BusinessValidationError(
                    f"Il veicolo {vehicle.display_name} non è disponibile in giacenza"
                )

            unit = vehicle.sale_price_cents
            if unit is None:
                unit = vehicle.purchase_cents or 0

            append_line(
                document,
                title=f"Fahrzeugbestand: {vehicle.display_name}",
                description=f"VIN: {vehicle.vin}" if vehicle.vin else None,
                qty=Decimal("1"),
                unit_net_cents=unit,
                vat_rate=19,
                tax_treatment=TaxTreatment.MARGIN_SCHEME if margin_scheme else TaxTreatment.STANDARD,
            )
            recalculate_totals(document)

        self.notifier.notify(document.id, DocType(document.doc_type))
        return document

    async def update_line(
        self,
        db: AsyncSession,
        document_id: uuid.UUID,
        line_id: uuid.UUID,
        patch: LineUpdate,
    ) -> Document:
        """
        Modifica una riga e ricalcola riga e totali.

        Raises:
            NotFoundError: Documento o riga non trovati
            ImmutableDocumentError: Documento pagato o stornato
            InvalidTransitionError: Documento finale
        """
        async with atomic(db, "modifica riga"):
            document = await self.get_for_update(db, document_id)
            assert_editable(document.status)
            assert_draft(document, "modifiche alle righe")
            line = self._find_line(document, line_id)

            changes = patch.model_dump(exclude_unset=True)
            for field, value in changes.items():
                if value is None and field != "description":
                    continue
                if field == "title":
                    value = value.strip() or DEFAULT_LINE_TITLE
                elif field == "tax_treatment":
                    value = TaxTreatment(value).value
                setattr(line, field, value)

            recalculate_totals(document)

        self.notifier.notify(document.id, DocType(document.doc_type))
        return document

    async def move_line(
        self,
        db: AsyncSession,
        document_id: uuid.UUID,
        line_id: uuid.UUID,
        direction: LineMoveDirection,
    ) -> Document:
        """
        Scambia la riga con la vicina in alto o in basso.

        Sul bordo della lista l'operazione non ha effetto.

        Raises:
            NotFoundError: Documento o riga non trovati
            ImmutableDocumentError: Documento pagato o stornato
            InvalidTransitionError: Documento finale
        """
        async with atomic(db, "spostamento riga"):
            document = await self.get_for_update(db, document_id)
            assert_editable(document.status)
            assert_draft(document, "spostamenti di riga")
            line = self._find_line(document, line_id)

            _renumber(document)
            index = document.lines.index(line)
            target = index - 1 if LineMoveDirection(direction) is LineMoveDirection.UP else index + 1

            if 0 <= target < len(document.lines):
                other = document.lines[target]
                line.position, other.position = other.position, line.position
                _renumber(document)

            recalculate_totals(document)

        self.notifier.notify(document.id, DocType(document.doc_type))
        return document

    async def delete_line(
        self,
        db: AsyncSession,
        document_id: uuid.UUID,
        line_id: uuid.UUID,
    ) -> Document:
        """
        Elimina una riga, ricompatta le posizioni e ricalcola i totali.

        Raises:
            NotFoundError: Documento o riga non trovati
            ImmutableDocumentError: Documento pagato o stornato
            InvalidTransitionError: Documento finale
        """
        async with atomic(db, "eliminazione riga"):
            document = await self.get_for_update(db, document_id)
            assert_editable(document.status)
            assert_draft(document, "eliminazione di righe")
            line = self._find_line(document, line_id)

            document.lines.remove(line)
            _renumber(document)
            recalculate_totals(document)

        self.notifier.notify(document.id, DocType(document.doc_type))
        return document

    # ------------------------------------------------------------
    # Transizioni di stato
    # ------------------------------------------------------------

    async def toggle_finalize(
        self,
        db: AsyncSession,
        document_id: uuid.UUID,
    ) -> Document:
        """
        Finalizza un documento in bozza oppure riporta in bozza un documento finale.

        Ritorno in bozza: il numero mostrato torna quello bozza, il numero
        finale resta riservato al documento e viene riusato alla prossima
        finalizzazione.

        Raises:
            NotFoundError: Documento non trovato
            ImmutableDocumentError: Documento pagato o stornato
            InvalidTransitionError: Offerta già convertita
        """
        async with atomic(db, "cambio stato finale"):
            document = await self.get_for_update(db, document_id)

            if document.is_final:
                await self._revert_to_draft(db, document)
            else:
                await self._finalize(db, document)

        self.notifier.notify(document.id, DocType(document.doc_type))
        return document

    async def finalize(
        self,
        db: AsyncSession,
        document_id: uuid.UUID,
    ) -> Document:
        """
        Finalizza un documento. Su un documento già finale non fa nulla.

        Raises:
            NotFoundError: Documento non trovato
            ImmutableDocumentError: Documento pagato o stornato
        """
        async with atomic(db, "finalizzazione documento"):
            document = await self.get_for_update(db, document_id)
            if document.is_final:
                return document
            await self._finalize(db, document)

        self.notifier.notify(document.id, DocType(document.doc_type))
        return document

    async def set_paid(
        self,
        db: AsyncSession,
        document_id: uuid.UUID,
        paid_at: Optional[datetime],
    ) -> Document:
        """
        Registra o rimuove il pagamento di una fattura finale.

        - paid_at valorizzato: stato PAID
        - paid_at nullo su fattura pagata: rifiutato (nessun "annulla pagamento")
        - paid_at nullo altrimenti: stato SENT

        Raises:
            NotFoundError: Documento non trovato
            InvalidTransitionError: Non fattura, non finale, stornata o annullo pagamento
        """
        async with atomic(db, "registrazione pagamento"):
            document = await self.get_for_update(db, document_id)
            self._require_final_invoice(document, "pagata")

            status = DocumentStatus(document.status)
            if status is DocumentStatus.CANCELLED:
                raise InvalidTransitionError(
                    f"La fattura {document.doc_number} è stornata e non può essere pagata"
                )

            if paid_at is not None:
                document.status = DocumentStatus.PAID.value
                document.paid_at = paid_at
            elif status is DocumentStatus.PAID:
                raise InvalidTransitionError(
                    f"Il pagamento della fattura {document.doc_number} non può essere annullato"
                )
            else:
                document.status = DocumentStatus.SENT.value
                document.paid_at = None

        if paid_at is not None:
            logger.info(f"Fattura {document.doc_number} pagata")
        self.notifier.notify(document.id, DocType(document.doc_type))
        return document

    async def set_sent(
        self,
        db: AsyncSession,
        document_id: uuid.UUID,
    ) -> Document:
        """
        Segna una fattura finale come inviata. Idempotente.

        Raises:
            NotFoundError: Documento non trovato
            InvalidTransitionError: Non fattura, non finale, pagata o stornata
        """
        async with atomic(db, "invio fattura"):
            document = await self.get_for_update(db, document_id)
            self._require_final_invoice(document, "inviata")

            if DocumentStatus(document.status) in (DocumentStatus.CANCELLED, DocumentStatus.PAID):
                raise InvalidTransitionError(
                    f"La fattura {document.doc_number} è in stato {document.status} e non può essere inviata"
                )

            document.status = DocumentStatus.SENT.value
            if document.sent_at is None:
                document.sent_at = utcnow()

        self.notifier.notify(document.id, DocType(document.doc_type))
        return document

    async def cancel(
        self,
        db: AsyncSession,
        document_id: uuid.UUID,
    ) -> Document:
        """
        Storna una fattura pagata (stato CANCELLED).

        Raises:
            NotFoundError: Documento non trovato
            InvalidTransitionError: Non fattura, non finale o non pagata
        """
        async with atomic(db, "storno fattura"):
            document = await self.get_for_update(db, document_id)
            self._require_final_invoice(document, "stornata")

            if DocumentStatus(document.status) is not DocumentStatus.PAID:
                raise InvalidTransitionError(
                    f"Solo le fatture pagate possono essere stornate ({document.doc_number} è {document.status})"
                )

            document.status = DocumentStatus.CANCELLED.value
            document.cancelled_at = utcnow()

        logger.info(f"Fattura {document.doc_number} stornata")
        self.notifier.notify(document.id, DocType(document.doc_type))
        return document

    async def delete(
        self,
        db: AsyncSession,
        document_id: uuid.UUID,
    ) -> None:
        """
        Elimina un documento in bozza con tutte le sue righe.

        Il numero finale riservato da una finalizzazione precedente resta
        un buco nella sequenza.

        Raises:
            NotFoundError: Documento non trovato
            ImmutableDocumentError: Documento pagato o stornato
            InvalidTransitionError: Documento finale
        """
        async with atomic(db, "eliminazione documento"):
            document = await self.get_for_update(db, document_id)
            assert_editable(document.status)
            assert_draft(document, "eliminazione")

            doc_type = DocType(document.doc_type)
            doc_number = document.doc_number
            document.lines.clear()
            await db.flush()
            await db.delete(document)

        logger.info(f"Documento {doc_number} eliminato")
        self.notifier.notify(document_id, doc_type)

    # ------------------------------------------------------------
    # Helper interni
    # ------------------------------------------------------------

    async def _finalize(self, db: AsyncSession, document: Document) -> None:
        assert_editable(document.status)

        if document.final_number is None:
            if is_draft_number(document.doc_number):
                document.final_number = await next_final_number(
                    db, DocType(document.doc_type), date.today().year
                )
            else:
                document.final_number = document.doc_number

        document.doc_number = document.final_number
        document.is_final = True
        if DocType(document.doc_type) in SENT_ON_FINALIZE:
            document.status = DocumentStatus.SENT.value

        logger.info(f"Documento {document.doc_number} finalizzato")

    async def _revert_to_draft(self, db: AsyncSession, document: Document) -> None:
        assert_editable(document.status)
        if DocumentStatus(document.status) is DocumentStatus.CONVERTED:
            raise InvalidTransitionError(
                f"L'offerta {document.doc_number} è già stata convertita e non può tornare in bozza"
            )

        if not document.draft_number:
            document.draft_number = await next_draft_number(
                db, DocType(document.doc_type), date.today().year
            )

        document.doc_number = document.draft_number
        document.is_final = False
        document.status = DocumentStatus.DRAFT.value

        logger.info(f"Documento {document.final_number} riportato in bozza come {document.doc_number}")

    @staticmethod
    def _require_final_invoice(document: Document, action: str) -> None:
        if DocType(document.doc_type) is not DocType.INVOICE:
            raise InvalidTransitionError(
                f"Solo le fatture possono essere {action} ({document.doc_number} è {document.doc_type})"
            )
        if not document.is_final:
            raise InvalidTransitionError(
                f"La fattura {document.doc_number} non è finale e non può essere {action}"
            )

    @staticmethod
    def _find_line(document: Document, line_id: uuid.UUID) -> DocumentLine:
        for line in document.lines:
            if line.id == line_id:
                return line
        raise NotFoundError(f"Riga {line_id} non trovata nel documento {document.doc_number}")

    @staticmethod
    async def _ensure_customer(db: AsyncSession, customer_id: uuid.UUID) -> Customer:
        customer = await db.get(Customer, customer_id)
        if not customer:
            raise NotFoundError(f"Cliente {customer_id} non trovato")
        return customer

    @staticmethod
    async def _ensure_vehicle(db: AsyncSession, vehicle_id: uuid.UUID) -> Vehicle:
        vehicle = await db.get(Vehicle, vehicle_id)
        if not vehicle:
            raise NotFoundError(f"Veicolo {vehicle_id} non trovato")
        return vehicle
