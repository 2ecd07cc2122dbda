"""
Modello SQLAlchemy per il catalogo prestazioni
Progetto: Beleg Manager (Gestionale Documenti Commerciali)

Le voci di catalogo vengono copiate nelle righe documento al momento
dell'inserimento: modifiche successive al catalogo non toccano i documenti.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models import Base
from app.models.mixins import TimestampMixin, UUIDMixin


class ServiceItem(Base, UUIDMixin, TimestampMixin):
    """
    Voce del catalogo prestazioni.

    Attributes:
        name: Nome della prestazione (diventa il titolo della riga)
        short_text: Descrizione breve (diventa la descrizione della riga)
        pricing_type: AW (unità di lavoro) oppure HOURLY (tariffa oraria)
        aw_default_qty: Numero di AW proposto
        aw_unit_price_cents: Prezzo netto per AW
        hourly_rate_cents: Tariffa oraria netta
        default_minutes: Durata proposta per le prestazioni orarie
        vat_rate: Aliquota IVA
    """

    __tablename__ = "service_items"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    short_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    pricing_type: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default="AW",
        doc="AW oppure HOURLY",
    )

    aw_default_qty: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    aw_unit_price_cents: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    hourly_rate_cents: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    default_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    vat_rate: Mapped[int] = mapped_column(Integer, nullable=False, default=19)

    __table_args__ = (
        CheckConstraint("pricing_type IN ('AW', 'HOURLY')", name="ck_service_items_pricing_type"),
    )

    def __repr__(self) -> str:
        return f"<ServiceItem(id={self.id}, name={self.name}, pricing={self.pricing_type})>"
