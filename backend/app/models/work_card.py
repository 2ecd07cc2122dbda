"""
Modelli SQLAlchemy per le schede di lavoro (Arbeitskarten)
Progetto: Beleg Manager (Gestionale Documenti Commerciali)

Il cronometro dei passi di lavoro è esterno: qui si legge solo il tempo
già registrato per trasformarlo in fattura.
"""

import uuid
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models import Base
from app.models.mixins import TimestampMixin, UUIDMixin


class WorkCard(Base, UUIDMixin, TimestampMixin):
    """
    Scheda di lavoro.

    Attributes:
        status: OPEN oppure CLOSED
        customer_id: Cliente (se assente si usa il proprietario del veicolo)
        vehicle_id: Veicolo lavorato
        source_offer_id: Offerta da cui nasce il lavoro
        work_date: Data del lavoro
        closed_at: Chiusura della scheda
        invoice_document_id: Fattura generata dalla scheda

    Relationships:
        steps: Passi di lavoro con durata
    """

    __tablename__ = "work_cards"

    status: Mapped[str] = mapped_column(String(10), nullable=False, default="OPEN")

    customer_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
    )

    vehicle_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("vehicles.id", ondelete="SET NULL"),
        nullable=True,
    )

    source_offer_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("documents.id", ondelete="SET NULL"),
        nullable=True,
    )

    work_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    invoice_document_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("documents.id", ondelete="SET NULL"),
        nullable=True,
        doc="Fattura generata dalla scheda",
    )

    steps: Mapped[List["WorkCardStep"]] = relationship(
        "WorkCardStep",
        back_populates="work_card",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("status IN ('OPEN', 'CLOSED')", name="ck_work_cards_status"),
    )

    @property
    def marker(self) -> str:
        """Marcatore della scheda riportato nelle note interne della fattura."""
        return f"AK-{str(self.id)[-8:].upper()}"

    def __repr__(self) -> str:
        return f"<WorkCard(id={self.id}, status={self.status})>"


class WorkCardStep(Base, UUIDMixin, TimestampMixin):
    """
    Passo di lavoro registrato su una scheda.

    Attributes:
        work_card_id: Scheda di appartenenza
        name: Nome libero del passo (es. "Innen", "Außen", "Polieren")
        duration_seconds: Durata registrata dal cronometro
    """

    __tablename__ = "work_card_steps"

    work_card_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("work_cards.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    duration_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    work_card: Mapped["WorkCard"] = relationship("WorkCard", back_populates="steps")

    def __repr__(self) -> str:
        return f"<WorkCardStep(name={self.name}, seconds={self.duration_seconds})>"
