"""
Modello SQLAlchemy per l'entità Customer
Progetto: Beleg Manager (Gestionale Documenti Commerciali)

Anagrafica clienti in sola lettura per il motore documenti: la gestione
completa dell'anagrafica avviene altrove.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, CheckConstraint, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models import Base
from app.models.mixins import TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from app.models.vehicle import Vehicle


class Customer(Base, UUIDMixin, TimestampMixin):
    """
    Modello per l'anagrafica clienti.

    Attributes:
        id: UUID primary key
        name: Nome visualizzato o ragione sociale (obbligatorio)
        is_business: True per clienti aziendali
        hourly_rate_cents: Tariffa oraria specifica del cliente (opzionale)

    Relationships:
        vehicles: Veicoli di proprietà del cliente
    """

    __tablename__ = "customers"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Nome o ragione sociale",
    )

    is_business: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        doc="Cliente aziendale",
    )

    hourly_rate_cents: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        doc="Tariffa oraria netta specifica del cliente, in centesimi",
    )

    vehicles: Mapped[List["Vehicle"]] = relationship(
        "Vehicle",
        back_populates="customer",
        lazy="noload",
        doc="Veicoli del cliente",
    )

    __table_args__ = (
        Index("ix_customers_name", "name"),
        CheckConstraint(
            "hourly_rate_cents IS NULL OR hourly_rate_cents > 0",
            name="ck_customers_hourly_rate_positive",
        ),
    )

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, name={self.name})>"
