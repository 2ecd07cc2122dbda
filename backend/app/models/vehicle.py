"""
Modello SQLAlchemy per l'entità Vehicle
Progetto: Beleg Manager (Gestionale Documenti Commerciali)

Veicoli dei clienti e veicoli in giacenza (Fahrzeugbestand) vendibili
tramite contratto d'acquisto o fattura.
"""

import uuid
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models import Base
from app.models.mixins import TimestampMixin, UUIDMixin

# Import per type hinting relazioni (evita circular import)
if TYPE_CHECKING:
    from app.models.customer import Customer


class Vehicle(Base, UUIDMixin, TimestampMixin):
    """
    Modello per i veicoli.

    Attributes:
        id: UUID primary key
        customer_id: UUID del cliente proprietario (opzionale per veicoli in giacenza)
        make: Marca
        model: Modello
        vin: Numero telaio (opzionale)
        is_stock: True se il veicolo è in giacenza presso l'azienda
        is_sold: True se il veicolo in giacenza è già stato venduto
        purchase_cents: Prezzo d'acquisto netto in centesimi
        sale_price_cents: Prezzo di vendita previsto in centesimi

    Relationships:
        customer: Cliente proprietario
    """

    __tablename__ = "vehicles"

    # ------------------------------------------------------------
    # Colonne Relazione Cliente
    # ------------------------------------------------------------
    customer_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
        doc="UUID del cliente proprietario",
    )

    # ------------------------------------------------------------
    # Colonne Dati Veicolo
    # ------------------------------------------------------------
    make: Mapped[str] = mapped_column(String(100), nullable=False, doc="Marca del veicolo")

    model: Mapped[str] = mapped_column(String(100), nullable=False, doc="Modello del veicolo")

    vin: Mapped[str | None] = mapped_column(
        String(17),
        nullable=True,
        doc="Numero telaio (Vehicle Identification Number)",
    )

    # ------------------------------------------------------------
    # Colonne Giacenza
    # ------------------------------------------------------------
    is_stock: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    is_sold: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    purchase_cents: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        doc="Prezzo d'acquisto netto",
    )

    sale_price_cents: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        doc="Prezzo di vendita previsto",
    )

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    customer: Mapped[Optional["Customer"]] = relationship(
        "Customer",
        back_populates="vehicles",
        lazy="joined",
        doc="Cliente proprietario del veicolo",
    )

    __table_args__ = (
        Index("ix_vehicles_customer_id", "customer_id"),
        Index("ix_vehicles_vin", "vin"),
    )

    def __repr__(self) -> str:
        return f"<Vehicle(id={self.id}, make={self.make}, model={self.model})>"

    @property
    def display_name(self) -> str:
        """
        Nome visualizzato del veicolo.

        Returns:
            Stringa formattata: "Marca Modello"
        """
        return f"{self.make} {self.model}".strip()
