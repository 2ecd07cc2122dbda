"""
Modello SQLAlchemy per le impostazioni aziendali
Progetto: Beleg Manager (Gestionale Documenti Commerciali)

Una sola riga con id "default". I valori nulli ricadono sui default
della configurazione applicativa.
"""

from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models import Base
from app.models.mixins import TimestampMixin


class CompanySettings(Base, TimestampMixin):
    """
    Impostazioni aziendali lette dal motore documenti.

    Attributes:
        id: Chiave fissa "default"
        company_name: Ragione sociale
        work_card_aw_minutes: Minuti per AW nella fatturazione schede di lavoro
        work_card_hourly_rate_cents: Tariffa oraria di default in centesimi
    """

    __tablename__ = "company_settings"

    id: Mapped[str] = mapped_column(String(20), primary_key=True, default="default")
    company_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    work_card_aw_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    work_card_hourly_rate_cents: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"<CompanySettings(id={self.id})>"
