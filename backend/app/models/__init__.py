"""
Modelli Database SQLAlchemy
Progetto: Beleg Manager (Gestionale Documenti Commerciali)

Import centralizzato di tutti i modelli per create_all e usage generico.

Modelli:
- Document, DocumentLine: Documenti commerciali e relative righe
- DocumentCounter, DocumentDraftCounter: Contatori numerazione
- Customer, Vehicle, ServiceItem, CompanySettings: Anagrafiche in sola lettura
- WorkCard, WorkCardStep: Schede di lavoro con tempi registrati
"""

# SQLAlchemy 2.0 Base declarativa
# Importato qui per essere disponibile per tutti i modelli
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class per tutti i modelli SQLAlchemy."""
    pass


# Import modelli implementati
from app.models.customer import Customer
from app.models.vehicle import Vehicle
from app.models.service_item import ServiceItem
from app.models.company_settings import CompanySettings
from app.models.document import Document, DocumentLine, DocumentCounter, DocumentDraftCounter
from app.models.work_card import WorkCard, WorkCardStep

__all__ = [
    "Base",
    "Customer",
    "Vehicle",
    "ServiceItem",
    "CompanySettings",
    "Document",
    "DocumentLine",
    "DocumentCounter",
    "DocumentDraftCounter",
    "WorkCard",
    "WorkCardStep",
]
