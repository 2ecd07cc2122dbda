"""
Pytest configuration and fixtures for the document engine tests.

Ogni test riceve un database SQLite in memoria (aiosqlite) con tutte le
tabelle create da Base.metadata, più alcune anagrafiche di esempio.
"""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import AsyncGenerator, List, Tuple

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from app.models import (
    Base,
    CompanySettings,
    Customer,
    ServiceItem,
    Vehicle,
    WorkCard,
    WorkCardStep,
)
from app.schemas.document import DocType, DocumentCreate, LineCreate
from app.services.derived_document_service import DerivedDocumentService
from app.services.document_service import DocumentService
from app.services.notification_service import DocumentChangeNotifier

TEST_DATABASE_URL = "sqlite+aiosqlite://"


# ============================================================
# Fixtures Database
# ============================================================


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Engine SQLite in memoria condiviso da tutte le sessioni del test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    """Sessione database per il test."""
    async with session_factory() as session:
        yield session


# ============================================================
# Fixtures Service
# ============================================================


@pytest.fixture
def notifications() -> List[Tuple[uuid.UUID, DocType]]:
    """Registro delle notifiche emesse durante il test."""
    return []


@pytest.fixture
def notifier(notifications) -> DocumentChangeNotifier:
    notifier = DocumentChangeNotifier()
    notifier.subscribe(lambda document_id, doc_type: notifications.append((document_id, doc_type)))
    return notifier


@pytest.fixture
def document_service(notifier: DocumentChangeNotifier) -> DocumentService:
    return DocumentService(notifier=notifier)


@pytest.fixture
def derived_service(document_service: DocumentService) -> DerivedDocumentService:
    return DerivedDocumentService(documents=document_service)


# ============================================================
# Fixtures Anagrafiche
# ============================================================


@pytest.fixture
async def customer(db: AsyncSession) -> Customer:
    """Cliente senza tariffa oraria specifica."""
    customer = Customer(name="Autohaus Müller", is_business=True)
    db.add(customer)
    await db.commit()
    return customer


@pytest.fixture
async def vehicle(db: AsyncSession, customer: Customer) -> Vehicle:
    """Veicolo del cliente."""
    vehicle = Vehicle(customer_id=customer.id, make="VW", model="Golf", vin="WVWZZZ1KZAW000001")
    db.add(vehicle)
    await db.commit()
    return vehicle


@pytest.fixture
async def stock_vehicle(db: AsyncSession) -> Vehicle:
    """Veicolo in giacenza, non ancora venduto."""
    vehicle = Vehicle(
        make="BMW",
        model="320d",
        vin="WBA00000000000001",
        is_stock=True,
        is_sold=False,
        purchase_cents=1_200_000,
        sale_price_cents=1_490_000,
    )
    db.add(vehicle)
    await db.commit()
    return vehicle


@pytest.fixture
async def aw_service_item(db: AsyncSession) -> ServiceItem:
    item = ServiceItem(
        name="Innenreinigung",
        short_text="Sitze, Teppiche, Armaturen",
        pricing_type="AW",
        aw_default_qty=Decimal("6"),
        aw_unit_price_cents=1000,
        vat_rate=19,
    )
    db.add(item)
    await db.commit()
    return item


@pytest.fixture
async def hourly_service_item(db: AsyncSession) -> ServiceItem:
    item = ServiceItem(
        name="Lackpflege",
        pricing_type="HOURLY",
        hourly_rate_cents=7200,
        default_minutes=90,
        vat_rate=19,
    )
    db.add(item)
    await db.commit()
    return item


@pytest.fixture
async def company_settings(db: AsyncSession) -> CompanySettings:
    settings_row = CompanySettings(
        id="default",
        company_name="Glanzwerk GmbH",
        work_card_aw_minutes=10,
        work_card_hourly_rate_cents=6000,
    )
    db.add(settings_row)
    await db.commit()
    return settings_row


@pytest.fixture
async def closed_work_card(db: AsyncSession, vehicle: Vehicle) -> WorkCard:
    """
    Scheda chiusa senza cliente diretto: il cliente è il proprietario del veicolo.

    Innen 30 min, Außen 15 min, un passo a zero secondi da ignorare.
    """
    card = WorkCard(
        status="CLOSED",
        vehicle_id=vehicle.id,
        work_date=date(2025, 3, 14),
        closed_at=datetime(2025, 3, 14, 17, 30, tzinfo=timezone.utc),
        steps=[
            WorkCardStep(name="Innen", duration_seconds=1800),
            WorkCardStep(name="Außen", duration_seconds=900),
            WorkCardStep(name="Polieren", duration_seconds=0),
        ],
    )
    db.add(card)
    await db.commit()
    return card


# ============================================================
# Helper
# ============================================================


@pytest.fixture
def make_invoice(db: AsyncSession, document_service: DocumentService):
    """Crea una fattura in bozza con le righe indicate."""

    async def _make(*lines: LineCreate, customer_id=None):
        document = await document_service.create(
            db, DocumentCreate(doc_type=DocType.INVOICE, customer_id=customer_id)
        )
        for line in lines:
            document = await document_service.add_custom_line(db, document.id, line)
        return document

    return _make


@pytest.fixture
def make_paid_invoice(db: AsyncSession, document_service: DocumentService, make_invoice):
    """Crea una fattura finale e pagata (Scenario A + B)."""

    async def _make(*lines: LineCreate, customer_id=None):
        document = await make_invoice(*lines, customer_id=customer_id)
        await document_service.toggle_finalize(db, document.id)
        return await document_service.set_paid(db, document.id, datetime.now(timezone.utc))

    return _make


# ============================================================
# Fixtures API
# ============================================================


@pytest.fixture
async def client(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncClient, None]:
    """Client HTTP sull'app FastAPI con get_db rediretto al database di test."""
    from app.core.database import get_db
    from app.main import app

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()
