"""
Mixin SQLAlchemy per modelli
Progetto: Beleg Manager (Gestionale Documenti Commerciali)

Chiave UUID generata in Python (serve prima del flush per collegare
righe e documenti derivati) e timestamp di audit in UTC.
"""

import datetime
import uuid

from sqlalchemy import DateTime, Uuid, event
from sqlalchemy.orm import Mapped, Session, mapped_column
from sqlalchemy.sql import func


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _audit_column(label: str) -> Mapped[datetime.datetime]:
    return mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        nullable=False,
        doc=label,
    )


class TimestampMixin:
    """
    created_at / updated_at in UTC.

    updated_at viene riscritto dal listener `touch_updated_at` solo se
    una colonna del record cambia: aggiungere una riga non tocca il
    documento padre.
    """

    created_at: Mapped[datetime.datetime] = _audit_column("Creazione del record")
    updated_at: Mapped[datetime.datetime] = _audit_column("Ultima modifica del record")


class UUIDMixin:
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)


@event.listens_for(Session, "before_flush")
def touch_updated_at(session: Session, flush_context, instances) -> None:
    # AsyncSession delega a una Session sincrona: il listener vale per entrambe
    now = _utcnow()
    changed = [
        obj for obj in session.dirty
        if isinstance(obj, TimestampMixin) and session.is_modified(obj, include_collections=False)
    ]
    created = [obj for obj in session.new if isinstance(obj, TimestampMixin)]
    for obj in changed + created:
        obj.updated_at = now
