"""
Ricrea lo schema del Beleg Manager e inserisce le impostazioni aziendali di default.

Uso: python reset_db.py [--no-seed]
"""

import asyncio
import os
import sys

# Aggiungi backend/ alla PYTHONPATH per importare app.*
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "backend"))

from app.core.config import settings
from app.core.database import AsyncSessionLocal, engine
from app.models import Base, CompanySettings
from app.services.work_card_service import COMPANY_SETTINGS_ID


async def reset(seed: bool = True) -> None:
    print(f"Connessione a {settings.database_url.split('@')[-1]}: ricreazione tabelle documenti...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    if seed:
        async with AsyncSessionLocal() as session:
            session.add(
                CompanySettings(
                    id=COMPANY_SETTINGS_ID,
                    company_name=settings.app_name,
                    work_card_aw_minutes=settings.work_card_aw_minutes,
                    work_card_hourly_rate_cents=settings.work_card_hourly_rate_cents,
                )
            )
            await session.commit()
        print("Impostazioni aziendali di default inserite.")

    await engine.dispose()
    print("Database resettato con successo!")


if __name__ == "__main__":
    asyncio.run(reset(seed="--no-seed" not in sys.argv[1:]))
