"""
Tests for the document number allocator.
"""

import pytest
from sqlalchemy import select

from app.models import DocumentCounter, DocumentDraftCounter
from app.schemas.document import DocType
from app.services.sequence_service import (
    PREFIXES,
    format_final_number,
    is_draft_number,
    next_draft_number,
    next_final_number,
)


# ============================================================
# Tests for formatting
# ============================================================


class TestFormatting:
    """Test formato numeri bozza e finali."""

    @pytest.mark.parametrize(
        "doc_type, expected",
        [
            (DocType.OFFER, "ANG-2025-00001"),
            (DocType.INVOICE, "RE-2025-00001"),
            (DocType.CREDIT_NOTE, "GS-2025-00001"),
            (DocType.STORNO, "ST-2025-00001"),
            (DocType.PURCHASE_CONTRACT, "ORD-2025-00001"),
        ],
    )
    def test_final_number_prefixes(self, doc_type, expected):
        assert format_final_number(doc_type, 2025, 1) == expected

    def test_final_number_padding(self):
        assert format_final_number(DocType.INVOICE, 2026, 1234) == "RE-2026-01234"

    def test_every_type_has_a_prefix(self):
        assert set(PREFIXES) == set(DocType)

    @pytest.mark.parametrize(
        "number, expected",
        [
            ("DR-1", True),
            ("DR-1024", True),
            ("", True),
            (None, True),
            ("RE-2025-00001", False),
        ],
    )
    def test_is_draft_number(self, number, expected):
        assert is_draft_number(number) is expected


# ============================================================
# Tests for counters
# ============================================================


class TestCounters:
    """Test incremento atomico dei contatori."""

    async def test_draft_numbers_increment_per_type_and_year(self, db):
        assert await next_draft_number(db, DocType.INVOICE, 2025) == "DR-1"
        assert await next_draft_number(db, DocType.INVOICE, 2025) == "DR-2"
        assert await next_draft_number(db, DocType.OFFER, 2025) == "DR-1"
        assert await next_draft_number(db, DocType.INVOICE, 2026) == "DR-1"
        await db.commit()

        rows = (await db.execute(select(DocumentDraftCounter))).scalars().all()
        by_key = {(row.doc_type, row.year): row.last_seq for row in rows}
        assert by_key == {("INVOICE", 2025): 2, ("OFFER", 2025): 1, ("INVOICE", 2026): 1}

    async def test_final_numbers_increment(self, db):
        assert await next_final_number(db, DocType.INVOICE, 2025) == "RE-2025-00001"
        assert await next_final_number(db, DocType.INVOICE, 2025) == "RE-2025-00002"
        assert await next_final_number(db, DocType.OFFER, 2025) == "ANG-2025-00001"
        await db.commit()

        counter = (
            await db.execute(
                select(DocumentCounter).where(
                    DocumentCounter.doc_type == "INVOICE", DocumentCounter.year == 2025
                )
            )
        ).scalar_one()
        assert counter.last_seq == 2

    async def test_draft_and_final_spaces_are_independent(self, db):
        await next_draft_number(db, DocType.INVOICE, 2025)
        await next_draft_number(db, DocType.INVOICE, 2025)

        assert await next_final_number(db, DocType.INVOICE, 2025) == "RE-2025-00001"

    async def test_rolled_back_number_is_not_persisted(self, db):
        await next_final_number(db, DocType.STORNO, 2025)
        await db.rollback()

        assert await next_final_number(db, DocType.STORNO, 2025) == "ST-2025-00001"
