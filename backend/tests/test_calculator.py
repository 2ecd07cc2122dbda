"""
Unit tests for the line total calculator.

Funzioni pure: nessun database.
"""

from decimal import Decimal

import pytest

from app.schemas.document import TaxTreatment
from app.services.calculator import LineTotals, calc_line, round_cents, sum_totals


# ============================================================
# Tests for rounding
# ============================================================


class TestRoundCents:
    """Arrotondamento commerciale: le metà si allontanano da zero."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (Decimal("2.5"), 3),
            (Decimal("-2.5"), -3),
            (Decimal("2.4999"), 2),
            (Decimal("-0.5"), -1),
            (Decimal("0"), 0),
        ],
    )
    def test_half_away_from_zero(self, value, expected):
        assert round_cents(value) == expected


# ============================================================
# Tests for calc_line
# ============================================================


class TestCalcLine:
    """Test calcolo importi di riga."""

    def test_standard_line(self):
        """2 x 100,00 EUR al 19%."""
        totals = calc_line(Decimal("2"), 10000, 19, 0)

        assert totals == LineTotals(net_cents=20000, vat_cents=3800, gross_cents=23800)

    def test_negative_unit_price_mirrors_totals(self):
        totals = calc_line(Decimal("1"), -10000, 19, 0)

        assert totals == LineTotals(net_cents=-10000, vat_cents=-1900, gross_cents=-11900)

    def test_margin_scheme_has_no_vat(self):
        totals = calc_line(Decimal("1"), 1_490_000, 19, 0, TaxTreatment.MARGIN_SCHEME)

        assert totals.vat_cents == 0
        assert totals.net_cents == 1_490_000
        assert totals.gross_cents == 1_490_000

    def test_margin_scheme_accepts_plain_string(self):
        totals = calc_line(Decimal("1"), 5000, 19, 0, "MARGIN_SCHEME")

        assert totals.vat_cents == 0

    def test_discount_rounds_each_step(self):
        """999 con sconto 10%: netto 899 (899,1), IVA 171 (170,81)."""
        totals = calc_line(Decimal("1"), 999, 19, Decimal("10"))

        assert totals.net_cents == 899
        assert totals.vat_cents == 171
        assert totals.gross_cents == 1070

    def test_negative_discount_is_a_surcharge(self):
        totals = calc_line(Decimal("1"), 1000, 0, Decimal("-10"))

        assert totals == LineTotals(net_cents=1100, vat_cents=0, gross_cents=1100)

    def test_fractional_quantity_rounds_half_up(self):
        """1,5 x 3,33 EUR = 4,995 -> 5,00."""
        totals = calc_line(Decimal("1.5"), 333, 0, 0)

        assert totals.net_cents == 500

    def test_vat_half_cent_rounds_away_from_zero(self):
        """10,50 EUR al 7% = 0,735 -> 0,74; negativo -> -0,74."""
        assert calc_line(Decimal("1"), 1050, 7).vat_cents == 74
        assert calc_line(Decimal("1"), -1050, 7).vat_cents == -74

    def test_full_discount_zeroes_line(self):
        totals = calc_line(Decimal("3"), 2500, 19, Decimal("100"))

        assert totals == LineTotals(net_cents=0, vat_cents=0, gross_cents=0)

    def test_zero_quantity(self):
        assert calc_line(Decimal("0"), 9999, 19) == LineTotals(0, 0, 0)

    def test_same_inputs_same_outputs(self):
        first = calc_line(Decimal("2.35"), 4321, 19, Decimal("7.5"))
        second = calc_line(Decimal("2.35"), 4321, 19, Decimal("7.5"))

        assert first == second

    def test_gross_is_always_net_plus_vat(self):
        for qty, unit, rate, discount in [
            (Decimal("0.33"), 1999, 19, Decimal("3")),
            (Decimal("7"), -125, 7, Decimal("0")),
            (Decimal("12.5"), 80, 0, Decimal("-5")),
        ]:
            totals = calc_line(qty, unit, rate, discount)
            assert totals.gross_cents == totals.net_cents + totals.vat_cents


# ============================================================
# Tests for sum_totals
# ============================================================


class TestSumTotals:
    """Totali documento come somma delle righe."""

    def test_sums_lines(self):
        lines = [
            calc_line(Decimal("2"), 10000, 19),
            calc_line(Decimal("1"), 1_490_000, 19, 0, TaxTreatment.MARGIN_SCHEME),
        ]

        totals = sum_totals(lines)

        assert totals.net_cents == 20000 + 1_490_000
        assert totals.vat_cents == 3800
        assert totals.gross_cents == totals.net_cents + totals.vat_cents

    def test_empty_document(self):
        assert sum_totals([]) == LineTotals(0, 0, 0)
