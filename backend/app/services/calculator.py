"""
Calcolo importi di riga e totali documento
Progetto: Beleg Manager (Gestionale Documenti Commerciali)

Funzioni pure, senza accesso al database. Tutti gli importi sono interi
in centesimi; ogni passaggio arrotonda "half away from zero".
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Union

from app.schemas.document import TaxTreatment

Number = Union[int, Decimal, str]

_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class LineTotals:
    """Importi calcolati di una riga (o di un documento)."""

    net_cents: int
    vat_cents: int
    gross_cents: int


def round_cents(value: Decimal) -> int:
    """Arrotonda all'intero, con le metà lontano da zero (2.5 -> 3, -2.5 -> -3)."""
    return int(Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calc_line(
    qty: Number,
    unit_net_cents: int,
    vat_rate: int,
    discount_pct: Number = 0,
    tax_treatment: TaxTreatment = TaxTreatment.STANDARD,
) -> LineTotals:
    """
    Calcola netto, IVA e lordo di una riga.

    1. netto grezzo = round(qty * prezzo unitario)
    2. netto = round(netto grezzo * (1 - sconto/100))
    3. IVA = 0 in regime del margine, altrimenti round(netto * aliquota/100)
    4. lordo = netto + IVA

    Args:
        qty: Quantità
        unit_net_cents: Prezzo unitario netto in centesimi (può essere negativo)
        vat_rate: Aliquota IVA in percentuale
        discount_pct: Sconto percentuale (-100..100)
        tax_treatment: Trattamento fiscale della riga

    Returns:
        LineTotals: Importi della riga
    """
    raw_net = round_cents(Decimal(str(qty)) * Decimal(unit_net_cents))
    discount = Decimal(str(discount_pct))
    net = round_cents(Decimal(raw_net) * (1 - discount / _HUNDRED))

    if TaxTreatment(tax_treatment) is TaxTreatment.MARGIN_SCHEME:
        vat = 0
    else:
        vat = round_cents(Decimal(net) * Decimal(vat_rate) / _HUNDRED)

    return LineTotals(net_cents=net, vat_cents=vat, gross_cents=net + vat)


def sum_totals(lines: Iterable[LineTotals]) -> LineTotals:
    """Somma gli importi già calcolati delle righe nei totali documento."""
    net = vat = gross = 0
    for line in lines:
        net += line.net_cents
        vat += line.vat_cents
        gross += line.gross_cents
    return LineTotals(net_cents=net, vat_cents=vat, gross_cents=gross)
