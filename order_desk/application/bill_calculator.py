# order_desk/application/bill_calculator.py
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Tuple

from order_desk.domain.entities import ProductSelection

TWO_PLACES = Decimal("0.01")


def round_money(value) -> Decimal:
    """Redondea un monto a 2 decimales (mitad hacia arriba)."""
    return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


@dataclass
class BillSummary:
    """Subtotales por línea y total del pedido."""
    lines: List[Tuple[ProductSelection, Decimal]] = field(default_factory=list)
    total: Decimal = Decimal("0.00")


def calculate_bill(selections: Iterable[ProductSelection]) -> BillSummary:
    """
    total = suma(precio x cantidad) sobre las líneas con cantidad > 0.
    Las cantidades negativas se rechazan antes de llegar aquí (validators).
    """
    summary = BillSummary()
    running_total = Decimal("0")
    for selection in selections:
        if selection.quantity <= 0:
            continue
        subtotal = selection.price * selection.quantity
        summary.lines.append((selection, round_money(subtotal)))
        running_total += subtotal
    summary.total = round_money(running_total)
    return summary
