# order_desk/application/validators.py
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional

from order_desk.domain.entities import CustomerDetails, ProductSelection
from order_desk.domain.errors import ValidationError

FIELD_LABELS = {
    "name": "el nombre del cliente",
    "phone": "el número de teléfono",
    "village": "el nombre del pueblo",
}

# Topes de las columnas NUMERIC(10,2) y NUMERIC(12,2) del esquema
MAX_QUANTITY = Decimal("99999999.99")
MAX_AMOUNT = Decimal("9999999999.99")


def check_amount_limit(amount: Decimal, field: str, limit: Decimal = MAX_AMOUNT) -> Decimal:
    if abs(amount) > limit:
        raise ValidationError(
            f"El valor de '{field}' supera el máximo permitido ({limit}).", field=field
        )
    return amount


def parse_amount(value, field: str, limit: Decimal = MAX_AMOUNT) -> Decimal:
    """Convierte números o textos numéricos a Decimal; cualquier otra cosa es inválida."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"El valor de '{field}' debe ser numérico.", field=field)
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"El valor de '{field}' debe ser numérico.", field=field)
    if not amount.is_finite():
        raise ValidationError(f"El valor de '{field}' debe ser numérico.", field=field)
    return check_amount_limit(amount, field, limit)


def normalize_selections(selections: Iterable[ProductSelection]) -> List[ProductSelection]:
    """
    Validación estructural de las líneas: rechaza cantidades negativas y
    cantidades recibidas fuera de rango; descarta las líneas con cantidad 0.
    """
    normalized = []
    for selection in selections:
        if not selection.product_id:
            raise ValidationError("Cada producto debe tener un identificador.", field="products")
        if selection.quantity < 0:
            raise ValidationError(
                f"La cantidad de '{selection.name or selection.product_id}' no puede ser negativa.",
                field="products",
            )
        if selection.price < 0:
            raise ValidationError(
                f"El precio de '{selection.name or selection.product_id}' no puede ser negativo.",
                field="products",
            )
        if selection.received_quantity is not None:
            if selection.received_quantity < 0 or selection.received_quantity > selection.quantity:
                raise ValidationError(
                    f"La cantidad recibida de '{selection.name or selection.product_id}' "
                    f"debe estar entre 0 y la cantidad pedida.",
                    field="products",
                )
        if selection.quantity == 0:
            continue
        normalized.append(selection)
    return normalized


def validate_submission(customer: CustomerDetails, selections: List[ProductSelection],
                        total_bill: Optional[Decimal]) -> None:
    """Reglas para que un pedido pueda enviarse (estado pending o completed)."""
    missing = customer.missing_fields()
    if missing:
        field = missing[0]
        raise ValidationError(f"Falta {FIELD_LABELS[field]}.", field=field)

    if not selections:
        raise ValidationError(
            "Seleccione al menos un producto con cantidad.", field="products"
        )

    if total_bill is None or total_bill <= 0:
        raise ValidationError("Ingrese un monto total válido.", field="total_bill")
