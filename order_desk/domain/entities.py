# order_desk/domain/entities.py
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, List, Dict, Any

from .errors import ValidationError


class OrderStatus(str, Enum):
    """Estados posibles de un pedido: draft -> pending -> completed."""
    DRAFT = "draft"
    PENDING = "pending"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, value) -> "OrderStatus":
        """Convierte el valor almacenado (o recibido por la API) en un estado."""
        if isinstance(value, cls):
            return value
        normalized = str(value or "").strip().lower()
        # Valor heredado de la primera versión de la tabla
        if normalized == "partially_pending":
            return cls.DRAFT
        try:
            return cls(normalized)
        except ValueError:
            raise ValidationError(f"Estado de pedido desconocido: '{value}'.", field="status")


# Etiquetas para mostrar cada estado en pantalla y en los reportes.
ORDER_STATUS_MAP = {
    OrderStatus.DRAFT: {"name": "Pendiente parcial"},
    OrderStatus.PENDING: {"name": "Pendiente"},
    OrderStatus.COMPLETED: {"name": "Completado"},
}

STATUS_FILTER_ALL = "all"


def parse_status_filter(value: Optional[str]) -> Optional[OrderStatus]:
    """'all' (o vacío) no filtra; cualquier otro valor debe ser un estado válido."""
    if value is None or str(value).strip().lower() in ("", STATUS_FILTER_ALL):
        return None
    return OrderStatus.parse(value)


@dataclass
class CustomerDetails:
    """Datos del cliente capturados en el formulario."""
    name: str = ""
    phone: str = ""
    village: str = ""

    def missing_fields(self) -> List[str]:
        """Devuelve los campos vacíos, en el orden del formulario."""
        return [
            field_name
            for field_name in ("name", "phone", "village")
            if not (getattr(self, field_name) or "").strip()
        ]


@dataclass
class ProductSelection:
    """Línea de un pedido: producto del catálogo y cantidad solicitada."""
    product_id: str
    name: str
    price: Decimal
    quantity: Decimal
    received_quantity: Optional[Decimal] = None

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity

    @property
    def remaining_quantity(self) -> Decimal:
        received = self.received_quantity or Decimal("0")
        return max(Decimal("0"), self.quantity - received)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.product_id,
            "name": self.name,
            "price": float(self.price),
            "quantity": float(self.quantity),
            "received_quantity": (
                float(self.received_quantity) if self.received_quantity is not None else None
            ),
            "remaining_quantity": float(self.remaining_quantity),
            "subtotal": float(self.subtotal),
        }


@dataclass
class Order:
    """Entidad central de Pedido."""
    order_id: Optional[str]
    name: str
    phone: str
    village: str
    products: List[ProductSelection] = field(default_factory=list)
    total_bill: Decimal = Decimal("0.00")
    status: OrderStatus = OrderStatus.PENDING
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def customer(self) -> CustomerDetails:
        return CustomerDetails(name=self.name, phone=self.phone, village=self.village)

    @property
    def status_name(self) -> str:
        return ORDER_STATUS_MAP[self.status]["name"]

    def matches(self, search: Optional[str]) -> bool:
        """
        Búsqueda libre del panel de administración: nombre y pueblo sin
        distinguir mayúsculas, teléfono como subcadena literal.
        """
        if not search:
            return True
        term = search.lower()
        return (
            term in (self.name or "").lower()
            or search in (self.phone or "")
            or term in (self.village or "").lower()
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.order_id,
            "name": self.name,
            "phone": self.phone,
            "village": self.village,
            "products": [product.to_dict() for product in self.products],
            "total_bill": float(self.total_bill),
            "status": self.status.value,
            "status_name": self.status_name,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
