# order_desk/domain/errors.py
from typing import Optional


class OrderDeskError(Exception):
    """Error base del servicio de pedidos."""


class ValidationError(OrderDeskError):
    """Datos de entrada faltantes o inválidos. Nunca se reintenta."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class NotFoundError(OrderDeskError):
    """La operación hace referencia a un pedido que ya no existe en el almacén."""

    def __init__(self, order_id: str):
        super().__init__(f"El pedido {order_id} no existe.")
        self.order_id = order_id


class StoreError(OrderDeskError):
    """El almacén de pedidos falló (red, restricción, etc.)."""
