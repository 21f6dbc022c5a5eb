"""Entidades, errores y contratos del dominio de pedidos."""

from .entities import (
    OrderStatus,
    ORDER_STATUS_MAP,
    CustomerDetails,
    ProductSelection,
    Order,
)
from .errors import OrderDeskError, ValidationError, NotFoundError, StoreError
from .interfaces import OrderRepository

__all__ = [
    'OrderStatus',
    'ORDER_STATUS_MAP',
    'CustomerDetails',
    'ProductSelection',
    'Order',
    'OrderDeskError',
    'ValidationError',
    'NotFoundError',
    'StoreError',
    'OrderRepository',
]
