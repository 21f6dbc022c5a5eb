# order_desk/domain/interfaces.py
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from .entities import Order, OrderStatus


class OrderRepository(ABC):
    """
    Contrato (Interfaz) para el almacén de pedidos y sus líneas de producto.
    La capa de Aplicación solo conoce esta Interfaz, no la implementación.
    Toda falla del almacén se reporta como StoreError.
    """

    @abstractmethod
    def insert_order(self, order: Order) -> Order:
        """Inserta el pedido con sus productos y retorna la entidad con su id asignado."""
        pass

    @abstractmethod
    def get_order(self, order_id: str) -> Optional[Order]:
        """Recupera un pedido con sus productos, o None si no existe."""
        pass

    @abstractmethod
    def list_orders(self) -> List[Order]:
        """Recupera todos los pedidos con sus productos, del más reciente al más antiguo."""
        pass

    @abstractmethod
    def update_order(self, order: Order) -> Optional[Order]:
        """
        Reemplaza los datos del cliente, total, estado y el conjunto completo de
        productos (borrar y volver a insertar). Retorna None si el pedido no existe.
        """
        pass

    @abstractmethod
    def update_order_status(self, order_id: str, status: OrderStatus, updated_at: datetime) -> bool:
        """Cambia solo el estado. Retorna False si el pedido no existe."""
        pass

    @abstractmethod
    def delete_order(self, order_id: str) -> bool:
        """Elimina los productos y luego el pedido. Retorna False si el pedido no existe."""
        pass
