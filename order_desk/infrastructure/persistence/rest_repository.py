"""Repositorio de pedidos sobre la API REST del servicio de tablas alojado."""

import logging
import re
from datetime import datetime
from decimal import Decimal
from typing import List, Dict, Any, Optional

import requests

from order_desk.config import Config
from order_desk.domain.entities import Order, OrderStatus, ProductSelection
from order_desk.domain.errors import StoreError
from order_desk.domain.interfaces import OrderRepository
from .ids import is_valid_order_id

logger = logging.getLogger(__name__)

ORDERS_TABLE = "orders"
PRODUCTS_TABLE = "order_products"
ORDER_WITH_PRODUCTS = "*,order_products(*)"
_FRACTION = re.compile(r"\.(\d{1,6})(?=[+-]|$)")


def _to_decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    # fromisoformat (antes de 3.11) no acepta 'Z' ni fracciones que no sean de 3 o 6 dígitos
    value = _FRACTION.sub(lambda m: "." + m.group(1).ljust(6, "0"), value.replace("Z", "+00:00"))
    return datetime.fromisoformat(value)


def _order_header(order: Order) -> Dict[str, Any]:
    header = {
        "name": order.name,
        "phone": order.phone,
        "village": order.village,
        "total_bill": float(order.total_bill),
        "status": order.status.value,
    }
    if order.updated_at:
        header["updated_at"] = order.updated_at.isoformat()
    return header


def _product_row(order_id: str, product: ProductSelection) -> Dict[str, Any]:
    return {
        "order_id": order_id,
        "product_id": product.product_id,
        "product_name": product.name,
        "quantity": float(product.quantity),
        "received_quantity": (
            float(product.received_quantity) if product.received_quantity is not None else None
        ),
        "price": float(product.price),
    }


def _row_to_order(row: Dict[str, Any]) -> Order:
    products = [
        ProductSelection(
            product_id=p["product_id"],
            name=p["product_name"],
            price=_to_decimal(p["price"]),
            quantity=_to_decimal(p["quantity"]),
            received_quantity=_to_decimal(p.get("received_quantity")),
        )
        for p in row.get(PRODUCTS_TABLE) or []
    ]
    return Order(
        order_id=str(row["id"]),
        name=row["name"],
        phone=row["phone"],
        village=row["village"],
        products=products,
        total_bill=_to_decimal(row["total_bill"]),
        status=OrderStatus.parse(row["status"]),
        created_at=_parse_timestamp(row.get("created_at")),
        updated_at=_parse_timestamp(row.get("updated_at")),
    )


class RestOrderRepository(OrderRepository):
    """
    Cliente del servicio de tablas (estilo PostgREST: /rest/v1/<tabla>).
    La API no ofrece transacciones entre tablas: la creación compensa
    borrando la cabecera si fallan las líneas, la edición restaura la versión
    anterior si falla el reemplazo de líneas, y un borrado a medias se
    reporta como StoreError para que el llamador reintente.
    """

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None,
                 timeout: Optional[int] = None, session: Optional[requests.Session] = None):
        self.base_url = (base_url or Config.STORE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else Config.STORE_TIMEOUT
        key = api_key if api_key is not None else Config.STORE_API_KEY
        self.session = session or requests.Session()
        self.session.headers.update({
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        })

    def _request(self, method: str, table: str, operation: str,
                 params: Optional[Dict[str, str]] = None, json: Any = None) -> Any:
        """Realiza una petición a la tabla y retorna el JSON de la respuesta."""
        url = f"{self.base_url}/rest/v1/{table}"
        try:
            response = self.session.request(method, url, params=params, json=json, timeout=self.timeout)
            response.raise_for_status()
            return response.json() if response.content else []
        except requests.exceptions.RequestException as e:
            logger.error(f"Error al consumir el servicio de tablas ({operation}) en {table}: {e}")
            raise StoreError(f"Store error during {operation}.") from e
        except ValueError as e:
            logger.error(f"Respuesta no JSON del servicio de tablas ({operation}) en {table}: {e}")
            raise StoreError(f"Store returned an invalid response during {operation}.") from e

    def insert_order(self, order: Order) -> Order:
        header = _order_header(order)
        if order.created_at:
            header["created_at"] = order.created_at.isoformat()

        rows = self._request("POST", ORDERS_TABLE, "insert order", json=header)
        created = _row_to_order(rows[0])
        if order.products:
            try:
                self._request(
                    "POST", PRODUCTS_TABLE, "insert order products",
                    json=[_product_row(created.order_id, p) for p in order.products],
                )
            except StoreError:
                self._compensate_insert(created.order_id)
                raise
        created.products = list(order.products)
        return created

    def _compensate_insert(self, order_id: str):
        try:
            self._request("DELETE", ORDERS_TABLE, "compensate order insert",
                          params={"id": f"eq.{order_id}"})
            logger.warning(f"Pedido {order_id} revertido: no se pudieron guardar sus productos.")
        except StoreError:
            logger.error(f"No se pudo revertir el pedido {order_id}; queda sin productos.")

    def get_order(self, order_id: str) -> Optional[Order]:
        if not is_valid_order_id(order_id):
            return None
        rows = self._request(
            "GET", ORDERS_TABLE, "get order",
            params={"select": ORDER_WITH_PRODUCTS, "id": f"eq.{order_id}"},
        )
        if not rows:
            return None
        return _row_to_order(rows[0])

    def list_orders(self) -> List[Order]:
        rows = self._request(
            "GET", ORDERS_TABLE, "list orders",
            params={"select": ORDER_WITH_PRODUCTS, "order": "created_at.desc"},
        )
        return [_row_to_order(row) for row in rows]

    def update_order(self, order: Order) -> Optional[Order]:
        # Se conserva la versión anterior para restaurarla si falla el reemplazo de líneas
        previous = self.get_order(order.order_id)
        if previous is None:
            return None

        rows = self._request("PATCH", ORDERS_TABLE, "update order",
                             params={"id": f"eq.{order.order_id}"}, json=_order_header(order))
        if not rows:
            return None
        try:
            self._replace_products(order.order_id, order.products, "replace order products")
        except StoreError:
            self._compensate_update(previous)
            raise
        updated = _row_to_order(rows[0])
        updated.products = list(order.products)
        return updated

    def _replace_products(self, order_id: str, products: List[ProductSelection], operation: str):
        self._request("DELETE", PRODUCTS_TABLE, operation, params={"order_id": f"eq.{order_id}"})
        if products:
            self._request("POST", PRODUCTS_TABLE, operation,
                          json=[_product_row(order_id, p) for p in products])

    def _compensate_update(self, previous: Order):
        try:
            self._request("PATCH", ORDERS_TABLE, "compensate order update",
                          params={"id": f"eq.{previous.order_id}"}, json=_order_header(previous))
            self._replace_products(previous.order_id, previous.products, "compensate order update")
            logger.warning(f"Pedido {previous.order_id} restaurado: no se pudieron reemplazar sus productos.")
        except StoreError:
            logger.error(f"No se pudo restaurar el pedido {previous.order_id} tras una edición fallida.")

    def update_order_status(self, order_id: str, status: OrderStatus, updated_at: datetime) -> bool:
        if not is_valid_order_id(order_id):
            return False
        rows = self._request(
            "PATCH", ORDERS_TABLE, "update order status",
            params={"id": f"eq.{order_id}"},
            json={"status": status.value, "updated_at": updated_at.isoformat()},
        )
        return bool(rows)

    def delete_order(self, order_id: str) -> bool:
        if not is_valid_order_id(order_id):
            return False
        self._request("DELETE", PRODUCTS_TABLE, "delete order products",
                      params={"order_id": f"eq.{order_id}"})
        try:
            rows = self._request("DELETE", ORDERS_TABLE, "delete order",
                                 params={"id": f"eq.{order_id}"})
        except StoreError as e:
            logger.error(f"Pedido {order_id} quedó sin productos: falló el borrado de la cabecera.")
            raise StoreError(
                f"Order {order_id} lost its products but the order row was not deleted; retry the delete."
            ) from e
        return bool(rows)
