import logging
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import List, Dict, Any, Optional

import psycopg2
from psycopg2 import extras

from order_desk.domain.entities import Order, OrderStatus, ProductSelection
from order_desk.domain.errors import StoreError
from order_desk.domain.interfaces import OrderRepository
from .db_connector import get_connection, release_connection
from .ids import is_valid_order_id

logger = logging.getLogger(__name__)

ORDER_COLUMNS = "id, name, phone, village, total_bill, status, created_at, updated_at"
PRODUCT_COLUMNS = "order_id, product_id, product_name, quantity, received_quantity, price"

LINES_INSERT_SQL = """
    INSERT INTO order_products (order_id, product_id, product_name, quantity, received_quantity, price)
    VALUES (%s, %s, %s, %s, %s, %s);
"""


def _to_decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _row_to_product(row: Dict[str, Any]) -> ProductSelection:
    return ProductSelection(
        product_id=row['product_id'],
        name=row['product_name'],
        price=_to_decimal(row['price']),
        quantity=_to_decimal(row['quantity']),
        received_quantity=_to_decimal(row['received_quantity']),
    )


def _row_to_order(row: Dict[str, Any], products: List[ProductSelection]) -> Order:
    return Order(
        order_id=str(row['id']),
        name=row['name'],
        phone=row['phone'],
        village=row['village'],
        products=products,
        total_bill=_to_decimal(row['total_bill']),
        status=OrderStatus.parse(row['status']),
        created_at=row['created_at'],
        updated_at=row['updated_at'],
    )


class PgOrderRepository(OrderRepository):
    """
    Implementación concreta que se conecta a PostgreSQL para persistir los
    pedidos (tabla orders) y sus líneas (tabla order_products) usando psycopg2.
    Cada operación de varias filas corre en una sola transacción.
    """

    @contextmanager
    def _transaction(self, operation: str):
        conn = None
        try:
            conn = get_connection()
            cursor = conn.cursor(cursor_factory=extras.RealDictCursor)
            yield cursor
            conn.commit()
        except psycopg2.Error as e:
            logger.error(f"Error de base de datos al {operation}: {e}")
            if conn:
                conn.rollback()
            raise StoreError(f"Database error during {operation}.") from e
        except ConnectionError as e:
            logger.error(f"Sin conexión a la base de datos al {operation}: {e}")
            raise StoreError(f"Database unavailable during {operation}.") from e
        finally:
            if conn:
                release_connection(conn)

    @staticmethod
    def _insert_lines(cursor, order_id: str, products: List[ProductSelection]):
        lines_data = [
            (order_id, p.product_id, p.name, p.quantity, p.received_quantity, p.price)
            for p in products
        ]
        if lines_data:
            extras.execute_batch(cursor, LINES_INSERT_SQL, lines_data)

    @staticmethod
    def _fetch_products(cursor, order_ids: List[str]) -> Dict[str, List[ProductSelection]]:
        grouped = {order_id: [] for order_id in order_ids}
        if not order_ids:
            return grouped
        cursor.execute(
            f"SELECT {PRODUCT_COLUMNS} FROM order_products "
            f"WHERE order_id::text = ANY(%s) ORDER BY id;",
            (order_ids,)
        )
        for row in cursor.fetchall():
            grouped.setdefault(str(row['order_id']), []).append(_row_to_product(row))
        return grouped

    def insert_order(self, order: Order) -> Order:
        """
        Inserta una nueva orden (cabecera y líneas) en una transacción.
        """
        with self._transaction("insert order") as cursor:
            cursor.execute(
                f"""
                INSERT INTO orders (name, phone, village, total_bill, status, created_at, updated_at)
                VALUES (%s, %s, %s, %s, %s, COALESCE(%s, now()), COALESCE(%s, now()))
                RETURNING {ORDER_COLUMNS};
                """,
                (order.name, order.phone, order.village, order.total_bill,
                 order.status.value, order.created_at, order.updated_at)
            )
            row = cursor.fetchone()
            new_order_id = str(row['id'])
            self._insert_lines(cursor, new_order_id, order.products)

        return _row_to_order(row, list(order.products))

    def get_order(self, order_id: str) -> Optional[Order]:
        if not is_valid_order_id(order_id):
            return None
        with self._transaction("get order") as cursor:
            cursor.execute(f"SELECT {ORDER_COLUMNS} FROM orders WHERE id = %s;", (order_id,))
            row = cursor.fetchone()
            if row is None:
                return None
            products = self._fetch_products(cursor, [str(row['id'])])
        return _row_to_order(row, products[str(row['id'])])

    def list_orders(self) -> List[Order]:
        with self._transaction("list orders") as cursor:
            cursor.execute(f"SELECT {ORDER_COLUMNS} FROM orders ORDER BY created_at DESC;")
            rows = cursor.fetchall()
            products = self._fetch_products(cursor, [str(row['id']) for row in rows])
        return [_row_to_order(row, products[str(row['id'])]) for row in rows]

    def update_order(self, order: Order) -> Optional[Order]:
        """
        Reemplaza cabecera y líneas (borrar y reinsertar) en una transacción.
        """
        if not is_valid_order_id(order.order_id):
            return None
        with self._transaction("update order") as cursor:
            cursor.execute(
                f"""
                UPDATE orders
                SET name = %s, phone = %s, village = %s, total_bill = %s, status = %s,
                    updated_at = COALESCE(%s, now())
                WHERE id = %s
                RETURNING {ORDER_COLUMNS};
                """,
                (order.name, order.phone, order.village, order.total_bill,
                 order.status.value, order.updated_at, order.order_id)
            )
            row = cursor.fetchone()
            if row is None:
                return None
            cursor.execute("DELETE FROM order_products WHERE order_id = %s;", (order.order_id,))
            self._insert_lines(cursor, order.order_id, order.products)

        return _row_to_order(row, list(order.products))

    def update_order_status(self, order_id: str, status: OrderStatus, updated_at: datetime) -> bool:
        if not is_valid_order_id(order_id):
            return False
        with self._transaction("update order status") as cursor:
            cursor.execute(
                "UPDATE orders SET status = %s, updated_at = %s WHERE id = %s RETURNING id;",
                (status.value, updated_at, order_id)
            )
            return cursor.fetchone() is not None

    def delete_order(self, order_id: str) -> bool:
        """
        Elimina primero las líneas (llave foránea) y luego la orden, en una transacción.
        """
        if not is_valid_order_id(order_id):
            return False
        with self._transaction("delete order") as cursor:
            cursor.execute("DELETE FROM order_products WHERE order_id = %s;", (order_id,))
            cursor.execute("DELETE FROM orders WHERE id = %s RETURNING id;", (order_id,))
            return cursor.fetchone() is not None
