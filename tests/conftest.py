import copy
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from order_desk.domain.entities import CustomerDetails, Order, OrderStatus, ProductSelection
from order_desk.domain.errors import StoreError
from order_desk.domain.interfaces import OrderRepository


class InMemoryOrderRepository(OrderRepository):
    """Repositorio en memoria para probar los casos de uso sin base de datos."""

    def __init__(self):
        self.orders = {}
        self.fail_on = set()

    def _check(self, operation):
        if operation in self.fail_on:
            raise StoreError(f"Simulated store error during {operation}.")

    def insert_order(self, order):
        self._check("insert_order")
        stored = copy.deepcopy(order)
        stored.order_id = str(uuid.uuid4())
        self.orders[stored.order_id] = stored
        return copy.deepcopy(stored)

    def get_order(self, order_id):
        self._check("get_order")
        order = self.orders.get(order_id)
        return copy.deepcopy(order) if order else None

    def list_orders(self):
        self._check("list_orders")
        orders = sorted(self.orders.values(), key=lambda o: o.created_at, reverse=True)
        return [copy.deepcopy(o) for o in orders]

    def update_order(self, order):
        self._check("update_order")
        if order.order_id not in self.orders:
            return None
        self.orders[order.order_id] = copy.deepcopy(order)
        return copy.deepcopy(order)

    def update_order_status(self, order_id, status, updated_at):
        self._check("update_order_status")
        order = self.orders.get(order_id)
        if order is None:
            return False
        order.status = status
        order.updated_at = updated_at
        return True

    def delete_order(self, order_id):
        self._check("delete_order")
        return self.orders.pop(order_id, None) is not None


class SteppingClock:
    """Reloj determinista: cada llamada avanza un minuto."""

    def __init__(self, start=datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self):
        value = self.current
        self.current = self.current + timedelta(minutes=1)
        return value


@pytest.fixture
def repository():
    return InMemoryOrderRepository()


@pytest.fixture
def clock():
    return SteppingClock()


@pytest.fixture
def customer():
    return CustomerDetails(name="Asha", phone="9000000000", village="Cherupally")


def make_selection(product_id="rice", price="50", quantity="2", name=None, received=None):
    return ProductSelection(
        product_id=product_id,
        name=name or product_id.title(),
        price=Decimal(price),
        quantity=Decimal(quantity),
        received_quantity=Decimal(received) if received is not None else None,
    )


def make_order(order_id="0b5b2c3e-1f4a-4c7d-9a51-3c1d2e4f5a6b", name="Asha", phone="9000000000",
               village="Cherupally", status=None, total="100.00", products=None,
               created_at=datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)):
    return Order(
        order_id=order_id,
        name=name,
        phone=phone,
        village=village,
        products=products if products is not None else [make_selection()],
        total_bill=Decimal(total),
        status=status or OrderStatus.PENDING,
        created_at=created_at,
        updated_at=created_at,
    )
