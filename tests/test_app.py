import json
from unittest.mock import patch

import pytest

from order_desk.app import build_repository, create_app
from order_desk.config import Config
from order_desk.infrastructure.persistence.pg_repository import PgOrderRepository
from order_desk.infrastructure.persistence.rest_repository import RestOrderRepository
from conftest import InMemoryOrderRepository


@pytest.fixture
def client():
    app = create_app(order_repository=InMemoryOrderRepository())
    app.config['TESTING'] = True
    return app.test_client()


def test_health_check(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert json.loads(response.data) == {'status': 'ok'}


def test_order_lifecycle_over_http(client):
    created = client.post('/orders/', json={
        "name": "Asha",
        "phone": "9000000000",
        "village": "Cherupally",
        "products": [{"id": "rice", "price": 50, "quantity": 2}],
        "total_bill": 100.00,
    })
    assert created.status_code == 201
    order = json.loads(created.data)["order"]
    assert order["status"] == "pending"
    assert order["total_bill"] == 100.0
    order_id = order["id"]

    completed = client.post(f'/orders/{order_id}/complete')
    assert json.loads(completed.data)["order"]["status"] == "completed"

    pending = json.loads(client.get('/orders/?status=pending').data)["orders"]
    done = json.loads(client.get('/orders/?status=completed').data)["orders"]
    assert order_id not in [o["id"] for o in pending]
    assert order_id in [o["id"] for o in done]

    receipt = client.get(f'/orders/{order_id}/receipt')
    assert receipt.mimetype == 'text/html'
    assert b"Asha" in receipt.data

    stats = json.loads(client.get('/orders/stats').data)
    assert stats["completed"] == 1
    assert stats["total_revenue"] == 100.0

    assert client.delete(f'/orders/{order_id}').status_code == 200
    assert json.loads(client.get('/orders/').data)["orders"] == []
    assert client.delete(f'/orders/{order_id}').status_code == 404


def test_draft_total_computed_from_catalog(client):
    response = client.post('/orders/drafts', json={"products": [{"id": "oil", "quantity": 0.5}]})

    order = json.loads(response.data)["order"]
    assert order["status"] == "draft"
    assert order["total_bill"] == 75.0


def test_create_with_empty_name_persists_nothing(client):
    response = client.post('/orders/', json={
        "name": "",
        "phone": "9000000000",
        "village": "Cherupally",
        "products": [{"id": "rice", "quantity": 2}],
    })

    assert response.status_code == 400
    assert json.loads(response.data)["field"] == "name"
    assert json.loads(client.get('/orders/').data)["orders"] == []


@pytest.mark.parametrize("product, field", [
    ({"id": "rice", "quantity": "1e30"}, "quantity"),
    ({"id": "rice", "quantity": "99999999", "price": "9999999999"}, "total_bill"),
])
def test_oversized_draft_is_rejected(client, product, field):
    response = client.post('/orders/drafts', json={"products": [product]})

    assert response.status_code == 400
    assert json.loads(response.data)["field"] == field
    assert json.loads(client.get('/orders/').data)["orders"] == []


def test_build_repository_rest_backend():
    with patch.object(Config, 'ORDER_STORE_BACKEND', 'rest'):
        assert isinstance(build_repository(), RestOrderRepository)


def test_build_repository_postgres_survives_unreachable_database():
    with patch.object(Config, 'ORDER_STORE_BACKEND', 'postgres'), \
            patch('order_desk.infrastructure.persistence.db_connector.init_db_pool',
                  side_effect=ConnectionError("down")), \
            patch('order_desk.infrastructure.persistence.db_initializer.initialize_database') as init_mock:
        repository = build_repository()

    assert isinstance(repository, PgOrderRepository)
    init_mock.assert_not_called()


def test_build_repository_postgres_closes_pool_on_exit():
    from order_desk.infrastructure.persistence import db_connector

    with patch.object(Config, 'ORDER_STORE_BACKEND', 'postgres'), \
            patch('order_desk.infrastructure.persistence.db_connector.init_db_pool'), \
            patch('order_desk.infrastructure.persistence.db_initializer.initialize_database') as init_mock, \
            patch('order_desk.app.atexit.register') as register_mock:
        repository = build_repository()

    assert isinstance(repository, PgOrderRepository)
    register_mock.assert_called_once_with(db_connector.close_db_pool)
    init_mock.assert_called_once()
