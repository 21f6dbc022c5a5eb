# order_desk/application/use_cases.py
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Dict, Any, Iterable, List, Optional, Union

from order_desk.domain.entities import (
    CustomerDetails,
    Order,
    OrderStatus,
    ProductSelection,
    parse_status_filter,
)
from order_desk.domain.errors import NotFoundError, ValidationError
from order_desk.domain.interfaces import OrderRepository
from order_desk.application.bill_calculator import calculate_bill, round_money
from order_desk.application.receipt import BusinessProfile, render_receipt
from order_desk.application.validators import (
    check_amount_limit,
    normalize_selections,
    validate_submission,
)

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class _OrderUseCase:
    """
    Base de los casos de uso del ciclo de vida del pedido.
    Depende de OrderRepository (patrón de inyección de dependencias).
    """

    def __init__(self, order_repository: OrderRepository, clock: Callable[[], datetime] = utc_now):
        self.repository = order_repository
        self.clock = clock

    def _require_order(self, order_id: str) -> Order:
        order = self.repository.get_order(order_id)
        if order is None:
            raise NotFoundError(order_id)
        return order

    @staticmethod
    def _resolve_total(products: List[ProductSelection], total_bill: Optional[Decimal]) -> Decimal:
        # Sin monto ingresado a mano, el total sale de la calculadora
        if total_bill is None:
            return check_amount_limit(calculate_bill(products).total, "total_bill")
        return round_money(check_amount_limit(total_bill, "total_bill"))

    @staticmethod
    def _reject_reopening(existing: Order, target: OrderStatus) -> None:
        if existing.status is OrderStatus.COMPLETED and target is not OrderStatus.COMPLETED:
            raise ValidationError(
                "Un pedido completado no puede volver a un estado anterior.", field="status"
            )


class CreateOrderUseCase(_OrderUseCase):
    """
    Caso de uso: Registrar un pedido enviado por el cliente (estado pending).
    """

    def execute(self, customer: CustomerDetails, selections: Iterable[ProductSelection],
                total_bill: Optional[Decimal] = None) -> Order:
        products = normalize_selections(selections)
        total = self._resolve_total(products, total_bill)
        validate_submission(customer, products, total)

        now = self.clock()
        order = Order(
            order_id=None,
            name=customer.name,
            phone=customer.phone,
            village=customer.village,
            products=products,
            total_bill=total,
            status=OrderStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        created = self.repository.insert_order(order)
        logger.info(f"Pedido {created.order_id} registrado para {customer.phone} por {created.total_bill}.")
        return created


class SaveDraftUseCase(_OrderUseCase):
    """
    Caso de uso: Guardar un pedido incompleto (estado draft).
    Crea el pedido si no tiene id; si lo tiene, lo actualiza conservando el id.
    """

    def execute(self, customer: CustomerDetails, selections: Iterable[ProductSelection],
                total_bill: Optional[Decimal] = None, order_id: Optional[str] = None) -> Order:
        products = normalize_selections(selections)
        total = self._resolve_total(products, total_bill)
        now = self.clock()

        if order_id is None:
            draft = Order(
                order_id=None,
                name=customer.name,
                phone=customer.phone,
                village=customer.village,
                products=products,
                total_bill=total,
                status=OrderStatus.DRAFT,
                created_at=now,
                updated_at=now,
            )
            saved = self.repository.insert_order(draft)
            logger.info(f"Borrador {saved.order_id} creado.")
            return saved

        existing = self._require_order(order_id)
        self._reject_reopening(existing, OrderStatus.DRAFT)
        draft = Order(
            order_id=order_id,
            name=customer.name,
            phone=customer.phone,
            village=customer.village,
            products=products,
            total_bill=total,
            status=OrderStatus.DRAFT,
            created_at=existing.created_at,
            updated_at=now,
        )
        saved = self.repository.update_order(draft)
        if saved is None:
            raise NotFoundError(order_id)
        logger.info(f"Borrador {order_id} actualizado.")
        return saved


class UpdateOrderUseCase(_OrderUseCase):
    """
    Caso de uso: Edición del administrador. Reemplaza los datos del cliente y el
    conjunto completo de productos. Solo un borrador se guarda sin validar.
    """

    def execute(self, order_id: str, customer: CustomerDetails, selections: Iterable[ProductSelection],
                status: Union[OrderStatus, str] = OrderStatus.PENDING,
                total_bill: Optional[Decimal] = None) -> Order:
        target = OrderStatus.parse(status)
        products = normalize_selections(selections)
        total = self._resolve_total(products, total_bill)

        existing = self._require_order(order_id)
        self._reject_reopening(existing, target)
        if target is not OrderStatus.DRAFT:
            validate_submission(customer, products, total)

        order = Order(
            order_id=order_id,
            name=customer.name,
            phone=customer.phone,
            village=customer.village,
            products=products,
            total_bill=total,
            status=target,
            created_at=existing.created_at,
            updated_at=self.clock(),
        )
        updated = self.repository.update_order(order)
        if updated is None:
            raise NotFoundError(order_id)
        logger.info(f"Pedido {order_id} actualizado ({existing.status.value} -> {target.value}).")
        return updated


class MarkOrderCompletedUseCase(_OrderUseCase):
    """
    Caso de uso: Marcar un pedido como completado. Solo cambia el estado y la
    fecha de actualización; repetirlo no es un error.
    """

    def execute(self, order_id: str) -> Order:
        if not self.repository.update_order_status(order_id, OrderStatus.COMPLETED, self.clock()):
            raise NotFoundError(order_id)
        logger.info(f"Pedido {order_id} marcado como completado.")
        return self._require_order(order_id)


class DeleteOrderUseCase(_OrderUseCase):
    """
    Caso de uso: Eliminar un pedido en cualquier estado (primero sus productos).
    """

    def execute(self, order_id: str) -> None:
        if not self.repository.delete_order(order_id):
            raise NotFoundError(order_id)
        logger.info(f"Pedido {order_id} eliminado.")


class GetOrderUseCase(_OrderUseCase):
    """Caso de uso: Obtener un pedido por su id."""

    def execute(self, order_id: str) -> Order:
        return self._require_order(order_id)


class ListOrdersUseCase(_OrderUseCase):
    """
    Caso de uso: Listar pedidos del panel de administración, filtrando por
    estado y por búsqueda libre (nombre, teléfono, pueblo).
    """

    def execute(self, status_filter: Optional[str] = "all", search: Optional[str] = "") -> List[Order]:
        status = parse_status_filter(status_filter)
        orders = self.repository.list_orders()

        selected = [
            order for order in orders
            if (status is None or order.status is status) and order.matches(search)
        ]
        # Más recientes primero; los pedidos sin fecha van al final
        selected.sort(
            key=lambda order: order.created_at or datetime.min.replace(tzinfo=timezone.utc),
            reverse=True,
        )
        return selected


class GetOrderStatsUseCase(_OrderUseCase):
    """Caso de uso: Totales del panel (pedidos por estado e ingresos)."""

    def execute(self) -> Dict[str, Any]:
        orders = self.repository.list_orders()
        revenue = sum((order.total_bill for order in orders), Decimal("0"))
        return {
            "total": len(orders),
            "draft": sum(1 for o in orders if o.status is OrderStatus.DRAFT),
            "pending": sum(1 for o in orders if o.status is OrderStatus.PENDING),
            "completed": sum(1 for o in orders if o.status is OrderStatus.COMPLETED),
            "total_revenue": float(round_money(revenue)),
        }


class PrintReceiptUseCase(_OrderUseCase):
    """Caso de uso: Generar el recibo imprimible de un pedido."""

    def __init__(self, order_repository: OrderRepository, business: BusinessProfile,
                 clock: Callable[[], datetime] = utc_now):
        super().__init__(order_repository, clock)
        self.business = business

    def execute(self, order_id: str) -> str:
        order = self._require_order(order_id)
        return render_receipt(order, self.business)
