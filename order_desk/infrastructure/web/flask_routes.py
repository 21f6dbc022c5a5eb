from decimal import Decimal
from flask import Blueprint, Response, jsonify, request, current_app
from typing import List, Dict, Any, Optional

from order_desk.application.use_cases import (
    CreateOrderUseCase,
    SaveDraftUseCase,
    UpdateOrderUseCase,
    MarkOrderCompletedUseCase,
    DeleteOrderUseCase,
    GetOrderUseCase,
    ListOrdersUseCase,
    GetOrderStatsUseCase,
    PrintReceiptUseCase,
)
from order_desk.application.validators import MAX_QUANTITY, parse_amount
from order_desk.domain.catalog import PRODUCT_CATALOG, build_selection
from order_desk.domain.entities import CustomerDetails, ProductSelection
from order_desk.domain.errors import ValidationError, NotFoundError, StoreError


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("El cuerpo de la petición debe ser un objeto JSON.")
    return data


def _parse_customer(data: Dict[str, Any]) -> CustomerDetails:
    return CustomerDetails(
        name=str(data.get("name") or "").strip(),
        phone=str(data.get("phone") or "").strip(),
        village=str(data.get("village") or "").strip(),
    )


def _parse_products(data: Dict[str, Any]) -> List[ProductSelection]:
    """
    Convierte la lista de productos del formulario en líneas de pedido.
    Nombre y precio se completan desde el catálogo cuando no vienen.
    """
    raw_products = data.get("products") or []
    if not isinstance(raw_products, list):
        raise ValidationError("'products' debe ser una lista.", field="products")

    selections = []
    for item in raw_products:
        if not isinstance(item, dict):
            raise ValidationError("Cada producto debe ser un objeto.", field="products")
        product_id = str(item.get("id") or item.get("product_id") or "")
        if not product_id:
            raise ValidationError("Cada producto debe tener id y cantidad.", field="products")

        price = item.get("price")
        received = item.get("received_quantity")
        selection = build_selection(
            product_id,
            parse_amount(item.get("quantity", 0), "quantity", MAX_QUANTITY),
            parse_amount(received, "received_quantity", MAX_QUANTITY) if received is not None else None,
            name=item.get("name"),
            price=parse_amount(price, "price") if price is not None else None,
        )
        if selection is None:
            raise ValidationError(f"Producto desconocido: '{product_id}'.", field="products")
        selections.append(selection)
    return selections


def _parse_total(data: Dict[str, Any]) -> Optional[Decimal]:
    # Monto ingresado a mano; si no viene, lo calcula el caso de uso
    total = data.get("total_bill")
    if total is None or total == "":
        return None
    return parse_amount(total, "total_bill")


def create_api_blueprint(
    create_case: CreateOrderUseCase,
    draft_case: SaveDraftUseCase,
    update_case: UpdateOrderUseCase,
    complete_case: MarkOrderCompletedUseCase,
    delete_case: DeleteOrderUseCase,
    get_case: GetOrderUseCase,
    list_case: ListOrdersUseCase,
    stats_case: GetOrderStatsUseCase,
    receipt_case: PrintReceiptUseCase
):
    """
    Función de fábrica para inyectar los Casos de Uso en el Blueprint.
    Crea un nuevo Blueprint en cada llamada para evitar conflictos en tests.
    """
    api_bp = Blueprint('orders_api', __name__)

    @api_bp.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        return jsonify({"error": error.message, "field": error.field}), 400

    @api_bp.errorhandler(NotFoundError)
    def handle_not_found(error: NotFoundError):
        current_app.logger.warning(f"Pedido no encontrado: {error.order_id}")
        return jsonify({
            "error": "El pedido ya no existe.",
            "order_id": error.order_id
        }), 404

    @api_bp.errorhandler(StoreError)
    def handle_store_error(error: StoreError):
        current_app.logger.error(f"Error del almacén de pedidos: {error}")
        return jsonify({"error": "No se pudo completar la operación. Intente de nuevo."}), 502

    @api_bp.route('/', methods=['GET'])
    def list_orders():
        """
        Panel de administración: pedidos filtrados por estado y búsqueda libre.
        """
        orders = list_case.execute(
            request.args.get('status', 'all'),
            request.args.get('search', '')
        )
        return jsonify({"orders": [order.to_dict() for order in orders]}), 200

    @api_bp.route('/', methods=['POST'])
    def create_order():
        data = _json_body()
        order = create_case.execute(_parse_customer(data), _parse_products(data), _parse_total(data))
        return jsonify({
            "order": order.to_dict(),
            "message": "Pedido registrado correctamente"
        }), 201

    @api_bp.route('/drafts', methods=['POST'])
    def create_draft():
        data = _json_body()
        order = draft_case.execute(_parse_customer(data), _parse_products(data), _parse_total(data))
        return jsonify({"order": order.to_dict()}), 201

    @api_bp.route('/drafts/<order_id>', methods=['PUT'])
    def save_draft(order_id):
        data = _json_body()
        order = draft_case.execute(
            _parse_customer(data), _parse_products(data), _parse_total(data), order_id=order_id
        )
        return jsonify({"order": order.to_dict()}), 200

    @api_bp.route('/stats', methods=['GET'])
    def get_stats():
        return jsonify(stats_case.execute()), 200

    @api_bp.route('/catalog', methods=['GET'])
    def get_catalog():
        return jsonify({"products": [
            {"id": p.product_id, "name": p.name, "price": float(p.unit_price)}
            for p in PRODUCT_CATALOG
        ]}), 200

    @api_bp.route('/<order_id>', methods=['GET'])
    def get_order(order_id):
        return jsonify({"order": get_case.execute(order_id).to_dict()}), 200

    @api_bp.route('/<order_id>', methods=['PUT'])
    def update_order(order_id):
        data = _json_body()
        order = update_case.execute(
            order_id,
            _parse_customer(data),
            _parse_products(data),
            data.get("status", "pending"),
            _parse_total(data)
        )
        return jsonify({"order": order.to_dict()}), 200

    @api_bp.route('/<order_id>/complete', methods=['POST'])
    def complete_order(order_id):
        order = complete_case.execute(order_id)
        return jsonify({"order": order.to_dict()}), 200

    @api_bp.route('/<order_id>', methods=['DELETE'])
    def delete_order(order_id):
        delete_case.execute(order_id)
        return jsonify({"message": "Pedido eliminado correctamente", "order_id": order_id}), 200

    @api_bp.route('/<order_id>/receipt', methods=['GET'])
    def print_receipt(order_id):
        html = receipt_case.execute(order_id)
        return Response(html, status=200, mimetype='text/html')

    return api_bp
