# order_desk/app.py
import atexit
import logging

from flask import Flask, jsonify
from flask_cors import CORS
from dotenv import load_dotenv

from order_desk.config import Config
from order_desk.domain.interfaces import OrderRepository
from order_desk.application.receipt import BusinessProfile
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
from order_desk.infrastructure.web.flask_routes import create_api_blueprint

# Cargar variables de entorno del archivo .env (si existe)
load_dotenv()

logger = logging.getLogger(__name__)


def build_repository() -> OrderRepository:
    """Crea el repositorio según ORDER_STORE_BACKEND."""
    if Config.ORDER_STORE_BACKEND == 'rest':
        from order_desk.infrastructure.persistence.rest_repository import RestOrderRepository
        return RestOrderRepository()

    from order_desk.infrastructure.persistence.db_connector import close_db_pool, init_db_pool
    from order_desk.infrastructure.persistence.db_initializer import initialize_database
    from order_desk.infrastructure.persistence.pg_repository import PgOrderRepository

    try:
        init_db_pool()
        atexit.register(close_db_pool)
        initialize_database()
    except ConnectionError as e:
        # El servicio arranca igual; cada petición fallará con StoreError hasta que la BD responda
        logger.error(f"Fallo al inicializar la BD. {e}")
    return PgOrderRepository()


def create_app(order_repository: OrderRepository = None):
    """Crea, configura y cablea la aplicación Flask siguiendo la Arquitectura Limpia."""
    logging.basicConfig(
        level=Config.LOG_LEVEL,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    app = Flask(__name__)
    app.config.from_object(Config)

    # --- CABLEADO DE DEPENDENCIAS (Dependency Injection - DI) ---

    # 1. Infraestructura de Persistencia
    repository = order_repository or build_repository()

    # 2. Capa de Aplicación (Use Cases)
    business = BusinessProfile(
        name=Config.BUSINESS_NAME,
        address=Config.BUSINESS_ADDRESS,
        phone=Config.BUSINESS_PHONE
    )
    api_bp = create_api_blueprint(
        create_case=CreateOrderUseCase(repository),
        draft_case=SaveDraftUseCase(repository),
        update_case=UpdateOrderUseCase(repository),
        complete_case=MarkOrderCompletedUseCase(repository),
        delete_case=DeleteOrderUseCase(repository),
        get_case=GetOrderUseCase(repository),
        list_case=ListOrdersUseCase(repository),
        stats_case=GetOrderStatsUseCase(repository),
        receipt_case=PrintReceiptUseCase(repository, business)
    )

    # Configurar CORS
    CORS(app, resources={
        r"/*": {
            "origins": "*",
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization", "X-Requested-With"]
        }
    })

    # 3. Capa de Presentación (Web)
    app.register_blueprint(api_bp, url_prefix='/orders')

    # --- Ruta de control ---
    @app.route('/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok'})

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(host='0.0.0.0', port=8080, debug=False)
