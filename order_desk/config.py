# order_desk/config.py
import os


class Config:
    """Clase base de configuración, con variables de entorno para el almacén de pedidos."""
    # Almacén: 'postgres' (conexión directa) o 'rest' (API de tablas alojada)
    ORDER_STORE_BACKEND = os.environ.get('ORDER_STORE_BACKEND', 'postgres').lower()

    # Configuración de la Base de Datos (PostgreSQL)
    DB_HOST = os.environ.get('DB_HOST', 'localhost')
    DB_PORT = os.environ.get('DB_PORT', '5432')
    DB_NAME = os.environ.get('DB_NAME', 'order_desk')
    DB_USER = os.environ.get('DB_USER', 'postgres')
    DB_PASSWORD = os.environ.get('DB_PASSWORD', 'postgres')
    DB_POOL_MIN = int(os.environ.get('DB_POOL_MIN', '1'))
    DB_POOL_MAX = int(os.environ.get('DB_POOL_MAX', '10'))
    # Parámetros para la inicialización de la BD
    RUN_DB_INIT_ON_STARTUP = os.environ.get('RUN_DB_INIT_ON_STARTUP', 'False').lower() == 'true'

    # API REST del servicio de tablas alojado
    STORE_URL = os.environ.get('STORE_URL', 'http://localhost:54321')
    STORE_API_KEY = os.environ.get('STORE_API_KEY', '')
    STORE_TIMEOUT = int(os.environ.get('STORE_TIMEOUT', '10'))

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()

    # Encabezado del recibo impreso
    BUSINESS_NAME = os.environ.get('BUSINESS_NAME', 'Vasavi Tent House and Decorations')
    BUSINESS_ADDRESS = os.environ.get('BUSINESS_ADDRESS', 'Cherupally Village, Dist Mulugu - 506172')
    BUSINESS_PHONE = os.environ.get('BUSINESS_PHONE', '9121154704')
