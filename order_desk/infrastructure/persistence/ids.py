import uuid


def is_valid_order_id(order_id) -> bool:
    """Los ids los asigna la tabla orders (UUID); cualquier otro valor no puede existir."""
    try:
        uuid.UUID(str(order_id))
        return True
    except ValueError:
        return False
