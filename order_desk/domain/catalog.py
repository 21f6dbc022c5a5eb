# order_desk/domain/catalog.py
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional

from .entities import ProductSelection


@dataclass(frozen=True)
class CatalogProduct:
    """Producto fijo que ofrece la tienda."""
    product_id: str
    name: str
    unit_price: Decimal


PRODUCT_CATALOG = (
    CatalogProduct("rice", "Rice", Decimal("50.00")),
    CatalogProduct("wheat", "Wheat", Decimal("40.00")),
    CatalogProduct("oil", "Cooking Oil", Decimal("150.00")),
    CatalogProduct("sugar", "Sugar", Decimal("45.00")),
    CatalogProduct("dal", "Dal (Lentils)", Decimal("120.00")),
    CatalogProduct("flour", "Wheat Flour", Decimal("38.00")),
    CatalogProduct("salt", "Salt", Decimal("20.00")),
    CatalogProduct("tea", "Tea", Decimal("300.00")),
)

_CATALOG_BY_ID: Dict[str, CatalogProduct] = {p.product_id: p for p in PRODUCT_CATALOG}


def get_catalog_product(product_id: str) -> Optional[CatalogProduct]:
    return _CATALOG_BY_ID.get(product_id)


def build_selection(product_id: str, quantity: Decimal, received_quantity: Optional[Decimal] = None,
                    name: Optional[str] = None, price: Optional[Decimal] = None) -> Optional[ProductSelection]:
    """
    Arma una línea de pedido completando nombre y precio desde el catálogo.
    Un producto fuera del catálogo solo se acepta con precio; si no, retorna None.
    """
    product = get_catalog_product(product_id)
    if price is None:
        if product is None:
            return None
        price = product.unit_price
    return ProductSelection(
        product_id=product_id,
        name=name or (product.name if product else product_id),
        price=price,
        quantity=quantity,
        received_quantity=received_quantity,
    )
