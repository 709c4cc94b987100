# inventory_api/services/filters.py

from sqlalchemy import or_

from inventory_api.models.products import Product
from inventory_api.models.stocks import Stock
from inventory_api.schemas.product import ProductFilters
from inventory_api.schemas.stock import StockFilters


def _at_least(column, bound):
    return or_(column >= bound, column.is_(None))


def _at_most(column, bound):
    return or_(column <= bound, column.is_(None))


def stock_predicates(filters: StockFilters) -> list:
    predicates = []

    if filters.plu is not None:
        predicates.append(Product.plu == filters.plu)

    if filters.store_id is not None:
        predicates.append(Stock.store_id == filters.store_id)

    if filters.shelf_quantity_min is not None:
        predicates.append(_at_least(Stock.shelf_quantity, filters.shelf_quantity_min))

    if filters.shelf_quantity_max is not None:
        predicates.append(_at_most(Stock.shelf_quantity, filters.shelf_quantity_max))

    if filters.order_quantity_min is not None:
        predicates.append(_at_least(Stock.order_quantity, filters.order_quantity_min))

    if filters.order_quantity_max is not None:
        predicates.append(_at_most(Stock.order_quantity, filters.order_quantity_max))

    return predicates


def product_predicates(filters: ProductFilters) -> list:
    predicates = []

    if filters.name is not None:
        predicates.append(Product.name.ilike(f"%{filters.name}%"))

    if filters.plu is not None:
        predicates.append(Product.plu == filters.plu)

    return predicates


def active_filters(filters) -> dict:
    return filters.model_dump(exclude_none=True)
