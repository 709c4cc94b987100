# =========================================================
# STOCK LEDGER
# Authoritative owner of stock mutations and of the product
# lifecycle that depends on them.
#
# - Every write commits (or rolls back) before returning
# - Audit records are sent only after a successful commit
# - Decreasing a stock to (0, 0) deletes its product; the
#   stock row itself is kept
# =========================================================

import json
import logging
import random

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from inventory_api.core.config import Settings
from inventory_api.core.errors import (
    InventoryError,
    NotFoundError,
    PersistenceError,
    PluExhaustedError,
    ValidationError,
)
from inventory_api.core.logging import LOGGER_NAME
from inventory_api.models.products import Product
from inventory_api.models.stocks import Stock
from inventory_api.models.stores import Store
from inventory_api.schemas.product import ProductFilters
from inventory_api.schemas.stock import StockAction, StockFilters, StockWithProduct
from inventory_api.services.audit import AuditNotifier
from inventory_api.services.filters import (
    active_filters,
    product_predicates,
    stock_predicates,
)
from inventory_api.services.plu import DEFAULT_MAX_ATTEMPTS, generate_plu, plu_exists

INVALID_ACTION_MESSAGE = "Invalid action. Use 'remove' or 'order'."


def parse_action(action) -> StockAction:
    try:
        return StockAction(action)
    except ValueError:
        raise ValidationError(INVALID_ACTION_MESSAGE) from None


def _as_dict(entity, *fields) -> dict:
    return {field: getattr(entity, field) for field in fields}


class StockLedger:
    def __init__(
        self,
        db: Session,
        notifier: AuditNotifier,
        settings: Settings | None = None,
        logger: logging.Logger | None = None,
        rng: random.Random | None = None,
    ):
        self.db = db
        self.notifier = notifier
        self.logger = logger or logging.getLogger(LOGGER_NAME)
        self.rng = rng
        self.max_attempts = (
            settings.PLU_MAX_ATTEMPTS if settings is not None else DEFAULT_MAX_ATTEMPTS
        )

    # =========================================================
    # PRODUCTS & STORES
    # =========================================================

    def create_product(self, name: str) -> Product:
        for _ in range(self.max_attempts):
            try:
                plu = generate_plu(self.db, self.rng, self.max_attempts)

                product = Product(plu=plu, name=name)
                self.db.add(product)
                self.db.commit()

            except IntegrityError as e:
                self.db.rollback()

                # Another request took this PLU between our check and insert
                if plu_exists(self.db, plu):
                    self.logger.warning(f"PLU collision on insert, retrying: {plu}")
                    continue

                self.logger.error(f"Error creating product: {e}")
                raise PersistenceError("Unable to create product.") from e

            except SQLAlchemyError as e:
                self.db.rollback()
                self.logger.error(f"Error creating product: {e}")
                raise PersistenceError("Unable to create product.") from e

            self.db.refresh(product)
            self.logger.info(
                f"Created product: {_as_dict(product, 'id', 'plu', 'name')}"
            )

            self.notifier.notify(
                None,
                product.plu,
                "create_product",
                f'Product "{name}" created.',
            )
            return product

        raise PluExhaustedError(
            f"Unable to generate a unique PLU after {self.max_attempts} attempts."
        )

    def create_store(self, name: str) -> Store:
        store = Store(name=name)

        try:
            self.db.add(store)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            self.logger.error(f"Error creating store: {e}")
            raise PersistenceError("Unable to create store.") from e

        self.db.refresh(store)
        self.logger.info(f"Created store: {_as_dict(store, 'id', 'name')}")

        self.notifier.notify(store.id, None, "create_store", f'Store "{name}" created.')
        return store

    # =========================================================
    # STOCKS
    # =========================================================

    def create_stock(
        self,
        product_id: int,
        store_id: int,
        shelf_quantity: int = 0,
        order_quantity: int = 0,
    ) -> Stock:
        try:
            if self.db.get(Store, store_id) is None:
                raise NotFoundError(f"Store with ID {store_id} not found.")

            stock = Stock(
                product_id=product_id,
                store_id=store_id,
                shelf_quantity=shelf_quantity,
                order_quantity=order_quantity,
            )
            self.db.add(stock)
            self.db.flush()

            plu = self.get_plu_for_product(product_id)
            self.db.commit()

        except InventoryError as e:
            self.db.rollback()
            self.logger.error(f"Error creating stock: {e.message}")
            raise

        except SQLAlchemyError as e:
            self.db.rollback()
            self.logger.error(f"Error creating stock: {e}")
            raise PersistenceError("Unable to create stock.") from e

        self.db.refresh(stock)
        self.logger.info(f"Created stock: {self._stock_snapshot(stock)}")

        self.notifier.notify(
            store_id,
            plu,
            "create_stock",
            f"Stock created for product ID {product_id} in store ID {store_id}.",
        )
        return stock

    def increase_stock(self, stock_id: int, quantity: int) -> Stock:
        try:
            stock = self._apply_update(
                stock_id,
                {Stock.shelf_quantity: Stock.shelf_quantity + quantity},
            )
            plu = self.get_plu_for_product(stock.product_id)
            self.db.commit()

        except InventoryError as e:
            self.db.rollback()
            self.logger.error(f"Error increasing stock: {e.message}")
            raise

        except SQLAlchemyError as e:
            self.db.rollback()
            self.logger.error(f"Error increasing stock: {e}")
            raise PersistenceError("Unable to increase stock.") from e

        self.db.refresh(stock)
        self.logger.info(f"Increased stock: {self._stock_snapshot(stock)}")

        self.notifier.notify(
            stock.store_id,
            plu,
            "increase_stock",
            f"Increased stock by {quantity} for stock ID {stock_id}.",
        )
        return stock

    def decrease_stock(self, stock_id: int, quantity: int, action) -> Stock:
        action = parse_action(action)

        values = {Stock.shelf_quantity: Stock.shelf_quantity - quantity}
        if action is StockAction.ORDER:
            # Units leave the shelf and join the order backlog
            values[Stock.order_quantity] = Stock.order_quantity + quantity

        exhausted = False

        try:
            stock = self._apply_update(stock_id, values)
            plu = self.get_plu_for_product(stock.product_id)

            if stock.shelf_quantity == 0 and stock.order_quantity == 0:
                (
                    self.db.query(Product)
                    .filter(Product.id == stock.product_id)
                    .delete(synchronize_session=False)
                )
                exhausted = True

            self.db.commit()

        except InventoryError as e:
            self.db.rollback()
            self.logger.error(f"Error decreasing stock: {e.message}")
            raise

        except SQLAlchemyError as e:
            self.db.rollback()
            self.logger.error(f"Error decreasing stock: {e}")
            raise PersistenceError("Unable to decrease stock.") from e

        self.db.refresh(stock)

        self.notifier.notify(
            stock.store_id,
            plu,
            "decrease_stock",
            f'Decreased stock by {quantity} for stock ID {stock_id} with action "{action.value}".',
        )

        if exhausted:
            self.logger.info(
                f"Deleted product ID {stock.product_id} as shelf & order quantities are zero."
            )
            self.notifier.notify(
                stock.store_id,
                plu,
                "delete_product",
                f"Product ID {stock.product_id} deleted as shelf & order quantities are zero.",
            )

        self.logger.info(f"Decreased stock: {self._stock_snapshot(stock)}")
        return stock

    # =========================================================
    # QUERIES
    # =========================================================

    def get_stocks_by_filters(self, filters: StockFilters | None = None) -> list[StockWithProduct]:
        filters = filters or StockFilters()

        try:
            rows = (
                self.db.query(Stock, Product.plu, Product.name)
                .join(Product, Stock.product_id == Product.id)
                .filter(*stock_predicates(filters))
                .order_by(Stock.id)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error fetching stocks: {e}")
            raise PersistenceError("Unable to fetch stocks.") from e

        stocks = [
            StockWithProduct(**self._stock_snapshot(stock), plu=plu, name=name)
            for stock, plu, name in rows
        ]

        applied = active_filters(filters)
        description = (
            f"Fetched stocks by filters: {json.dumps(applied)}"
            if applied
            else "Fetched all stocks."
        )
        self.notifier.notify(filters.store_id, filters.plu, "get_stocks_by_filters", description)

        return stocks

    def get_products_by_filters(self, filters: ProductFilters | None = None) -> list[Product]:
        filters = filters or ProductFilters()

        try:
            products = (
                self.db.query(Product)
                .filter(*product_predicates(filters))
                .order_by(Product.id)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error fetching products: {e}")
            raise PersistenceError("Unable to fetch products.") from e

        applied = active_filters(filters)
        description = (
            f"Fetched products by filters: {json.dumps(applied)}"
            if applied
            else "Fetched all products."
        )
        self.notifier.notify(None, filters.plu, "get_products_by_filters", description)

        return products

    def get_plu_for_product(self, product_id: int) -> str:
        plu = self.db.query(Product.plu).filter(Product.id == product_id).scalar()

        if not plu:
            self.logger.error(f"PLU not found for product ID {product_id}")
            raise NotFoundError(f"PLU not found for product ID {product_id}")

        return plu

    # =========================================================
    # HELPERS
    # =========================================================

    def _apply_update(self, stock_id: int, values: dict) -> Stock:
        # Single UPDATE so concurrent changes to the same row serialize in the database
        updated = (
            self.db.query(Stock)
            .filter(Stock.id == stock_id)
            .update(values, synchronize_session=False)
        )

        if not updated:
            raise NotFoundError(f"Stock with ID {stock_id} not found.")

        return (
            self.db.query(Stock)
            .populate_existing()
            .filter(Stock.id == stock_id)
            .one()
        )

    @staticmethod
    def _stock_snapshot(stock: Stock) -> dict:
        return _as_dict(
            stock,
            "id",
            "product_id",
            "store_id",
            "shelf_quantity",
            "order_quantity",
        )
