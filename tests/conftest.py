import random

import pytest
from fastapi.testclient import TestClient

from inventory_api.core.config import Settings
from inventory_api.database import build_engine, build_session_factory, create_tables
from inventory_api.main import create_app
from inventory_api.models.products import Product
from inventory_api.models.stocks import Stock
from inventory_api.models.stores import Store
from inventory_api.services.stock_ledger import StockLedger


class RecordingNotifier:
    """Stands in for the history service; keeps every record in memory."""

    def __init__(self):
        self.records = []
        self.closed = False

    def notify(self, store_id, plu, action, description):
        self.records.append(
            {
                "store_id": store_id,
                "plu": plu,
                "action": action,
                "description": description,
            }
        )

    def actions(self):
        return [record["action"] for record in self.records]

    def last(self):
        return self.records[-1]

    def shutdown(self, wait=True):
        self.closed = True


@pytest.fixture()
def settings():
    return Settings(
        _env_file=None,
        ENV="test",
        LOG_LEVEL="WARNING",
        DATABASE_URL="sqlite://",
        HISTORY_SERVICE_URL="http://history.test/api/history",
        RATE_LIMIT_ENABLED=False,
    )


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def db(settings):
    engine = build_engine(settings.DATABASE_URL)
    create_tables(engine)
    session = build_session_factory(engine)()

    yield session

    session.close()
    engine.dispose()


@pytest.fixture()
def ledger(db, notifier, settings):
    return StockLedger(db, notifier, settings=settings, rng=random.Random(1234))


@pytest.fixture()
def make_stock(db):
    """Insert a product, a store and a stock row directly, bypassing the ledger."""

    counter = {"n": 0}

    def _make(shelf_quantity=0, order_quantity=0, name="Widget", store=None):
        counter["n"] += 1
        product = Product(plu=f"A{100000000 + counter['n']}Z", name=name)
        store = store or Store(name=f"Store {counter['n']}")
        db.add_all([product, store])
        db.flush()

        stock = Stock(
            product_id=product.id,
            store_id=store.id,
            shelf_quantity=shelf_quantity,
            order_quantity=order_quantity,
        )
        db.add(stock)
        db.commit()
        return stock

    return _make


@pytest.fixture()
def client(settings, notifier):
    app = create_app(settings, notifier=notifier)

    with TestClient(app) as test_client:
        yield test_client
