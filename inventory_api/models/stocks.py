# inventory_api/models/stocks.py

from sqlalchemy import Column, ForeignKey, Index, Integer

from inventory_api.database import Base


class Stock(Base):
    __tablename__ = "stocks"

    id = Column(Integer, primary_key=True, index=True)

    # Plain column, not a foreign key: exhausting a stock deletes its product
    # and leaves this row behind.
    product_id = Column(Integer, nullable=False, index=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True)

    # Not clamped; a decrease past zero is stored as a negative quantity.
    shelf_quantity = Column(Integer, nullable=False, default=0)
    order_quantity = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("ix_stocks_store_product", "store_id", "product_id"),
    )
