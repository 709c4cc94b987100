# inventory_api/models/products.py

from sqlalchemy import Column, Integer, String, UniqueConstraint

from inventory_api.database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    plu = Column(String(11), nullable=False)
    name = Column(String, nullable=False)

    __table_args__ = (
        UniqueConstraint("plu", name="uq_products_plu"),
    )
