# inventory_api/models/stores.py

from sqlalchemy import Column, Integer, String

from inventory_api.database import Base


class Store(Base):
    __tablename__ = "stores"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
