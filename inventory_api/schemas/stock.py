from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class StockAction(str, Enum):
    REMOVE = "remove"
    ORDER = "order"


class StockCreate(BaseModel):
    product_id: int
    store_id: int
    shelf_quantity: int = 0
    order_quantity: int = 0


# Validated by the handler so bad input maps to a 400 with a fixed message
class QuantityChange(BaseModel):
    quantity: Any = None


class StockFilters(BaseModel):
    plu: str | None = None
    store_id: int | None = None
    shelf_quantity_min: int | None = None
    shelf_quantity_max: int | None = None
    order_quantity_min: int | None = None
    order_quantity_max: int | None = None

    # An empty query value means "no filter"; 0 is a real bound
    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class StockResponse(BaseModel):
    id: int
    product_id: int
    store_id: int
    shelf_quantity: int
    order_quantity: int

    model_config = ConfigDict(from_attributes=True)


class StockWithProduct(StockResponse):
    plu: str
    name: str
