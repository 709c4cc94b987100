# inventory_api/routers/stocks.py

import logging
import math

import pydantic
from fastapi import APIRouter, Depends, Query, status

from inventory_api.core.deps import get_ledger
from inventory_api.core.errors import ValidationError
from inventory_api.core.logging import LOGGER_NAME
from inventory_api.schemas.envelope import Envelope
from inventory_api.schemas.stock import (
    QuantityChange,
    StockCreate,
    StockFilters,
    StockResponse,
    StockWithProduct,
)
from inventory_api.services.stock_ledger import StockLedger, parse_action

router = APIRouter(
    prefix="/api/stocks",
    tags=["Stocks"],
)

logger = logging.getLogger(LOGGER_NAME)

INVALID_QUANTITY_MESSAGE = "Quantity must be a positive number."


def parse_quantity(value) -> int:
    # Accepts numbers and numeric strings; anything below one whole unit is rejected
    if value is None or isinstance(value, bool):
        raise ValidationError(INVALID_QUANTITY_MESSAGE)

    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(INVALID_QUANTITY_MESSAGE) from None

    if not math.isfinite(number) or number <= 0 or int(number) <= 0:
        raise ValidationError(INVALID_QUANTITY_MESSAGE)

    return int(number)


@router.post(
    "",
    response_model=Envelope[StockResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_stock(
    stock_data: StockCreate,
    ledger: StockLedger = Depends(get_ledger),
):
    stock = ledger.create_stock(
        product_id=stock_data.product_id,
        store_id=stock_data.store_id,
        shelf_quantity=stock_data.shelf_quantity,
        order_quantity=stock_data.order_quantity,
    )

    return Envelope(
        message="Stock created successfully.",
        data=StockResponse.model_validate(stock),
    )


@router.get("", response_model=Envelope[list[StockWithProduct]])
def get_stocks_by_filters(
    plu: str | None = Query(None),
    store_id: str | None = Query(None),
    shelf_quantity_min: str | None = Query(None),
    shelf_quantity_max: str | None = Query(None),
    order_quantity_min: str | None = Query(None),
    order_quantity_max: str | None = Query(None),
    ledger: StockLedger = Depends(get_ledger),
):
    try:
        filters = StockFilters(
            plu=plu,
            store_id=store_id,
            shelf_quantity_min=shelf_quantity_min,
            shelf_quantity_max=shelf_quantity_max,
            order_quantity_min=order_quantity_min,
            order_quantity_max=order_quantity_max,
        )
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        raise ValidationError(f"{first['loc'][0]}: {first['msg']}") from None

    stocks = ledger.get_stocks_by_filters(filters)
    logger.info(f"Stocks fetched with filters: {filters.model_dump(exclude_none=True)}")

    return Envelope(message="Stocks fetched successfully.", data=stocks)


@router.put("/{stock_id}/increase", response_model=Envelope[StockResponse])
def increase_stock(
    stock_id: int,
    change: QuantityChange | None = None,
    ledger: StockLedger = Depends(get_ledger),
):
    quantity = parse_quantity(change.quantity if change else None)

    stock = ledger.increase_stock(stock_id, quantity)

    return Envelope(
        message="Stock increased successfully.",
        data=StockResponse.model_validate(stock),
    )


@router.put("/{stock_id}/decrease", response_model=Envelope[StockResponse])
def decrease_stock(
    stock_id: int,
    change: QuantityChange | None = None,
    action: str | None = Query(None),
    ledger: StockLedger = Depends(get_ledger),
):
    stock_action = parse_action(action)
    quantity = parse_quantity(change.quantity if change else None)

    stock = ledger.decrease_stock(stock_id, quantity, stock_action)
    logger.info(f"Stock decreased with action {stock_action.value}: stock ID {stock_id}")

    return Envelope(
        message=f"Stock decreased successfully using action: {stock_action.value}.",
        data=StockResponse.model_validate(stock),
    )
