# inventory_api/routers/products.py

import logging

import pydantic
from fastapi import APIRouter, Depends, Query, status

from inventory_api.core.deps import get_ledger
from inventory_api.core.errors import ValidationError
from inventory_api.core.logging import LOGGER_NAME
from inventory_api.schemas.envelope import Envelope
from inventory_api.schemas.product import (
    ProductCreate,
    ProductFilters,
    ProductResponse,
)
from inventory_api.services.stock_ledger import StockLedger

router = APIRouter(
    prefix="/api/products",
    tags=["Products"],
)

logger = logging.getLogger(LOGGER_NAME)


@router.post(
    "",
    response_model=Envelope[ProductResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_product(
    product_data: ProductCreate,
    ledger: StockLedger = Depends(get_ledger),
):
    product = ledger.create_product(product_data.name)

    return Envelope(
        message="Product created successfully.",
        data=ProductResponse.model_validate(product),
    )


@router.get("", response_model=Envelope[list[ProductResponse]])
def get_products_by_filters(
    name: str | None = Query(None),
    plu: str | None = Query(None),
    ledger: StockLedger = Depends(get_ledger),
):
    try:
        filters = ProductFilters(name=name, plu=plu)
    except pydantic.ValidationError as e:
        raise ValidationError(str(e.errors()[0]["msg"])) from None

    products = ledger.get_products_by_filters(filters)
    logger.info(f"Products fetched with filters: {filters.model_dump(exclude_none=True)}")

    return Envelope(
        message="Products fetched successfully.",
        data=[ProductResponse.model_validate(product) for product in products],
    )
