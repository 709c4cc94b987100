# inventory_api/routers/stores.py

from fastapi import APIRouter, Depends, status

from inventory_api.core.deps import get_ledger
from inventory_api.schemas.envelope import Envelope
from inventory_api.schemas.store import StoreCreate, StoreResponse
from inventory_api.services.stock_ledger import StockLedger

router = APIRouter(
    prefix="/api/stores",
    tags=["Stores"],
)


@router.post(
    "",
    response_model=Envelope[StoreResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_store(
    store_data: StoreCreate,
    ledger: StockLedger = Depends(get_ledger),
):
    store = ledger.create_store(store_data.name)

    return Envelope(
        message="Store created successfully.",
        data=StoreResponse.model_validate(store),
    )
