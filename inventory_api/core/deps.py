# inventory_api/core/deps.py

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from inventory_api.database import get_db
from inventory_api.services.stock_ledger import StockLedger


def get_ledger(
    request: Request,
    db: Session = Depends(get_db),
) -> StockLedger:
    state = request.app.state

    return StockLedger(
        db,
        state.notifier,
        settings=state.settings,
        logger=state.logger,
    )
