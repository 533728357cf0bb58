from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from kitchen.core.database import get_db
from kitchen.deps import get_current_principal
from kitchen.domain.store import SqlOrderStore
from kitchen.services import reports
from kitchen.services.calendar import today
from kitchen.services.catalog import low_stock_count
from kitchen.services.orders import recent_orders

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"], dependencies=[Depends(get_current_principal)])


@router.get("")
def dashboard(db: Session = Depends(get_db)):
    return reports.dashboard(
        SqlOrderStore(db),
        today(),
        recent_orders=recent_orders(db, limit=5),
        low_stock_count=low_stock_count(db),
    )
