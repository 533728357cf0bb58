from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from kitchen.core.database import get_db
from kitchen.deps import get_current_principal
from kitchen.services.calendar import parse_day
from kitchen.services.kitchen import kitchen_board

router = APIRouter(prefix="/api/kitchen", tags=["kitchen"], dependencies=[Depends(get_current_principal)])


@router.get("")
def board(date: Optional[str] = Query(default=None), db: Session = Depends(get_db)):
    day = parse_day(date) if date else None
    return kitchen_board(db, day)
