from __future__ import annotations

import csv
import io
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from kitchen.core.database import get_db
from kitchen.deps import get_current_principal
from kitchen.domain.store import SqlOrderStore
from kitchen.services import reports
from kitchen.services.calendar import parse_day, today

router = APIRouter(prefix="/api/reports", tags=["reports"], dependencies=[Depends(get_current_principal)])


@router.get("/weekly-summary")
def weekly_summary(date: Optional[str] = Query(default=None), db: Session = Depends(get_db)):
    return reports.weekly_summary(SqlOrderStore(db), parse_day(date))


@router.get("/shopping-list")
def shopping_list(
    date: Optional[str] = Query(default=None),
    group_by: str = Query(default="category", alias="groupBy"),
    db: Session = Depends(get_db),
):
    return reports.shopping_list(SqlOrderStore(db), parse_day(date), group_by)


@router.get("/analytics")
def analytics(period: str = Query(default="month"), db: Session = Depends(get_db)):
    return reports.analytics(SqlOrderStore(db), period, today())


@router.get("/analytics/export")
def export_analytics(period: str = Query(default="month"), db: Session = Depends(get_db)):
    report = reports.analytics(SqlOrderStore(db), period, today())
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerows(reports.analytics_csv_rows(report))
    buffer.seek(0)
    filename = f"analytics_{report['period']}_{report['startDate']}.csv"
    return StreamingResponse(
        iter([buffer.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
