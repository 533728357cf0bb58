from __future__ import annotations

from fastapi import APIRouter, Depends

from kitchen.core.metrics import request_metrics
from kitchen.deps import get_current_principal

router = APIRouter(prefix="/internal/metrics", tags=["internal-metrics"], dependencies=[Depends(get_current_principal)])


@router.get("")
def metrics():
    return {"endpoints": request_metrics.snapshot()}
