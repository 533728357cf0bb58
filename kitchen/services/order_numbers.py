from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from kitchen.models.order import OrderCounter

logger = logging.getLogger(__name__)

ORDER_NUMBER_PREFIX = "ORD"


def format_order_number(year: int, sequence: int) -> str:
    return f"{ORDER_NUMBER_PREFIX}-{year}-{sequence:04d}"


def _increment(db: Session, year: int) -> int | None:
    stmt = (
        update(OrderCounter)
        .where(OrderCounter.year == year)
        .values(count=OrderCounter.count + 1)
        .returning(OrderCounter.count)
        .execution_options(synchronize_session=False)
    )
    return db.execute(stmt).scalar_one_or_none()


def next_sequence(db: Session, year: int) -> int:
    """Atomically bump the per-year counter and return the new value.

    Runs inside the caller's transaction; the row stays locked until it commits,
    so concurrent callers serialize on it.
    """
    sequence = _increment(db, year)
    if sequence is not None:
        return sequence

    try:
        with db.begin_nested():
            db.add(OrderCounter(year=year, count=1))
        return 1
    except IntegrityError:
        # another transaction created the row first
        logger.info("order counter row created concurrently year=%s", year)

    sequence = _increment(db, year)
    if sequence is None:
        raise RuntimeError(f"order counter for {year} could not be allocated")
    return sequence


def allocate_order_number(db: Session, now: datetime | None = None) -> str:
    current = now or datetime.now(timezone.utc)
    sequence = next_sequence(db, current.year)
    number = format_order_number(current.year, sequence)
    logger.info("allocated order number number=%s", number)
    return number
