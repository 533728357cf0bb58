import re
from datetime import datetime, timezone

from kitchen.models.order import OrderCounter
from kitchen.services import order_numbers
from kitchen.services.order_numbers import allocate_order_number, format_order_number
from tests.support import build_database


def test_format_pads_sequence_to_four_digits():
    assert format_order_number(2024, 7) == "ORD-2024-0007"
    assert format_order_number(2024, 12345) == "ORD-2024-12345"


def test_sequence_increases_within_a_year_and_resets_for_the_next():
    database = build_database()
    march = datetime(2024, 3, 1, tzinfo=timezone.utc)
    january = datetime(2025, 1, 2, tzinfo=timezone.utc)

    with database.session() as db:
        first = allocate_order_number(db, now=march)
        second = allocate_order_number(db, now=march)
        next_year = allocate_order_number(db, now=january)
        db.commit()

        assert [first, second, next_year] == ["ORD-2024-0001", "ORD-2024-0002", "ORD-2025-0001"]
        counters = {row.year: row.count for row in db.query(OrderCounter).all()}
        assert counters == {2024: 2, 2025: 1}


def test_uncommitted_allocation_is_rolled_back_with_its_transaction():
    database = build_database()
    now = datetime(2024, 5, 5, tzinfo=timezone.utc)

    with database.session() as db:
        assert allocate_order_number(db, now=now) == "ORD-2024-0001"
        db.rollback()
        assert allocate_order_number(db, now=now) == "ORD-2024-0001"
        db.commit()


def test_default_clock_uses_current_year():
    database = build_database()

    with database.session() as db:
        number = allocate_order_number(db)

    assert re.fullmatch(rf"ORD-{datetime.now(timezone.utc).year}-0001", number)


def test_counter_row_created_by_another_transaction_is_incremented(monkeypatch):
    database = build_database()
    now = datetime(2024, 6, 1, tzinfo=timezone.utc)
    with database.session() as db:
        db.add(OrderCounter(year=2024, count=1))
        db.commit()

    real_increment = order_numbers._increment
    calls = []

    def increment_missing_row_first(db, year):
        calls.append(year)
        if len(calls) == 1:
            # the row did not exist yet when this transaction first looked
            return None
        return real_increment(db, year)

    monkeypatch.setattr(order_numbers, "_increment", increment_missing_row_first)

    with database.session() as db:
        number = allocate_order_number(db, now=now)
        db.commit()

        assert number == "ORD-2024-0002"
        assert calls == [2024, 2024]
        assert db.query(OrderCounter).filter(OrderCounter.year == 2024).one().count == 2
