"""In-memory application wiring shared by the route and service tests."""
from __future__ import annotations

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from kitchen.core.database import Database, build_engine
from kitchen.deps import Principal, get_current_principal
from kitchen.main import create_app
from kitchen.models.customer import Customer
from kitchen.models.dish import Dish, DishIngredient
from kitchen.models.ingredient import Ingredient
from tests.fixtures_data import DISH_ROWS, INGREDIENT_ROWS

TEST_PRINCIPAL = Principal(uid="cook-1", email="cook@example.com")


def build_database() -> Database:
    engine = build_engine("sqlite+pysqlite:///:memory:", poolclass=StaticPool)
    database = Database("sqlite+pysqlite:///:memory:", engine=engine)
    database.create_all()
    return database


def seed_catalog(db: Session) -> None:
    for row in INGREDIENT_ROWS:
        db.add(Ingredient(**row))
    for row in DISH_ROWS:
        db.add(
            Dish(
                id=row["id"],
                name=row["name"],
                price=row["price"],
                category=row["category"],
                is_available=True,
                ingredients=[
                    DishIngredient(ingredient_id=ingredient_id, quantity=quantity)
                    for ingredient_id, quantity in row["lines"]
                ],
            )
        )
    db.add(Customer(id=1, name="Dana Cohen", phone="050-1234567", address="12 Herzl St"))
    db.add(Customer(id=2, name="Yossi Mizrahi", phone="052-7654321", address="4 Hagefen St"))
    db.commit()


def build_client(*, seed: bool = True, authenticated: bool = True) -> tuple[TestClient, Database]:
    database = build_database()
    if seed:
        with database.session() as db:
            seed_catalog(db)

    app = create_app(database)
    if authenticated:
        app.dependency_overrides[get_current_principal] = lambda: TEST_PRINCIPAL
    return TestClient(app), database
