#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from datetime import timedelta
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from kitchen.core.config import DATABASE_URL, IS_DEV  # noqa: E402
from kitchen.core.database import Database  # noqa: E402
from kitchen.models.customer import Customer  # noqa: E402
from kitchen.schemas.catalog import DishCreate, DishIngredientIn, IngredientCreate  # noqa: E402
from kitchen.schemas.customers import CustomerCreate, PreferenceIn  # noqa: E402
from kitchen.schemas.orders import OrderCreate, OrderItemIn  # noqa: E402
from kitchen.services.calendar import friday_of, today  # noqa: E402
from kitchen.services.catalog import create_dish, create_ingredient  # noqa: E402
from kitchen.services.customers import create_customer  # noqa: E402
from kitchen.services.orders import create_order  # noqa: E402

INGREDIENTS = [
    {"name": "Chicken breast", "unit": "kg", "current_stock": 2, "min_stock": 5, "cost_per_unit": 42, "supplier": "Butcher Levi", "category": "meat"},
    {"name": "Rice", "unit": "kg", "current_stock": 10, "min_stock": 4, "cost_per_unit": 9.5, "supplier": "Wholesale Market", "category": "grains"},
    {"name": "Tomatoes", "unit": "kg", "current_stock": 3, "min_stock": 3, "cost_per_unit": 7, "supplier": "Wholesale Market", "category": "vegetables"},
    {"name": "Olive oil", "unit": "liter", "current_stock": 1.5, "min_stock": 2, "cost_per_unit": 38, "category": "oils"},
    {"name": "Tahini", "unit": "kg", "current_stock": 0.5, "min_stock": 1, "cost_per_unit": 28, "supplier": "Deli Shop", "category": "other"},
]

DISHES = [
    {"name": "Chicken with rice", "price": 58, "category": "main", "lines": [("Chicken breast", 0.3), ("Rice", 0.2), ("Olive oil", 0.02)]},
    {"name": "Shakshuka", "price": 42, "category": "main", "lines": [("Tomatoes", 0.4), ("Olive oil", 0.03)]},
    {"name": "Tahini salad", "price": 24, "category": "side", "lines": [("Tomatoes", 0.15), ("Tahini", 0.05)]},
]

CUSTOMERS = [
    {"name": "Dana Cohen", "phone": "050-1234567", "address": "12 Herzl St", "preferences": [{"type": "ALLERGY", "value": "sesame"}]},
    {"name": "Yossi Mizrahi", "phone": "052-7654321", "address": "4 Hagefen St"},
    {"name": "Noa Friedman", "phone": "054-1112233", "address": "9 Rothschild Blvd", "preferences": [{"type": "DIETARY_RESTRICTION", "value": "vegetarian"}]},
]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed demo customers, catalog and one week of orders.")
    parser.add_argument("--database-url", default=DATABASE_URL, help="SQLAlchemy URL (default: DATABASE_URL)")
    parser.add_argument("--force", action="store_true", help="Allow running outside the dev environment")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    if not IS_DEV and not args.force:
        print("Seeding is only allowed in dev. Use --force to override.")
        return 1

    database = Database(args.database_url)
    if database.is_sqlite:
        database.create_all()

    with database.session() as db:
        if db.query(Customer.id).first() is not None:
            print("Database already has customers; nothing to seed.")
            return 0

        ingredients = {}
        for data in INGREDIENTS:
            ingredient = create_ingredient(db, IngredientCreate(**data))
            ingredients[ingredient.name] = ingredient.id

        dishes = {}
        for data in DISHES:
            dish = create_dish(
                db,
                DishCreate(
                    name=data["name"],
                    price=data["price"],
                    category=data["category"],
                    ingredients=[
                        DishIngredientIn(ingredient_id=ingredients[name], quantity=quantity)
                        for name, quantity in data["lines"]
                    ],
                ),
            )
            dishes[dish.name] = dish

        customers = []
        for data in CUSTOMERS:
            preferences = [PreferenceIn(**pref) for pref in data.get("preferences", [])]
            customers.append(
                create_customer(
                    db,
                    CustomerCreate(
                        name=data["name"], phone=data["phone"], address=data["address"], preferences=preferences
                    ),
                )
            )

        friday = friday_of(today())
        created = 0
        for week in (0, 1):
            delivery_date = friday + timedelta(days=7 * week)
            for index, customer in enumerate(customers):
                picks = list(dishes.values())[index % len(dishes):] or list(dishes.values())
                items = [
                    OrderItemIn(dish_id=dish.id, quantity=1 + (index + position) % 2, price=float(dish.price))
                    for position, dish in enumerate(picks)
                ]
                create_order(
                    db,
                    OrderCreate(customer_id=customer.id, delivery_date=delivery_date, items=items),
                    user_id="seed",
                )
                created += 1

    database.dispose()
    print(f"Seeded {len(customers)} customers, {len(dishes)} dishes, {created} orders.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
