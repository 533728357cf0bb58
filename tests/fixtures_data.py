"""Reusable payloads for backend test scenarios."""

CUSTOMER_PAYLOAD = {
    "name": "Dana Cohen",
    "phone": "050-1234567",
    "email": "dana@example.com",
    "address": "12 Herzl St",
    "notes": "Ring twice",
    "preferences": [
        {"type": "allergy", "value": "sesame", "notes": "severe"},
        {"type": "DIETARY_RESTRICTION", "value": "vegetarian"},
    ],
}

SECOND_CUSTOMER_PAYLOAD = {
    "name": "Yossi Mizrahi",
    "phone": "052-7654321",
    "address": "4 Hagefen St",
}

INGREDIENT_ROWS = [
    {"id": 1, "name": "Ingredient Y", "unit": "kg", "current_stock": 0.5, "min_stock": 1, "cost_per_unit": 10, "supplier": "Market", "category": "vegetables"},
    {"id": 2, "name": "Rice", "unit": "kg", "current_stock": 15, "min_stock": 10, "cost_per_unit": 8, "supplier": None, "category": "grains"},
    {"id": 3, "name": "Saffron", "unit": "gram", "current_stock": None, "min_stock": None, "cost_per_unit": None, "supplier": "Spice Co", "category": "exotic"},
]

DISH_ROWS = [
    {"id": 1, "name": "Dish X", "price": 30, "category": "main", "lines": [(1, 0.3)]},
    {"id": 2, "name": "Dish B", "price": 10, "category": "side", "lines": [(2, 0.2), (3, 1)]},
    {"id": 3, "name": "Dish A", "price": 25, "category": "main", "lines": [(2, 0.5)]},
]

ORDER_PAYLOAD = {
    "customerId": 1,
    "deliveryDate": "2024-11-15",
    "notes": "Leave at the door",
    "items": [
        {"dishId": 3, "quantity": 1, "price": 25},
        {"dishId": 1, "quantity": 2, "price": 30},
    ],
}

DISH_PAYLOAD = {
    "name": "Lentil soup",
    "description": "Red lentils with cumin",
    "price": 28,
    "category": "Main",
    "ingredients": [{"ingredientId": 2, "quantity": 0.25}],
}

INGREDIENT_PAYLOAD = {
    "name": "Lentils",
    "unit": "kg",
    "currentStock": 4,
    "minStock": 5,
    "costPerUnit": 12.5,
    "supplier": "Market",
    "category": "Grains",
}
