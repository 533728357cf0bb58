from kitchen.models.customer import Customer, CustomerPreference
from kitchen.models.ingredient import Ingredient
from kitchen.models.dish import Dish, DishIngredient
from kitchen.models.order import Order, OrderCounter, OrderHistory
from kitchen.models.order_item import OrderItem
