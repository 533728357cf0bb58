from __future__ import annotations

from typing import Iterable

from kitchen.core.errors import ValidationFailed
from kitchen.services.aggregation import money

GROUP_BY_OPTIONS = ("category", "supplier", "all")

CATEGORY_FALLBACK = "other"
SUPPLIER_FALLBACK = "unspecified"

CATEGORY_LABELS = {
    "vegetables": "Vegetables",
    "fruits": "Fruits",
    "meat": "Meat & Fish",
    "dairy": "Dairy",
    "grains": "Grains & Legumes",
    "spices": "Spices",
    "oils": "Oils & Sauces",
    "other": "Other",
}


def category_key(value: str | None) -> str:
    key = (value or "").strip().lower()
    return key if key in CATEGORY_LABELS else CATEGORY_FALLBACK


def supplier_key(value: str | None) -> str:
    return (value or "").strip() or SUPPLIER_FALLBACK


def _group(requirements: list[dict], key_fn, label_fn) -> list[dict]:
    groups: dict[str, dict] = {}
    for requirement in requirements:
        key = key_fn(requirement)
        group = groups.setdefault(key, {"key": key, "name": label_fn(key), "ingredients": [], "totalCost": 0.0})
        group["ingredients"].append(requirement)
        group["totalCost"] += requirement["estimatedCost"]
    for group in groups.values():
        group["totalCost"] = money(group["totalCost"])
    return sorted(groups.values(), key=lambda group: group["key"])


def group_requirements(requirements: Iterable[dict], group_by: str) -> list[dict]:
    """Re-key requirements; each ingredient lands in exactly one group."""
    requirements = list(requirements)
    if group_by == "category":
        return _group(
            requirements,
            lambda requirement: category_key(requirement.get("category")),
            lambda key: CATEGORY_LABELS[key],
        )
    if group_by == "supplier":
        return _group(
            requirements,
            lambda requirement: supplier_key(requirement.get("supplier")),
            lambda key: "Unspecified supplier" if key == SUPPLIER_FALLBACK else key,
        )
    if group_by == "all":
        return sorted(requirements, key=lambda requirement: requirement["name"].lower())
    raise ValidationFailed("Invalid groupBy", {"groupBy": group_by, "allowed": list(GROUP_BY_OPTIONS)})


def shopping_list_summary(requirements: Iterable[dict], order_count: int) -> dict:
    requirements = list(requirements)
    category_counts: dict[str, int] = {}
    supplier_counts: dict[str, int] = {}
    for requirement in requirements:
        category = category_key(requirement.get("category"))
        supplier = supplier_key(requirement.get("supplier"))
        category_counts[category] = category_counts.get(category, 0) + 1
        supplier_counts[supplier] = supplier_counts.get(supplier, 0) + 1
    return {
        "totalIngredients": len(requirements),
        "totalEstimatedCost": money(sum(requirement["estimatedCost"] for requirement in requirements)),
        "lowStockItems": sum(1 for requirement in requirements if requirement["lowStock"]),
        "totalOrders": order_count,
        "categoryCounts": category_counts,
        "supplierCounts": supplier_counts,
    }
