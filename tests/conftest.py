import pytest
from nutri_plan.models import (
    DayPlan,
    FoodDetails,
    Ingredient,
    MealType,
    NutrientAmount,
    Recipe,
    WeekPlan,
)


def make_food(fdc_id: int, description: str, **amounts: float) -> FoodDetails:
    """Food with per-100 g amounts, keyed by short nutrient name."""
    ids = {
        "kcal": (1008, "Energy", "kcal"),
        "protein": (1003, "Protein", "g"),
        "fat": (1004, "Total lipid (fat)", "g"),
        "carbs": (1005, "Carbohydrate, by difference", "g"),
        "fiber": (1079, "Fiber, total dietary", "g"),
        "iron": (1089, "Iron, Fe", "mg"),
    }
    nutrients = []
    for key, amount in amounts.items():
        nid, name, unit = ids[key]
        nutrients.append(NutrientAmount(nutrient_id=nid, name=name, unit_name=unit, amount=amount))
    return FoodDetails(fdc_id=fdc_id, description=description, food_nutrients=nutrients)


def make_recipe(recipe_id: str, name: str, tags: list[MealType], *ingredients: tuple[int, str, float]) -> Recipe:
    return Recipe(
        id=recipe_id,
        name=name,
        tags=tags,
        ingredients=[
            Ingredient(id=f"{recipe_id}-{i}", fdc_id=fdc_id, description=desc, grams=grams)
            for i, (fdc_id, desc, grams) in enumerate(ingredients)
        ],
    )


def make_plan(days: list[DayPlan] | None = None) -> WeekPlan:
    days = days if days is not None else [DayPlan() for _ in range(7)]
    return WeekPlan(id="plan-1", name="Test Week", start_date="2026-10-19", days=days)


@pytest.fixture
def food_cache() -> dict[int, FoodDetails]:
    return {
        1001: make_food(1001, "Oats", kcal=380, protein=10, carbs=68, fat=6.5, fiber=10),
        1002: make_food(1002, "Milk, whole", kcal=61, protein=3.2, carbs=4.8, fat=3.3),
        1003: make_food(1003, "Chicken breast", kcal=165, protein=31, fat=3.6),
        1004: make_food(1004, "Rice, white, cooked", kcal=130, protein=2.7, carbs=28),
        1005: make_food(1005, "Spinach", kcal=23, protein=2.9, carbs=3.6, fiber=2.2, iron=2.7),
    }


@pytest.fixture
def sample_recipes() -> list[Recipe]:
    """Small catalog covering every meal tag plus an untagged recipe."""
    return [
        make_recipe("oatmeal", "Oatmeal", [MealType.BREAKFAST], (1001, "Oats", 50), (1002, "Milk, whole", 200)),
        make_recipe("overnight-oats", "Overnight Oats", [MealType.BREAKFAST], (1001, "Oats", 60)),
        make_recipe("chicken-rice", "Chicken and Rice", [MealType.LUNCH, MealType.DINNER],
                    (1003, "Chicken breast", 150), (1004, "Rice, white, cooked", 200)),
        make_recipe("spinach-salad", "Spinach Salad", [MealType.LUNCH], (1005, "Spinach", 100)),
        make_recipe("chicken-spinach", "Chicken Florentine", [MealType.DINNER],
                    (1003, "Chicken breast", 180), (1005, "Spinach", 80)),
        make_recipe("rice-pudding", "Rice Pudding", [MealType.SNACK],
                    (1004, "Rice, white, cooked", 100), (1002, "Milk, whole", 150)),
        make_recipe("plain-rice", "Plain Rice", [], (1004, "Rice, white, cooked", 150)),
    ]


@pytest.fixture
def recipes_by_id(sample_recipes) -> dict[str, Recipe]:
    return {r.id: r for r in sample_recipes}
