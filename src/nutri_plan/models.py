"""Shared data models for the nutrition planner."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

PLAN_DAYS = 7

DAY_NAMES = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]


class MealType(Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


# Meals every day is expected to have; snacks are optional extras.
REQUIRED_MEALS = (MealType.BREAKFAST, MealType.LUNCH, MealType.DINNER)


@dataclass
class NutrientAmount:
    nutrient_id: int
    name: str
    unit_name: str
    amount: float


@dataclass
class FoodDetails:
    """A food-composition entry. Nutrient amounts are per 100 g."""

    fdc_id: int
    description: str
    food_nutrients: list[NutrientAmount] = field(default_factory=list)
    data_type: str | None = None
    brand_owner: str | None = None
    serving_size: float | None = None
    serving_size_unit: str | None = None
    last_fetched: str | None = None


@dataclass
class Ingredient:
    id: str
    fdc_id: int
    description: str
    grams: float


@dataclass
class Recipe:
    id: str
    name: str
    tags: list[MealType] = field(default_factory=list)
    ingredients: list[Ingredient] = field(default_factory=list)
    notes: str | None = None

    def has_tag(self, tag: MealType) -> bool:
        return tag in self.tags


@dataclass
class DayPlan:
    breakfast_recipe_id: str | None = None
    lunch_recipe_id: str | None = None
    dinner_recipe_id: str | None = None
    snack_recipe_ids: list[str] = field(default_factory=list)

    def meal_id(self, meal_type: MealType) -> str | None:
        """Return the recipe id for a required meal, or None when unset."""
        if meal_type == MealType.BREAKFAST:
            return self.breakfast_recipe_id or None
        if meal_type == MealType.LUNCH:
            return self.lunch_recipe_id or None
        if meal_type == MealType.DINNER:
            return self.dinner_recipe_id or None
        raise ValueError(f"'{meal_type.value}' is not a single-recipe meal")

    def recipe_ids(self) -> list[str]:
        """All set recipe ids: breakfast, lunch, dinner, then snacks."""
        ids = [
            self.breakfast_recipe_id,
            self.lunch_recipe_id,
            self.dinner_recipe_id,
            *self.snack_recipe_ids,
        ]
        return [i for i in ids if i]


@dataclass
class WeekPlan:
    id: str
    name: str
    start_date: str  # display only
    days: list[DayPlan] = field(default_factory=list)


@dataclass
class IngredientDemand:
    fdc_id: int
    description: str
    total_grams: float
    recipe_ids: list[str] = field(default_factory=list)


@dataclass
class PrepTask:
    id: str
    title: str
    detail: str | None = None
    used_by: list[str] | None = None


@dataclass
class MissingMeals:
    day_index: int
    missing: list[MealType]


@dataclass
class PlanCompleteness:
    days: int
    total_meal_slots: int
    filled_meal_slots: int
    missing_meal_slots: int
    missing_by_day: list[MissingMeals] = field(default_factory=list)


@dataclass
class MacroSnapshot:
    """Headline macros. None means no data, which differs from zero."""

    calories: float | None = None
    protein: float | None = None
    carbs: float | None = None
    fat: float | None = None
    fiber: float | None = None


@dataclass
class SlotBundleRequest:
    breakfasts: int
    lunches: int
    dinners: int
    include_snacks: bool = False


@dataclass
class BundleCounts:
    breakfasts: int
    lunches: int
    dinners: int
    snack_days: int


@dataclass
class NutrientTarget:
    nutrient_id: int
    name: str
    unit_name: str
    daily: float
    weekly_override: float | None = None


@dataclass
class PersonProfile:
    id: str
    name: str
    sex: str = "female"
    date_of_birth: str | None = None
    height_in: float | None = None
    current_weight_lb: float | None = None
    target_weight_lb: float | None = None
    activity_level: str | None = None
    notes: str | None = None
    nutrient_targets: dict[int, NutrientTarget] = field(default_factory=dict)


def new_id() -> str:
    return str(uuid.uuid4())


def today_iso() -> str:
    return date.today().isoformat()


def empty_week(name: str = "This Week") -> WeekPlan:
    """A plan with all seven days present and every slot unset."""
    return WeekPlan(
        id=new_id(),
        name=name,
        start_date=today_iso(),
        days=[DayPlan() for _ in range(PLAN_DAYS)],
    )
