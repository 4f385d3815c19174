"""Plan derivation: recipe usage, ingredient demand, and slot completeness."""

from __future__ import annotations

import json
import logging
import math
from collections import Counter

from nutri_plan.models import (
    DAY_NAMES,
    REQUIRED_MEALS,
    IngredientDemand,
    MissingMeals,
    PlanCompleteness,
    Recipe,
    WeekPlan,
)

logger = logging.getLogger(__name__)


def index_recipes(recipes: list[Recipe]) -> dict[str, Recipe]:
    """Map recipe id -> recipe. A later duplicate id replaces an earlier one."""
    return {r.id: r for r in recipes}


def recipe_use_counts(plan: WeekPlan) -> dict[str, int]:
    """How many times each recipe id appears across all meal and snack slots."""
    counts: Counter[str] = Counter()
    for day in plan.days:
        counts.update(day.recipe_ids())
    return dict(counts)


def compute_ingredient_demand(
    plan: WeekPlan,
    recipes_by_id: dict[str, Recipe],
) -> dict[int, IngredientDemand]:
    """Total grams of each food needed for the plan, keyed by food id.

    Each recipe's per-use grams are multiplied by its use count. The first
    description seen for a food is kept.
    """
    out: dict[int, IngredientDemand] = {}

    for recipe_id, count in recipe_use_counts(plan).items():
        recipe = recipes_by_id.get(recipe_id)
        if recipe is None:
            logger.debug("Skipping unknown recipe %s in demand", recipe_id)
            continue

        for ing in recipe.ingredients:
            if not math.isfinite(ing.grams):
                continue
            grams = ing.grams * count
            existing = out.get(ing.fdc_id)
            if existing is None:
                out[ing.fdc_id] = IngredientDemand(
                    fdc_id=ing.fdc_id,
                    description=ing.description,
                    total_grams=grams,
                    recipe_ids=[recipe_id],
                )
            else:
                existing.total_grams += grams
                if recipe_id not in existing.recipe_ids:
                    existing.recipe_ids.append(recipe_id)

    return out


def plan_completeness(plan: WeekPlan) -> PlanCompleteness:
    """Count filled breakfast/lunch/dinner slots. Snacks are never required."""
    days = len(plan.days)
    total = days * len(REQUIRED_MEALS)

    filled = 0
    missing_by_day: list[MissingMeals] = []
    for i, day in enumerate(plan.days):
        missing = []
        for meal in REQUIRED_MEALS:
            if day.meal_id(meal):
                filled += 1
            else:
                missing.append(meal)
        if missing:
            missing_by_day.append(MissingMeals(day_index=i, missing=missing))

    return PlanCompleteness(
        days=days,
        total_meal_slots=total,
        filled_meal_slots=filled,
        missing_meal_slots=total - filled,
        missing_by_day=missing_by_day,
    )


def format_demand_markdown(
    demand: dict[int, IngredientDemand],
    recipes_by_id: dict[str, Recipe],
) -> str:
    """Format ingredient demand as a markdown shopping checklist."""
    lines = ["# Ingredient Demand", ""]
    for d in sorted(demand.values(), key=lambda d: d.description.lower()):
        names = [recipes_by_id[r].name for r in d.recipe_ids if r in recipes_by_id]
        used_in = f" ({', '.join(names)})" if names else ""
        lines.append(f"- [ ] {d.total_grams:.0f} g {d.description}{used_in}")
    lines.append("")
    return "\n".join(lines)


def format_demand_json(demand: dict[int, IngredientDemand]) -> str:
    data = {
        str(d.fdc_id): {
            "fdc_id": d.fdc_id,
            "description": d.description,
            "total_grams": round(d.total_grams, 1),
            "recipe_ids": d.recipe_ids,
        }
        for d in demand.values()
    }
    return json.dumps(data, indent=2)


def format_completeness_markdown(c: PlanCompleteness) -> str:
    lines = [
        "# Plan Completeness",
        "",
        f"- Meal slots filled: {c.filled_meal_slots}/{c.total_meal_slots}",
        f"- Missing: {c.missing_meal_slots}",
        "",
    ]
    for m in c.missing_by_day:
        day_name = DAY_NAMES[m.day_index] if m.day_index < len(DAY_NAMES) else f"Day {m.day_index + 1}"
        lines.append(f"- {day_name}: {', '.join(meal.value for meal in m.missing)}")
    if c.missing_by_day:
        lines.append("")
    return "\n".join(lines)


def format_completeness_json(c: PlanCompleteness) -> str:
    data = {
        "days": c.days,
        "total_meal_slots": c.total_meal_slots,
        "filled_meal_slots": c.filled_meal_slots,
        "missing_meal_slots": c.missing_meal_slots,
        "missing_by_day": [
            {"day_index": m.day_index, "missing": [meal.value for meal in m.missing]}
            for m in c.missing_by_day
        ],
    }
    return json.dumps(data, indent=2)
