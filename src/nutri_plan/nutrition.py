"""Nutrient aggregation over foods, recipes, days, and whole plans.

Every food-composition amount is per 100 g, so an ingredient contributes
``amount * grams / 100``. Totals are folded with ``add_totals``, which is
commutative and associative; fold order never changes a result.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from nutri_plan.models import (
    FoodDetails,
    MacroSnapshot,
    NutrientAmount,
    NutrientTarget,
    Recipe,
    WeekPlan,
)

logger = logging.getLogger(__name__)

NutrientTotals = dict[int, NutrientAmount]

# FoodData Central nutrient ids
ENERGY_KCAL = 1008
PROTEIN = 1003
CARBOHYDRATE = 1005
TOTAL_FAT = 1004
FIBER = 1079


def _is_finite(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def scale_food(food: FoodDetails, grams: float) -> NutrientTotals:
    """Scale a food's per-100 g nutrients to ``grams``.

    Non-finite amounts are skipped. A nutrient listed twice is summed.
    """
    if not _is_finite(grams):
        return {}
    factor = grams / 100
    out: NutrientTotals = {}
    for n in food.food_nutrients:
        if not _is_finite(n.amount):
            continue
        existing = out.get(n.nutrient_id)
        out[n.nutrient_id] = NutrientAmount(
            nutrient_id=n.nutrient_id,
            name=n.name,
            unit_name=n.unit_name,
            amount=(existing.amount if existing else 0.0) + n.amount * factor,
        )
    return out


def add_totals(a: NutrientTotals, b: NutrientTotals) -> NutrientTotals:
    """Union of two totals, summing amounts for shared nutrient ids."""
    out: NutrientTotals = {
        k: NutrientAmount(v.nutrient_id, v.name, v.unit_name, v.amount) for k, v in a.items()
    }
    for k, v in b.items():
        existing = out.get(k)
        if existing:
            existing.amount += v.amount
        else:
            out[k] = NutrientAmount(v.nutrient_id, v.name, v.unit_name, v.amount)
    return out


def recipe_totals(recipe: Recipe, food_cache: dict[int, FoodDetails]) -> NutrientTotals:
    """Sum every ingredient's scaled nutrients; uncached foods contribute nothing."""
    totals: NutrientTotals = {}
    for ing in recipe.ingredients:
        food = food_cache.get(ing.fdc_id)
        if food is None:
            logger.debug("No cached food %s for recipe '%s'", ing.fdc_id, recipe.name)
            continue
        totals = add_totals(totals, scale_food(food, ing.grams))
    return totals


def day_totals(
    day_index: int,
    plan: WeekPlan,
    recipes_by_id: dict[str, Recipe],
    food_cache: dict[int, FoodDetails],
) -> NutrientTotals:
    if day_index < 0 or day_index >= len(plan.days):
        return {}
    totals: NutrientTotals = {}
    for recipe_id in plan.days[day_index].recipe_ids():
        recipe = recipes_by_id.get(recipe_id)
        if recipe is None:
            logger.debug("Day %d references unknown recipe %s", day_index, recipe_id)
            continue
        totals = add_totals(totals, recipe_totals(recipe, food_cache))
    return totals


def week_totals(
    plan: WeekPlan,
    recipes_by_id: dict[str, Recipe],
    food_cache: dict[int, FoodDetails],
) -> NutrientTotals:
    totals: NutrientTotals = {}
    for d in range(len(plan.days)):
        totals = add_totals(totals, day_totals(d, plan, recipes_by_id, food_cache))
    return totals


def pick_macro_snapshot(totals: NutrientTotals) -> MacroSnapshot:
    def amount(nutrient_id: int) -> float | None:
        n = totals.get(nutrient_id)
        return n.amount if n else None

    return MacroSnapshot(
        calories=amount(ENERGY_KCAL),
        protein=amount(PROTEIN),
        carbs=amount(CARBOHYDRATE),
        fat=amount(TOTAL_FAT),
        fiber=amount(FIBER),
    )


@dataclass
class TargetRow:
    nutrient_id: int
    name: str
    unit_name: str
    actual: float
    target: float
    ratio: float


def compare_to_targets(
    totals: NutrientTotals,
    targets: dict[int, NutrientTarget],
    mode: str = "day",
) -> list[TargetRow]:
    """Compare totals against a person's targets for a day or a whole week.

    Week mode uses ``weekly_override`` when set, else seven times the daily
    target. A nutrient absent from the totals counts as zero here.
    """
    if mode not in ("day", "week"):
        raise ValueError(f"Unknown comparison mode '{mode}'. Valid: day, week")

    rows = []
    for t in sorted(targets.values(), key=lambda t: t.name.lower()):
        n = totals.get(t.nutrient_id)
        actual = n.amount if n else 0.0
        if mode == "week":
            target = t.weekly_override if t.weekly_override is not None else t.daily * 7
        else:
            target = t.daily
        ratio = actual / target if target > 0 else 0.0
        rows.append(
            TargetRow(
                nutrient_id=t.nutrient_id,
                name=t.name,
                unit_name=t.unit_name,
                actual=actual,
                target=target,
                ratio=ratio,
            )
        )
    return rows


def summarize_targets(rows: list[TargetRow]) -> tuple[int, int]:
    """Return (under, over) counts."""
    under = sum(1 for r in rows if r.actual < r.target)
    over = sum(1 for r in rows if r.actual > r.target)
    return under, over


def format_totals_markdown(
    totals: NutrientTotals,
    title: str,
    rows: list[TargetRow] | None = None,
) -> str:
    """Format totals as a markdown table, with an optional target comparison."""
    macros = pick_macro_snapshot(totals)
    lines = [f"# {title}", ""]

    def fmt(value: float | None, unit: str) -> str:
        return f"{value:.0f} {unit}" if value is not None else "n/a"

    lines.append(
        f"**Calories:** {fmt(macros.calories, 'kcal')} | "
        f"**Protein:** {fmt(macros.protein, 'g')} | "
        f"**Carbs:** {fmt(macros.carbs, 'g')} | "
        f"**Fat:** {fmt(macros.fat, 'g')} | "
        f"**Fiber:** {fmt(macros.fiber, 'g')}"
    )
    lines.append("")

    if totals:
        lines.append("| Nutrient | Amount | Unit |")
        lines.append("|----------|--------|------|")
        for n in sorted(totals.values(), key=lambda n: n.name.lower()):
            lines.append(f"| {n.name} | {n.amount:.1f} | {n.unit_name} |")
        lines.append("")
    else:
        lines.append("No nutrient data for this selection.")
        lines.append("")

    if rows:
        under, over = summarize_targets(rows)
        lines.append(f"## Targets ({under} under, {over} over)")
        lines.append("")
        lines.append("| Nutrient | Actual | Target | % |")
        lines.append("|----------|--------|--------|---|")
        for r in rows:
            lines.append(
                f"| {r.name} | {r.actual:.1f} {r.unit_name} "
                f"| {r.target:.1f} {r.unit_name} | {r.ratio * 100:.0f}% |"
            )
        lines.append("")

    return "\n".join(lines)
