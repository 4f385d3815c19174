"""Slot bundle generation: fill a week's meal slots from a recipe pool.

This is a randomized heuristic, not a solver. For each meal type it draws
recipes (preferring ones tagged for that meal) and places them in the first
N days of the week. Pass ``rand`` for reproducible output.
"""

from __future__ import annotations

import json
import logging
import math
import random
from collections.abc import Callable, Sequence
from typing import TypeVar

from nutri_plan.models import (
    DAY_NAMES,
    PLAN_DAYS,
    BundleCounts,
    DayPlan,
    MealType,
    Recipe,
    SlotBundleRequest,
    WeekPlan,
    new_id,
    today_iso,
)

logger = logging.getLogger(__name__)

DEFAULT_BUNDLE_NAME = "Slot Bundle"

T = TypeVar("T")


def clamp_count(n: float, low: int = 0, high: int = PLAN_DAYS) -> int:
    """Truncate toward zero and clamp; non-finite values become ``low``."""
    if isinstance(n, bool) or not isinstance(n, (int, float)) or not math.isfinite(n):
        x = low
    else:
        x = math.trunc(n)
    return max(low, min(high, x))


def snack_days_from_counts(breakfasts: float, lunches: float, dinners: float) -> int:
    """Average of the three meal counts, rounded half up, clamped to [0, 7].

    (3, 2, 3) -> 8/3 = 2.67 -> 3 snack days.
    """
    raw = (breakfasts + lunches + dinners) / 3
    if not math.isfinite(raw):
        return 0
    return clamp_count(math.floor(raw + 0.5))


def shuffle(items: Sequence[T], rand: Callable[[], float] = random.random) -> list[T]:
    """Fisher-Yates shuffle of a copy of ``items``."""
    arr = list(items)
    for i in range(len(arr) - 1, 0, -1):
        j = math.floor(rand() * (i + 1))
        arr[i], arr[j] = arr[j], arr[i]
    return arr


def pick_recipe_ids(
    recipes: list[Recipe],
    tag: MealType,
    count: float,
    allow_repeats: bool = True,
    prefer_tags: bool = True,
    rand: Callable[[], float] = random.random,
) -> list[str | None]:
    """Pick up to ``count`` recipe ids for one meal type, as seven slots.

    Draws without replacement while the pool is large enough. Otherwise
    either cycles the shuffled pool (repeats allowed) or returns the whole
    pool and leaves the remaining slots empty.
    """
    empty: list[str | None] = [None] * PLAN_DAYS
    if not isinstance(count, (int, float)) or not count > 0:
        return empty

    tagged = [r for r in recipes if r.has_tag(tag)]
    pool = tagged if prefer_tags and tagged else list(recipes)
    if not pool:
        return empty

    wanted = clamp_count(count)
    shuffled = shuffle(pool, rand)

    if wanted <= len(shuffled):
        ids = [r.id for r in shuffled[:wanted]]
    elif not allow_repeats:
        logger.debug(
            "Only %d %s recipes for %d slots; leaving the rest empty",
            len(shuffled),
            tag.value,
            wanted,
        )
        ids = [r.id for r in shuffled]
    else:
        ids = [shuffled[i % len(shuffled)].id for i in range(wanted)]

    return ids + [None] * (PLAN_DAYS - len(ids))


def generate_slot_bundle(
    recipes: list[Recipe],
    request: SlotBundleRequest,
    name: str | None = None,
    allow_repeats: bool = True,
    prefer_tags: bool = True,
    rand: Callable[[], float] = random.random,
) -> WeekPlan:
    """Generate a seven-day plan with the requested number of each meal."""
    breakfasts = clamp_count(request.breakfasts)
    lunches = clamp_count(request.lunches)
    dinners = clamp_count(request.dinners)
    snack_days = (
        snack_days_from_counts(breakfasts, lunches, dinners) if request.include_snacks else 0
    )

    def pick(tag: MealType, count: int) -> list[str | None]:
        return pick_recipe_ids(
            recipes,
            tag,
            count,
            allow_repeats=allow_repeats,
            prefer_tags=prefer_tags,
            rand=rand,
        )

    breakfast_ids = pick(MealType.BREAKFAST, breakfasts)
    lunch_ids = pick(MealType.LUNCH, lunches)
    dinner_ids = pick(MealType.DINNER, dinners)
    snack_ids = pick(MealType.SNACK, snack_days)

    days = [
        DayPlan(
            breakfast_recipe_id=breakfast_ids[i],
            lunch_recipe_id=lunch_ids[i],
            dinner_recipe_id=dinner_ids[i],
            snack_recipe_ids=[snack_ids[i]] if snack_ids[i] else [],
        )
        for i in range(PLAN_DAYS)
    ]

    plan_name = (name or "").strip() or DEFAULT_BUNDLE_NAME
    logger.info(
        "Generated '%s': %d breakfasts, %d lunches, %d dinners, %d snack days requested",
        plan_name,
        breakfasts,
        lunches,
        dinners,
        snack_days,
    )
    return WeekPlan(id=new_id(), name=plan_name, start_date=today_iso(), days=days)


def count_bundle_assignments(plan: WeekPlan) -> BundleCounts:
    breakfasts = lunches = dinners = snack_days = 0
    for d in plan.days:
        if d.breakfast_recipe_id:
            breakfasts += 1
        if d.lunch_recipe_id:
            lunches += 1
        if d.dinner_recipe_id:
            dinners += 1
        if any(d.snack_recipe_ids):
            snack_days += 1
    return BundleCounts(
        breakfasts=breakfasts,
        lunches=lunches,
        dinners=dinners,
        snack_days=snack_days,
    )


def format_bundle_markdown(plan: WeekPlan, recipes_by_id: dict[str, Recipe]) -> str:
    """Format a plan as a day-by-day markdown table."""

    def label(recipe_id: str | None) -> str:
        if not recipe_id:
            return "-"
        recipe = recipes_by_id.get(recipe_id)
        return recipe.name if recipe else f"(missing {recipe_id})"

    counts = count_bundle_assignments(plan)
    lines = [
        f"# {plan.name}",
        "",
        f"Start: {plan.start_date}",
        "",
        "| Day | Breakfast | Lunch | Dinner | Snacks |",
        "|-----|-----------|-------|--------|--------|",
    ]
    for i, d in enumerate(plan.days):
        day_name = DAY_NAMES[i] if i < len(DAY_NAMES) else f"Day {i + 1}"
        snacks = ", ".join(label(s) for s in d.snack_recipe_ids if s) or "-"
        lines.append(
            f"| {day_name} | {label(d.breakfast_recipe_id)} | {label(d.lunch_recipe_id)} "
            f"| {label(d.dinner_recipe_id)} | {snacks} |"
        )
    lines.append("")
    lines.append(
        f"Assigned: {counts.breakfasts} breakfasts, {counts.lunches} lunches, "
        f"{counts.dinners} dinners, {counts.snack_days} snack days"
    )
    lines.append("")
    return "\n".join(lines)


def format_bundle_json(plan: WeekPlan) -> str:
    from nutri_plan.state import plan_to_dict

    return json.dumps(plan_to_dict(plan), indent=2)
