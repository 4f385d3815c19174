"""Heuristic batch-prep task list derived from a week plan.

Without recipe steps there is no real schedule to build, so two simple
rules stand in:

- a recipe used at least twice in the week gets a "Batch cook" task
- an ingredient used by many recipes, or in bulk, gets a "Prep" task

Thresholds are fixed module constants.
"""

from __future__ import annotations

import json
import logging
import math

from pyuca import Collator

from nutri_plan.derive import compute_ingredient_demand, recipe_use_counts
from nutri_plan.models import PrepTask, Recipe, WeekPlan
from nutri_plan.store import ValueStore

logger = logging.getLogger(__name__)

BATCH_COOK_MIN_USES = 2
PREP_MIN_RECIPES = 3
PREP_MIN_GRAMS = 600

_collator = Collator()


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _detail_key(task: PrepTask) -> tuple[int, ...]:
    """Unicode collation key, so symbols like "×" sort below digits."""
    return _collator.sort_key(task.detail or "")


def compute_prep_tasks(plan: WeekPlan, recipes_by_id: dict[str, Recipe]) -> list[PrepTask]:
    """Batch-cook and ingredient-prep tasks for the plan.

    Tasks are ordered by their detail text, descending. This is a text sort,
    not a numeric one: "Used 3× this week" sorts above "950g total ...".
    """
    tasks: list[PrepTask] = []

    for recipe_id, count in recipe_use_counts(plan).items():
        if count < BATCH_COOK_MIN_USES:
            continue
        recipe = recipes_by_id.get(recipe_id)
        if recipe is None:
            continue
        tasks.append(
            PrepTask(
                id=f"recipe:{recipe_id}",
                title=f"Batch cook: {recipe.name}",
                detail=f"Used {count}× this week",
                used_by=[recipe.name],
            )
        )

    for d in compute_ingredient_demand(plan, recipes_by_id).values():
        used_by_count = len(d.recipe_ids)
        if used_by_count < PREP_MIN_RECIPES and d.total_grams < PREP_MIN_GRAMS:
            continue
        tasks.append(
            PrepTask(
                id=f"ing:{d.fdc_id}",
                title=f"Prep: {d.description}",
                detail=f"{_round_half_up(d.total_grams)}g total · used in {used_by_count} recipes",
            )
        )

    tasks.sort(key=_detail_key, reverse=True)
    logger.debug("Derived %d prep tasks for plan %s", len(tasks), plan.id)
    return tasks


class PrepChecklist:
    """Done/not-done state for a plan's prep tasks, kept in a value store."""

    def __init__(self, store: ValueStore, plan_id: str):
        self.store = store
        self.key = f"prepDone::{plan_id}"

    def done(self) -> dict[str, bool]:
        value = self.store.get(self.key, {})
        return value if isinstance(value, dict) else {}

    def is_done(self, task_id: str) -> bool:
        return bool(self.done().get(task_id))

    def mark(self, task_id: str, done: bool = True) -> None:
        state = dict(self.done())
        state[task_id] = done
        self.store.set(self.key, state)

    def reset(self) -> None:
        self.store.set(self.key, {})

    def progress(self, tasks: list[PrepTask]) -> tuple[int, int]:
        """Return (done_count, total) for the given tasks."""
        state = self.done()
        return sum(1 for t in tasks if state.get(t.id)), len(tasks)


def format_prep_markdown(tasks: list[PrepTask], done: dict[str, bool] | None = None) -> str:
    done = done or {}
    finished = sum(1 for t in tasks if done.get(t.id))
    lines = ["# Prep Plan", "", f"{finished}/{len(tasks)} done", ""]
    if not tasks:
        lines.append("No prep tasks detected. Repeat meals or add recipes to get suggestions.")
        lines.append("")
        return "\n".join(lines)

    for t in tasks:
        box = "x" if done.get(t.id) else " "
        detail = f" ({t.detail})" if t.detail else ""
        lines.append(f"- [{box}] {t.title}{detail} `{t.id}`")
    lines.append("")
    return "\n".join(lines)


def format_prep_json(tasks: list[PrepTask], done: dict[str, bool] | None = None) -> str:
    done = done or {}
    data = [
        {
            "id": t.id,
            "title": t.title,
            "detail": t.detail,
            "used_by": t.used_by,
            "done": bool(done.get(t.id)),
        }
        for t in tasks
    ]
    return json.dumps(data, indent=2, ensure_ascii=False)
