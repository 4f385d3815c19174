"""Command implementations: load state, derive, print, and persist."""

from __future__ import annotations

import json
import logging
import random
import sys
from pathlib import Path

from nutri_plan.errors import StateError
from nutri_plan.models import SlotBundleRequest
from nutri_plan.state import AppState, dump_state, load_state, upsert_recipe

logger = logging.getLogger(__name__)


def load_workspace(config: dict) -> AppState:
    """Load the state file and overlay any markdown recipe notes."""
    state_path = Path(config["paths"]["state_file"]).expanduser()
    if state_path.exists():
        state = load_state(state_path)
    else:
        logger.warning("No state file at %s; starting from an empty week", state_path)
        state = AppState()

    recipes_dir = config["paths"].get("recipes_dir")
    if recipes_dir:
        from nutri_plan.indexer import load_recipe_dir

        for recipe in load_recipe_dir(Path(recipes_dir).expanduser()):
            state = upsert_recipe(state, recipe)

    return state


def save_workspace(state: AppState, config: dict) -> Path:
    state_path = Path(config["paths"]["state_file"]).expanduser()
    dump_state(state, state_path)
    return state_path


def run_totals(
    config: dict,
    day: int | None = None,
    person_id: str | None = None,
    output_format: str = "markdown",
) -> None:
    """CLI entry point for totals command."""
    from nutri_plan.models import DAY_NAMES
    from nutri_plan.nutrition import (
        compare_to_targets,
        day_totals,
        format_totals_markdown,
        pick_macro_snapshot,
        week_totals,
    )

    state = load_workspace(config)
    recipes_by_id = state.recipes_by_id()

    if day is None:
        totals = week_totals(state.plan, recipes_by_id, state.food_cache)
        mode, title = "week", f"Week Totals: {state.plan.name}"
    else:
        totals = day_totals(day, state.plan, recipes_by_id, state.food_cache)
        label = DAY_NAMES[day] if 0 <= day < len(DAY_NAMES) else f"day {day}"
        mode, title = "day", f"Day Totals: {label}"

    person = None
    if person_id:
        person = next((p for p in state.people if p.id == person_id), None)
        if person is None:
            raise StateError(f"No person with id '{person_id}'")
    else:
        person = state.selected_person()
    rows = compare_to_targets(totals, person.nutrient_targets, mode) if person else None

    if output_format == "json":
        macros = pick_macro_snapshot(totals)
        data = {
            "mode": mode,
            "macros": vars(macros),
            "totals": {
                str(k): {"name": n.name, "unit_name": n.unit_name, "amount": n.amount}
                for k, n in totals.items()
            },
            "targets": [vars(r) for r in rows] if rows else [],
        }
        print(json.dumps(data, indent=2))
    else:
        print(format_totals_markdown(totals, title, rows))


def run_demand(config: dict, output_format: str = "markdown") -> None:
    """CLI entry point for demand command."""
    from nutri_plan.derive import (
        compute_ingredient_demand,
        format_demand_json,
        format_demand_markdown,
    )

    state = load_workspace(config)
    recipes_by_id = state.recipes_by_id()
    demand = compute_ingredient_demand(state.plan, recipes_by_id)

    if not demand:
        logger.warning("No ingredients to list")
    if output_format == "json":
        print(format_demand_json(demand))
    else:
        print(format_demand_markdown(demand, recipes_by_id))


def run_completeness(config: dict, output_format: str = "markdown") -> None:
    """CLI entry point for completeness command."""
    from nutri_plan.derive import (
        format_completeness_json,
        format_completeness_markdown,
        plan_completeness,
    )

    state = load_workspace(config)
    c = plan_completeness(state.plan)
    if output_format == "json":
        print(format_completeness_json(c))
    else:
        print(format_completeness_markdown(c))


def run_prep(
    config: dict,
    done: list[str] | None = None,
    undo: list[str] | None = None,
    reset: bool = False,
    output_format: str = "markdown",
) -> None:
    """CLI entry point for prep command."""
    from nutri_plan.prep import (
        PrepChecklist,
        compute_prep_tasks,
        format_prep_json,
        format_prep_markdown,
    )
    from nutri_plan.store import JsonFileStore

    state = load_workspace(config)
    tasks = compute_prep_tasks(state.plan, state.recipes_by_id())

    store = JsonFileStore(Path(config["paths"]["store_file"]).expanduser())
    checklist = PrepChecklist(store, state.plan.id)
    if reset:
        checklist.reset()
    known = {t.id for t in tasks}
    for task_id in done or []:
        if task_id not in known:
            logger.warning("Unknown prep task '%s'", task_id)
        checklist.mark(task_id, True)
    for task_id in undo or []:
        checklist.mark(task_id, False)

    if output_format == "json":
        print(format_prep_json(tasks, checklist.done()))
    else:
        print(format_prep_markdown(tasks, checklist.done()))


def run_bundle(
    config: dict,
    seed: int | None = None,
    save: bool = False,
    output_format: str = "markdown",
) -> None:
    """CLI entry point for bundle command."""
    from nutri_plan.bundle import (
        clamp_count,
        count_bundle_assignments,
        format_bundle_json,
        format_bundle_markdown,
        generate_slot_bundle,
    )
    from nutri_plan.state import set_plan

    bundle_cfg = config["bundle"]
    state = load_workspace(config)
    if not state.recipes:
        logger.error("No recipes to generate from")
        sys.exit(1)

    rand = random.Random(seed).random if seed is not None else random.random
    request = SlotBundleRequest(
        breakfasts=bundle_cfg["breakfasts"],
        lunches=bundle_cfg["lunches"],
        dinners=bundle_cfg["dinners"],
        include_snacks=bool(bundle_cfg["include_snacks"]),
    )
    plan = generate_slot_bundle(
        state.recipes,
        request,
        name=bundle_cfg.get("name"),
        allow_repeats=bool(bundle_cfg["allow_repeats"]),
        prefer_tags=bool(bundle_cfg["prefer_tags"]),
        rand=rand,
    )

    counts = count_bundle_assignments(plan)
    if (
        counts.breakfasts < clamp_count(request.breakfasts)
        or counts.lunches < clamp_count(request.lunches)
        or counts.dinners < clamp_count(request.dinners)
    ):
        logger.warning("Not enough distinct recipes to fill every requested slot")

    if save:
        path = save_workspace(set_plan(state, plan), config)
        print(f"Plan saved to {path}", file=sys.stderr)

    if output_format == "json":
        print(format_bundle_json(plan))
    else:
        print(format_bundle_markdown(plan, state.recipes_by_id()))


def run_delete_recipe(config: dict, recipe_id: str) -> None:
    """CLI entry point for delete-recipe command."""
    from nutri_plan.state import delete_recipe

    state = load_workspace(config)
    if not any(r.id == recipe_id for r in state.recipes):
        raise StateError(f"No recipe with id '{recipe_id}'")
    path = save_workspace(delete_recipe(state, recipe_id), config)
    print(f"Deleted recipe {recipe_id}; plan saved to {path}", file=sys.stderr)


def run_import_food(config: dict, food_file: str | None = None) -> None:
    """CLI entry point for import-food command. Reads FDC JSON from a file or stdin."""
    from nutri_plan.normalize import normalize_food_details
    from nutri_plan.state import cache_food

    try:
        if food_file:
            with open(food_file) as f:
                raw = json.load(f)
        else:
            raw = json.load(sys.stdin)
    except OSError as e:
        raise StateError(f"Could not read food data {food_file}: {e}") from e
    except json.JSONDecodeError as e:
        raise StateError(f"Food data is not valid JSON: {e}") from e

    foods = raw if isinstance(raw, list) else [raw]
    state = load_workspace(config)
    for item in foods:
        if not isinstance(item, dict):
            logger.warning("Skipping non-object food entry")
            continue
        food = normalize_food_details(item)
        state = cache_food(state, food)
        logger.info("Cached food %s: %s (%d nutrients)", food.fdc_id, food.description, len(food.food_nutrients))
    save_workspace(state, config)
