"""Household state: JSON/YAML boundary and pure state transitions.

On disk, ids used as mapping keys (food ids, nutrient ids) are strings;
in memory they are ints. Both snake_case and the camelCase field names
used by the remote store are accepted when reading.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field, replace
from pathlib import Path

import yaml

from nutri_plan.errors import StateError
from nutri_plan.models import (
    PLAN_DAYS,
    DayPlan,
    FoodDetails,
    Ingredient,
    MealType,
    NutrientAmount,
    NutrientTarget,
    PersonProfile,
    Recipe,
    WeekPlan,
    empty_week,
    new_id,
    today_iso,
)

logger = logging.getLogger(__name__)

STATE_VERSION = 2


@dataclass
class AppState:
    version: int = STATE_VERSION
    people: list[PersonProfile] = field(default_factory=list)
    recipes: list[Recipe] = field(default_factory=list)
    plan: WeekPlan = field(default_factory=empty_week)
    food_cache: dict[int, FoodDetails] = field(default_factory=dict)
    selected_person_id: str | None = None

    def recipes_by_id(self) -> dict[str, Recipe]:
        return {r.id: r for r in self.recipes}

    def selected_person(self) -> PersonProfile | None:
        for p in self.people:
            if p.id == self.selected_person_id:
                return p
        return None


def _get(data: dict, *keys: str, default: object = None) -> object:
    """First present key among snake_case / camelCase spellings."""
    for k in keys:
        if k in data and data[k] is not None:
            return data[k]
    return default


def _to_float(val: object) -> float:
    if val is None or isinstance(val, bool):
        return math.nan
    try:
        return float(val)
    except (ValueError, TypeError):
        return math.nan


def _to_opt_float(val: object) -> float | None:
    f = _to_float(val)
    return f if math.isfinite(f) else None


def _to_int(val: object) -> int | None:
    f = _to_float(val)
    return int(f) if math.isfinite(f) else None


def _opt_id(val: object) -> str | None:
    return str(val) if val else None


# --- coercion ---------------------------------------------------------------


def coerce_state(raw: dict) -> dict:
    """Repair shapes the remote store may send before parsing.

    - a food cache sent as a list becomes a mapping keyed by food id
    - per-person nutrient targets sent as a list become a mapping
    - every plan day gets a snack list, and the plan is forced to 7 days
    """
    out = dict(raw)

    fc = _get(out, "food_cache", "foodCache", "cachedFoods")
    if isinstance(fc, list):
        cache = {}
        for f in fc:
            if not isinstance(f, dict):
                continue
            fdc_id = _get(f, "fdc_id", "fdcId")
            if not fdc_id:
                continue
            cache[str(fdc_id)] = f
        out["food_cache"] = cache
    elif isinstance(fc, dict):
        out["food_cache"] = fc
    else:
        out["food_cache"] = {}

    people = out.get("people")
    if isinstance(people, list):
        fixed = []
        for p in people:
            if not isinstance(p, dict):
                continue
            pp = dict(p)
            nt = _get(pp, "nutrient_targets", "nutrientTargets")
            if isinstance(nt, list):
                targets = {}
                for t in nt:
                    if not isinstance(t, dict):
                        continue
                    nid = _get(t, "nutrient_id", "nutrientId")
                    if not nid:
                        continue
                    targets[str(nid)] = t
                pp["nutrient_targets"] = targets
            elif isinstance(nt, dict):
                pp["nutrient_targets"] = nt
            else:
                pp["nutrient_targets"] = {}
            fixed.append(pp)
        out["people"] = fixed
    else:
        out["people"] = []

    plan = out.get("plan")
    if isinstance(plan, dict):
        plan = dict(plan)
        days = plan.get("days") if isinstance(plan.get("days"), list) else []
        fixed_days = []
        for d in days[:PLAN_DAYS]:
            dd = dict(d) if isinstance(d, dict) else {}
            snacks = _get(dd, "snack_recipe_ids", "snackRecipeIds")
            dd["snack_recipe_ids"] = list(snacks) if isinstance(snacks, list) else []
            fixed_days.append(dd)
        if len(days) != PLAN_DAYS:
            logger.warning("Plan has %d days; normalizing to %d", len(days), PLAN_DAYS)
        while len(fixed_days) < PLAN_DAYS:
            fixed_days.append({"snack_recipe_ids": []})
        plan["days"] = fixed_days
        out["plan"] = plan

    return out


# --- dict -> model ----------------------------------------------------------


def nutrient_from_dict(data: dict) -> NutrientAmount:
    return NutrientAmount(
        nutrient_id=_to_int(_get(data, "nutrient_id", "nutrientId")) or 0,
        name=str(_get(data, "name", default="")),
        unit_name=str(_get(data, "unit_name", "unitName", default="")),
        amount=_to_float(_get(data, "amount")),
    )


def food_from_dict(data: dict) -> FoodDetails:
    return FoodDetails(
        fdc_id=_to_int(_get(data, "fdc_id", "fdcId")) or 0,
        description=str(_get(data, "description", default="")),
        food_nutrients=[
            nutrient_from_dict(n)
            for n in _get(data, "food_nutrients", "foodNutrients", default=[])
            if isinstance(n, dict)
        ],
        data_type=_get(data, "data_type", "dataType"),
        brand_owner=_get(data, "brand_owner", "brandOwner"),
        serving_size=_to_opt_float(_get(data, "serving_size", "servingSize")),
        serving_size_unit=_get(data, "serving_size_unit", "servingSizeUnit"),
        last_fetched=_get(data, "last_fetched", "lastFetchedISO"),
    )


def parse_tags(raw: object) -> list[MealType]:
    """Known meal tags only; anything else is dropped."""
    if isinstance(raw, str):
        raw = [t.strip() for t in raw.split(",")]
    tags: list[MealType] = []
    for t in raw if isinstance(raw, list) else []:
        try:
            tag = MealType(str(t).strip().lower())
        except ValueError:
            logger.debug("Ignoring unknown recipe tag '%s'", t)
            continue
        if tag not in tags:
            tags.append(tag)
    return tags


def ingredient_from_dict(data: dict) -> Ingredient:
    return Ingredient(
        id=str(_get(data, "id", default="") or new_id()),
        fdc_id=_to_int(_get(data, "fdc_id", "fdcId")) or 0,
        description=str(_get(data, "description", default="")),
        grams=_to_float(_get(data, "grams")),
    )


def recipe_from_dict(data: dict) -> Recipe:
    return Recipe(
        id=str(data["id"]),
        name=str(_get(data, "name", default=data["id"])),
        tags=parse_tags(_get(data, "tags", default=[])),
        ingredients=[
            ingredient_from_dict(i) for i in _get(data, "ingredients", default=[]) if isinstance(i, dict)
        ],
        notes=_get(data, "notes"),
    )


def day_from_dict(data: dict) -> DayPlan:
    return DayPlan(
        breakfast_recipe_id=_opt_id(_get(data, "breakfast_recipe_id", "breakfastRecipeId")),
        lunch_recipe_id=_opt_id(_get(data, "lunch_recipe_id", "lunchRecipeId")),
        dinner_recipe_id=_opt_id(_get(data, "dinner_recipe_id", "dinnerRecipeId")),
        snack_recipe_ids=[
            str(s) for s in _get(data, "snack_recipe_ids", "snackRecipeIds", default=[]) if s
        ],
    )


def plan_from_dict(data: dict) -> WeekPlan:
    return WeekPlan(
        id=str(_get(data, "id", default="") or new_id()),
        name=str(_get(data, "name", default="This Week")),
        start_date=str(_get(data, "start_date", "startDateISO", default=today_iso())),
        days=[day_from_dict(d) for d in _get(data, "days", default=[])],
    )


def target_from_dict(data: dict) -> NutrientTarget:
    return NutrientTarget(
        nutrient_id=_to_int(_get(data, "nutrient_id", "nutrientId")) or 0,
        name=str(_get(data, "name", default="")),
        unit_name=str(_get(data, "unit_name", "unitName", default="")),
        daily=_to_opt_float(_get(data, "daily")) or 0.0,
        weekly_override=_to_opt_float(_get(data, "weekly_override", "weeklyOverride")),
    )


def person_from_dict(data: dict) -> PersonProfile:
    targets = {}
    for t in _get(data, "nutrient_targets", default={}).values():
        target = target_from_dict(t)
        targets[target.nutrient_id] = target
    return PersonProfile(
        id=str(data["id"]),
        name=str(_get(data, "name", default="")),
        sex=str(_get(data, "sex", default="female")),
        date_of_birth=_get(data, "date_of_birth", "dateOfBirthISO"),
        height_in=_to_opt_float(_get(data, "height_in", "heightIn")),
        current_weight_lb=_to_opt_float(_get(data, "current_weight_lb", "currentWeightLb")),
        target_weight_lb=_to_opt_float(_get(data, "target_weight_lb", "targetWeightLb")),
        activity_level=_get(data, "activity_level", "activityLevel"),
        notes=_get(data, "notes"),
        nutrient_targets=targets,
    )


def state_from_dict(raw: dict) -> AppState:
    data = coerce_state(raw)
    try:
        food_cache = {}
        for key, f in data["food_cache"].items():
            food = food_from_dict(f)
            if not food.fdc_id:
                key_id = _to_int(key)
                if key_id is None:
                    logger.debug("Dropping cached food with no usable id under key %r", key)
                    continue
                food = replace(food, fdc_id=key_id)
            food_cache[food.fdc_id] = food
        plan_data = data.get("plan")
        return AppState(
            version=_to_int(_get(data, "version")) or STATE_VERSION,
            people=[person_from_dict(p) for p in data["people"]],
            recipes=[recipe_from_dict(r) for r in _get(data, "recipes", default=[])],
            plan=plan_from_dict(plan_data) if isinstance(plan_data, dict) else empty_week(),
            food_cache=food_cache,
            selected_person_id=_get(data, "selected_person_id", "selectedPersonId"),
        )
    except (KeyError, TypeError, AttributeError) as e:
        raise StateError(f"Malformed state: {e!r}") from e


# --- model -> dict ----------------------------------------------------------


def plan_to_dict(plan: WeekPlan) -> dict:
    return {
        "id": plan.id,
        "name": plan.name,
        "start_date": plan.start_date,
        "days": [
            {
                "breakfast_recipe_id": d.breakfast_recipe_id,
                "lunch_recipe_id": d.lunch_recipe_id,
                "dinner_recipe_id": d.dinner_recipe_id,
                "snack_recipe_ids": list(d.snack_recipe_ids),
            }
            for d in plan.days
        ],
    }


def recipe_to_dict(recipe: Recipe) -> dict:
    return {
        "id": recipe.id,
        "name": recipe.name,
        "tags": [t.value for t in recipe.tags],
        "ingredients": [
            {"id": i.id, "fdc_id": i.fdc_id, "description": i.description, "grams": i.grams}
            for i in recipe.ingredients
        ],
        "notes": recipe.notes,
    }


def food_to_dict(food: FoodDetails) -> dict:
    return {
        "fdc_id": food.fdc_id,
        "description": food.description,
        "data_type": food.data_type,
        "brand_owner": food.brand_owner,
        "serving_size": food.serving_size,
        "serving_size_unit": food.serving_size_unit,
        "last_fetched": food.last_fetched,
        "food_nutrients": [
            {
                "nutrient_id": n.nutrient_id,
                "name": n.name,
                "unit_name": n.unit_name,
                "amount": n.amount,
            }
            for n in food.food_nutrients
        ],
    }


def person_to_dict(person: PersonProfile) -> dict:
    return {
        "id": person.id,
        "name": person.name,
        "sex": person.sex,
        "date_of_birth": person.date_of_birth,
        "height_in": person.height_in,
        "current_weight_lb": person.current_weight_lb,
        "target_weight_lb": person.target_weight_lb,
        "activity_level": person.activity_level,
        "notes": person.notes,
        "nutrient_targets": {
            str(t.nutrient_id): {
                "nutrient_id": t.nutrient_id,
                "name": t.name,
                "unit_name": t.unit_name,
                "daily": t.daily,
                "weekly_override": t.weekly_override,
            }
            for t in person.nutrient_targets.values()
        },
    }


def state_to_dict(state: AppState) -> dict:
    return {
        "version": state.version,
        "selected_person_id": state.selected_person_id,
        "people": [person_to_dict(p) for p in state.people],
        "recipes": [recipe_to_dict(r) for r in state.recipes],
        "plan": plan_to_dict(state.plan),
        "food_cache": {str(k): food_to_dict(f) for k, f in state.food_cache.items()},
    }


# --- files ------------------------------------------------------------------


def _is_yaml(path: Path) -> bool:
    return path.suffix.lower() in (".yaml", ".yml")


def load_state(path: Path) -> AppState:
    """Load household state from a JSON or YAML file."""
    try:
        with open(path) as f:
            raw = yaml.safe_load(f) if _is_yaml(path) else json.load(f)
    except FileNotFoundError as e:
        raise StateError(f"State file not found: {path}") from e
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise StateError(f"Could not parse state file {path}: {e}") from e

    if raw is None:
        return AppState()
    if not isinstance(raw, dict):
        raise StateError(f"State file {path} must contain an object at the top level")
    try:
        return state_from_dict(raw)
    except StateError as e:
        raise StateError(f"{path}: {e}") from e


def dump_state(state: AppState, path: Path) -> None:
    data = state_to_dict(state)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        if _is_yaml(path):
            yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)
        else:
            json.dump(data, f, indent=2, ensure_ascii=False)
    logger.debug("Wrote state to %s", path)


# --- transitions ------------------------------------------------------------


def upsert_recipe(state: AppState, recipe: Recipe) -> AppState:
    if any(r.id == recipe.id for r in state.recipes):
        recipes = [recipe if r.id == recipe.id else r for r in state.recipes]
    else:
        recipes = [*state.recipes, recipe]
    return replace(state, recipes=recipes)


def delete_recipe(state: AppState, recipe_id: str) -> AppState:
    """Remove a recipe and clear every plan slot that referenced it."""
    recipes = [r for r in state.recipes if r.id != recipe_id]

    def clear(value: str | None) -> str | None:
        return None if value == recipe_id else value

    days = [
        DayPlan(
            breakfast_recipe_id=clear(d.breakfast_recipe_id),
            lunch_recipe_id=clear(d.lunch_recipe_id),
            dinner_recipe_id=clear(d.dinner_recipe_id),
            snack_recipe_ids=[s for s in d.snack_recipe_ids if s != recipe_id],
        )
        for d in state.plan.days
    ]
    return replace(state, recipes=recipes, plan=replace(state.plan, days=days))


def set_plan(state: AppState, plan: WeekPlan) -> AppState:
    return replace(state, plan=plan)


def cache_food(state: AppState, food: FoodDetails) -> AppState:
    return replace(state, food_cache={**state.food_cache, food.fdc_id: food})


def upsert_person(state: AppState, person: PersonProfile) -> AppState:
    if any(p.id == person.id for p in state.people):
        people = [person if p.id == person.id else p for p in state.people]
    else:
        people = [*state.people, person]
    selected = state.selected_person_id or person.id
    return replace(state, people=people, selected_person_id=selected)


def delete_person(state: AppState, person_id: str) -> AppState:
    people = [p for p in state.people if p.id != person_id]
    selected = state.selected_person_id
    if selected == person_id:
        selected = people[0].id if people else None
    return replace(state, people=people, selected_person_id=selected)
