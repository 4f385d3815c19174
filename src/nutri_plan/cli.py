"""CLI entry point for the nutrition planner."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def get_config(args: argparse.Namespace) -> dict:
    from nutri_plan.config import apply_cli_overrides, load_config

    config = load_config(Path(args.config) if args.config else None)
    return apply_cli_overrides(
        config,
        state=args.state,
        recipes_dir=args.recipes_dir,
        store=args.store,
        breakfasts=getattr(args, "breakfasts", None),
        lunches=getattr(args, "lunches", None),
        dinners=getattr(args, "dinners", None),
        snacks=getattr(args, "snacks", None),
        repeats=getattr(args, "repeats", None),
        prefer_tags=getattr(args, "prefer_tags", None),
        name=getattr(args, "name", None),
    )


def output_format(args: argparse.Namespace, config: dict) -> str:
    return args.format or config["display"]["format"]


def cmd_totals(args: argparse.Namespace) -> None:
    from nutri_plan.runner import run_totals

    config = get_config(args)
    run_totals(
        config,
        day=None if args.week else args.day,
        person_id=args.person,
        output_format=output_format(args, config),
    )


def cmd_demand(args: argparse.Namespace) -> None:
    from nutri_plan.runner import run_demand

    config = get_config(args)
    run_demand(config, output_format=output_format(args, config))


def cmd_completeness(args: argparse.Namespace) -> None:
    from nutri_plan.runner import run_completeness

    config = get_config(args)
    run_completeness(config, output_format=output_format(args, config))


def cmd_prep(args: argparse.Namespace) -> None:
    from nutri_plan.runner import run_prep

    config = get_config(args)
    run_prep(
        config,
        done=args.done,
        undo=args.undo,
        reset=args.reset,
        output_format=output_format(args, config),
    )


def cmd_bundle(args: argparse.Namespace) -> None:
    from nutri_plan.runner import run_bundle

    config = get_config(args)
    run_bundle(
        config,
        seed=args.seed,
        save=args.save,
        output_format=output_format(args, config),
    )


def cmd_delete_recipe(args: argparse.Namespace) -> None:
    from nutri_plan.runner import run_delete_recipe

    run_delete_recipe(get_config(args), args.recipe_id)


def cmd_import_food(args: argparse.Namespace) -> None:
    from nutri_plan.runner import run_import_food

    run_import_food(get_config(args), food_file=args.food_file)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nutri-plan",
        description="Household week plans: nutrition totals, grocery demand, prep tasks",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to preferences YAML (default: ~/.config/nutri-plan/config.yaml)",
    )
    parser.add_argument("--state", type=str, default=None, help="State file (JSON or YAML)")
    parser.add_argument(
        "--recipes-dir",
        type=str,
        default=None,
        help="Directory of markdown recipe notes to overlay on the state's recipes",
    )
    parser.add_argument(
        "--store", type=str, default=None, help="Local store file for checklist state"
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="info",
        help="Logging verbosity (default: info)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Also write logs to this file",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    # totals
    p_totals = sub.add_parser("totals", help="Nutrient totals for a day or the week")
    group = p_totals.add_mutually_exclusive_group()
    group.add_argument("--day", type=int, default=0, help="Day index 0-6 (Monday=0)")
    group.add_argument("--week", action="store_true", help="Whole-week totals")
    p_totals.add_argument("--person", type=str, help="Compare against this person's targets")
    p_totals.add_argument(
        "--format", type=str, choices=["json", "markdown"], default=None
    )
    p_totals.set_defaults(func=cmd_totals)

    # demand
    p_demand = sub.add_parser("demand", help="Grams of each food the plan needs")
    p_demand.add_argument(
        "--format", type=str, choices=["json", "markdown"], default=None
    )
    p_demand.set_defaults(func=cmd_demand)

    # completeness
    p_comp = sub.add_parser("completeness", help="Which required meal slots are empty")
    p_comp.add_argument(
        "--format", type=str, choices=["json", "markdown"], default=None
    )
    p_comp.set_defaults(func=cmd_completeness)

    # prep
    p_prep = sub.add_parser("prep", help="Batch-cook and ingredient prep tasks")
    p_prep.add_argument(
        "--done", action="append", default=[], help="Mark a task id done. Repeatable."
    )
    p_prep.add_argument(
        "--undo", action="append", default=[], help="Mark a task id not done. Repeatable."
    )
    p_prep.add_argument("--reset", action="store_true", help="Clear the checklist")
    p_prep.add_argument(
        "--format", type=str, choices=["json", "markdown"], default=None
    )
    p_prep.set_defaults(func=cmd_prep)

    # bundle
    p_bundle = sub.add_parser("bundle", help="Generate a week plan from the recipe pool")
    p_bundle.add_argument("--breakfasts", type=int)
    p_bundle.add_argument("--lunches", type=int)
    p_bundle.add_argument("--dinners", type=int)
    p_bundle.add_argument(
        "--snacks",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Add snack days (average of the three meal counts)",
    )
    p_bundle.add_argument(
        "--repeats",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Allow a recipe to fill more than one slot of a meal type",
    )
    p_bundle.add_argument(
        "--prefer-tags",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Draw from recipes tagged for the meal when any exist",
    )
    p_bundle.add_argument("--name", type=str, help="Plan name")
    p_bundle.add_argument("--seed", type=int, help="Random seed for a reproducible bundle")
    p_bundle.add_argument(
        "--save", action="store_true", help="Replace the state file's plan with the bundle"
    )
    p_bundle.add_argument(
        "--format", type=str, choices=["json", "markdown"], default=None
    )
    p_bundle.set_defaults(func=cmd_bundle)

    # delete-recipe
    p_delete = sub.add_parser(
        "delete-recipe", help="Delete a recipe and clear it from the plan"
    )
    p_delete.add_argument("recipe_id", type=str)
    p_delete.set_defaults(func=cmd_delete_recipe)

    # import-food
    p_food = sub.add_parser(
        "import-food", help="Normalize FoodData Central JSON into the food cache"
    )
    p_food.add_argument("food_file", nargs="?", help="Path to FDC JSON (or stdin)")
    p_food.set_defaults(func=cmd_import_food)

    return parser


def main(argv: list[str] | None = None) -> None:
    from nutri_plan.errors import NutriPlanError
    from nutri_plan.log import setup_logging

    parser = build_parser()
    args = parser.parse_args(argv)

    log_file = Path(args.log_file) if args.log_file else None
    setup_logging(level=args.log_level, log_file=log_file)

    try:
        args.func(args)
    except NutriPlanError as e:
        logger.error("%s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
