"""Tests for slot bundle generation."""

import json
import math
import random

import pytest
from conftest import make_recipe
from nutri_plan.bundle import (
    DEFAULT_BUNDLE_NAME,
    clamp_count,
    count_bundle_assignments,
    format_bundle_json,
    format_bundle_markdown,
    generate_slot_bundle,
    pick_recipe_ids,
    shuffle,
    snack_days_from_counts,
)
from nutri_plan.models import BundleCounts, MealType, SlotBundleRequest


def seeded(seed: int = 0):
    return random.Random(seed).random


class TestCounts:
    @pytest.mark.parametrize(
        "value,expected",
        [(3, 3), (3.9, 3), (-2, 0), (12, 7), (math.nan, 0), (math.inf, 0), ("4", 0)],
    )
    def test_clamp_count(self, value, expected):
        assert clamp_count(value) == expected

    @pytest.mark.parametrize(
        "b,l,d,expected",
        [(7, 7, 7, 7), (0, 0, 0, 0), (1, 1, 1, 1), (2, 3, 3, 3), (3, 2, 3, 3), (1, 0, 0, 0), (1, 1, 0, 1)],
    )
    def test_snack_days(self, b, l, d, expected):
        assert snack_days_from_counts(b, l, d) == expected


class TestShuffle:
    def test_is_permutation_of_copy(self):
        items = [1, 2, 3, 4, 5]
        out = shuffle(items, seeded(3))
        assert sorted(out) == items
        assert items == [1, 2, 3, 4, 5]

    def test_zero_rand_is_deterministic(self):
        # Every draw picks index 0, rotating the front element to the back.
        assert shuffle(["a", "b", "c"], lambda: 0.0) == ["b", "c", "a"]


class TestPickRecipeIds:
    def test_zero_count_is_all_empty(self, sample_recipes):
        assert pick_recipe_ids(sample_recipes, MealType.BREAKFAST, 0) == [None] * 7

    def test_empty_pool(self):
        assert pick_recipe_ids([], MealType.DINNER, 5) == [None] * 7

    def test_prefers_tagged(self, sample_recipes):
        ids = pick_recipe_ids(sample_recipes, MealType.BREAKFAST, 2, rand=seeded())
        assert sorted(ids[:2]) == ["oatmeal", "overnight-oats"]
        assert ids[2:] == [None] * 5

    def test_falls_back_to_all_when_no_tagged(self):
        recipes = [make_recipe("a", "A", []), make_recipe("b", "B", [])]
        ids = pick_recipe_ids(recipes, MealType.SNACK, 2, rand=seeded())
        assert sorted(ids[:2]) == ["a", "b"]

    def test_prefer_tags_off_uses_everything(self, sample_recipes):
        ids = pick_recipe_ids(sample_recipes, MealType.BREAKFAST, 7, prefer_tags=False, rand=seeded())
        assert sorted(ids) == sorted(r.id for r in sample_recipes)

    def test_cycles_when_repeats_allowed(self, sample_recipes):
        ids = pick_recipe_ids(sample_recipes, MealType.BREAKFAST, 5, rand=seeded(1))
        assert len(ids) == 7
        assert ids[5:] == [None, None]
        assert ids[0] == ids[2] == ids[4]
        assert ids[1] == ids[3]
        assert {ids[0], ids[1]} == {"oatmeal", "overnight-oats"}

    def test_shortfall_without_repeats(self, sample_recipes):
        ids = pick_recipe_ids(sample_recipes, MealType.BREAKFAST, 5, allow_repeats=False, rand=seeded())
        assert sorted(i for i in ids if i) == ["oatmeal", "overnight-oats"]
        assert ids[2:] == [None] * 5


class TestGenerateSlotBundle:
    def test_counts_match_request_with_enough_recipes(self, sample_recipes):
        plan = generate_slot_bundle(
            sample_recipes,
            SlotBundleRequest(breakfasts=2, lunches=2, dinners=2, include_snacks=True),
            allow_repeats=False,
            rand=seeded(5),
        )
        assert len(plan.days) == 7
        assert count_bundle_assignments(plan) == BundleCounts(breakfasts=2, lunches=2, dinners=2, snack_days=1)

    def test_filled_slots_are_first_days(self, sample_recipes):
        plan = generate_slot_bundle(sample_recipes, SlotBundleRequest(3, 2, 1), rand=seeded())
        assert [bool(d.breakfast_recipe_id) for d in plan.days] == [True] * 3 + [False] * 4
        assert [bool(d.lunch_recipe_id) for d in plan.days] == [True] * 2 + [False] * 5
        assert [bool(d.dinner_recipe_id) for d in plan.days] == [True] + [False] * 6
        assert all(d.snack_recipe_ids == [] for d in plan.days)

    @pytest.mark.parametrize("seed", range(8))
    def test_ids_come_from_input(self, sample_recipes, seed):
        plan = generate_slot_bundle(sample_recipes, SlotBundleRequest(7, 7, 7, include_snacks=True), rand=seeded(seed))
        known = {r.id for r in sample_recipes}
        for day in plan.days:
            assert set(day.recipe_ids()) <= known
            assert len(day.snack_recipe_ids) <= 1

    @pytest.mark.parametrize("seed", range(8))
    def test_no_repeats_means_distinct_per_meal(self, sample_recipes, seed):
        plan = generate_slot_bundle(
            sample_recipes,
            SlotBundleRequest(7, 7, 7, include_snacks=True),
            allow_repeats=False,
            rand=seeded(seed),
        )
        for attr in ("breakfast_recipe_id", "lunch_recipe_id", "dinner_recipe_id"):
            ids = [getattr(d, attr) for d in plan.days if getattr(d, attr)]
            assert len(ids) == len(set(ids))

    def test_repeats_fill_every_slot(self, sample_recipes):
        plan = generate_slot_bundle(
            sample_recipes, SlotBundleRequest(7, 7, 7, include_snacks=True), rand=seeded(2)
        )
        counts = count_bundle_assignments(plan)
        assert counts == BundleCounts(breakfasts=7, lunches=7, dinners=7, snack_days=7)
        assert all(d.snack_recipe_ids == ["rice-pudding"] for d in plan.days)

    def test_same_seed_same_plan(self, sample_recipes):
        request = SlotBundleRequest(5, 4, 6, include_snacks=True)
        a = generate_slot_bundle(sample_recipes, request, rand=seeded(42))
        b = generate_slot_bundle(sample_recipes, request, rand=seeded(42))
        assert a.days == b.days

    def test_empty_recipes_gives_empty_days(self):
        plan = generate_slot_bundle([], SlotBundleRequest(7, 7, 7, include_snacks=True))
        assert all(d.recipe_ids() == [] for d in plan.days)

    def test_oversized_request_is_clamped(self, sample_recipes):
        plan = generate_slot_bundle(sample_recipes, SlotBundleRequest(20, -3, math.nan), rand=seeded())
        counts = count_bundle_assignments(plan)
        assert (counts.breakfasts, counts.lunches, counts.dinners) == (7, 0, 0)

    @pytest.mark.parametrize("name", [None, "", "   "])
    def test_default_name(self, sample_recipes, name):
        plan = generate_slot_bundle(sample_recipes, SlotBundleRequest(1, 1, 1), name=name, rand=seeded())
        assert plan.name == DEFAULT_BUNDLE_NAME

    def test_custom_name_trimmed(self, sample_recipes):
        plan = generate_slot_bundle(sample_recipes, SlotBundleRequest(1, 1, 1), name="  Week 42 ", rand=seeded())
        assert plan.name == "Week 42"

    def test_fresh_ids(self, sample_recipes):
        request = SlotBundleRequest(1, 1, 1)
        assert generate_slot_bundle(sample_recipes, request).id != generate_slot_bundle(sample_recipes, request).id


class TestBundleFormatting:
    def test_markdown(self, sample_recipes, recipes_by_id):
        plan = generate_slot_bundle(sample_recipes, SlotBundleRequest(1, 0, 0), name="Trial", rand=seeded())
        out = format_bundle_markdown(plan, recipes_by_id)
        assert out.startswith("# Trial")
        assert "| Sunday | - | - | - | - |" in out
        assert "Assigned: 1 breakfasts, 0 lunches, 0 dinners, 0 snack days" in out

    def test_json(self, sample_recipes):
        plan = generate_slot_bundle(sample_recipes, SlotBundleRequest(0, 0, 7), rand=seeded())
        data = json.loads(format_bundle_json(plan))
        assert data["name"] == DEFAULT_BUNDLE_NAME
        assert len(data["days"]) == 7
