"""Normalize raw FoodData Central JSON into cached food-composition entries."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone

from nutri_plan.models import FoodDetails, NutrientAmount

logger = logging.getLogger(__name__)


def _to_number(val: object) -> float:
    """Coerce to float, returning NaN for anything non-numeric."""
    if val is None or isinstance(val, bool):
        return math.nan
    try:
        return float(val)
    except (ValueError, TypeError):
        return math.nan


def _to_str(val: object) -> str | None:
    if val is None or val == "":
        return None
    return str(val)


def normalize_nutrient(raw: dict) -> NutrientAmount | None:
    """Parse one nutrient row in either the nested or the flat FDC shape.

    Nested: {"nutrient": {"id", "name", "unitName"}, "amount"}
    Flat:   {"nutrientId", "name"|"nutrientName", "unitName", "amount"|"value"}
    """
    if not isinstance(raw, dict):
        return None
    nutrient = raw.get("nutrient") if isinstance(raw.get("nutrient"), dict) else raw

    nutrient_id = _to_number(nutrient.get("id", raw.get("nutrientId")))
    name = str(nutrient.get("name") or raw.get("name") or raw.get("nutrientName") or "")
    unit_name = str(nutrient.get("unitName") or raw.get("unitName") or "")
    amount = _to_number(raw.get("amount", raw.get("value")))

    if not math.isfinite(nutrient_id) or not name or not math.isfinite(amount):
        return None
    return NutrientAmount(
        nutrient_id=int(nutrient_id),
        name=name,
        unit_name=unit_name,
        amount=amount,
    )


def normalize_food_details(raw: dict) -> FoodDetails:
    """Build a FoodDetails from an FDC food response.

    Invalid nutrient rows are dropped, duplicates are summed, and the result
    is sorted by nutrient id.
    """
    fdc_id_raw = _to_number(raw.get("fdcId"))
    fdc_id = int(fdc_id_raw) if math.isfinite(fdc_id_raw) else 0
    description = str(raw.get("description") or f"FDC {fdc_id}")

    rows = raw.get("foodNutrients")
    by_id: dict[int, NutrientAmount] = {}
    skipped = 0
    for row in rows if isinstance(rows, list) else []:
        n = normalize_nutrient(row)
        if n is None:
            skipped += 1
            continue
        existing = by_id.get(n.nutrient_id)
        if existing:
            existing.amount += n.amount
        else:
            by_id[n.nutrient_id] = n
    if skipped:
        logger.debug("Dropped %d unusable nutrient rows for food %s", skipped, fdc_id)

    serving_size = raw.get("servingSize")
    return FoodDetails(
        fdc_id=fdc_id,
        description=description,
        food_nutrients=[by_id[k] for k in sorted(by_id)],
        data_type=_to_str(raw.get("dataType")),
        brand_owner=_to_str(raw.get("brandOwner")),
        serving_size=float(serving_size)
        if isinstance(serving_size, (int, float)) and not isinstance(serving_size, bool)
        else None,
        serving_size_unit=_to_str(raw.get("servingSizeUnit")),
        last_fetched=datetime.now(timezone.utc).isoformat(),
    )
