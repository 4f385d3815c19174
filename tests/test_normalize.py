"""Tests for FoodData Central normalization."""

from nutri_plan.normalize import normalize_food_details, normalize_nutrient


class TestNormalizeNutrient:
    def test_nested_shape(self):
        row = {"nutrient": {"id": 1003, "name": "Protein", "unitName": "g"}, "amount": 13.2}
        n = normalize_nutrient(row)
        assert (n.nutrient_id, n.name, n.unit_name, n.amount) == (1003, "Protein", "g", 13.2)

    def test_flat_shape(self):
        row = {"nutrientId": 1008, "nutrientName": "Energy", "unitName": "KCAL", "value": 389}
        n = normalize_nutrient(row)
        assert (n.nutrient_id, n.name, n.unit_name, n.amount) == (1008, "Energy", "KCAL", 389)

    def test_numeric_strings_accepted(self):
        n = normalize_nutrient({"nutrientId": "1004", "name": "Fat", "unitName": "g", "amount": "6.9"})
        assert n.nutrient_id == 1004
        assert n.amount == 6.9

    def test_rejects_missing_amount(self):
        assert normalize_nutrient({"nutrient": {"id": 1003, "name": "Protein", "unitName": "g"}}) is None

    def test_rejects_missing_name(self):
        assert normalize_nutrient({"nutrientId": 1003, "amount": 1}) is None

    def test_rejects_bad_id(self):
        assert normalize_nutrient({"nutrientId": "abc", "name": "X", "amount": 1}) is None

    def test_rejects_non_dict(self):
        assert normalize_nutrient("protein") is None


class TestNormalizeFoodDetails:
    def test_full_record(self):
        raw = {
            "fdcId": 173904,
            "description": "Oats",
            "dataType": "SR Legacy",
            "servingSize": 40,
            "servingSizeUnit": "g",
            "foodNutrients": [
                {"nutrient": {"id": 1008, "name": "Energy", "unitName": "kcal"}, "amount": 389},
                {"nutrient": {"id": 1003, "name": "Protein", "unitName": "g"}, "amount": 16.9},
            ],
        }
        food = normalize_food_details(raw)
        assert food.fdc_id == 173904
        assert food.description == "Oats"
        assert food.data_type == "SR Legacy"
        assert food.brand_owner is None
        assert food.serving_size == 40
        assert food.serving_size_unit == "g"
        assert food.last_fetched is not None
        assert [n.nutrient_id for n in food.food_nutrients] == [1003, 1008]

    def test_duplicates_summed_and_invalid_dropped(self):
        raw = {
            "fdcId": 1,
            "description": "Dup",
            "foodNutrients": [
                {"nutrientId": 1003, "name": "Protein", "unitName": "g", "amount": 2},
                {"nutrientId": 1003, "name": "Protein", "unitName": "g", "amount": 3},
                {"nutrientId": 1004, "name": "Fat", "unitName": "g"},
                "junk",
            ],
        }
        food = normalize_food_details(raw)
        assert len(food.food_nutrients) == 1
        assert food.food_nutrients[0].amount == 5

    def test_missing_description_uses_id(self):
        food = normalize_food_details({"fdcId": 42})
        assert food.description == "FDC 42"
        assert food.food_nutrients == []
