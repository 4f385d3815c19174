"""Recipe catalog from markdown notes with YAML frontmatter.

A recipe note looks like::

    ---
    type: recipe
    id: oatmeal
    tags: [breakfast]
    ingredients:
      - fdc_id: 173904
        description: Oats
        grams: 50
    ---
    Soak overnight.

The note body becomes the recipe's notes. ``id`` and ``name`` default to
the file stem.
"""

from __future__ import annotations

import logging
from pathlib import Path

import frontmatter
import yaml

from nutri_plan.models import Recipe
from nutri_plan.state import ingredient_from_dict, parse_tags

logger = logging.getLogger(__name__)


def discover_recipe_files(recipes_dir: Path, limit: int | None = None) -> list[Path]:
    """Find all .md files in the recipe directory."""
    files = sorted(recipes_dir.glob("*.md"))
    if limit:
        files = files[:limit]
    return files


def parse_recipe_file(file_path: Path) -> Recipe | None:
    """Parse a single recipe note, or None if it is not a recipe."""
    try:
        post = frontmatter.load(file_path)
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        logger.debug("Could not read %s: %s", file_path, e)
        return None

    meta = post.metadata
    if meta.get("type") != "recipe":
        return None

    ingredients = []
    for item in meta.get("ingredients") or []:
        if not isinstance(item, dict):
            logger.debug("%s: skipping non-mapping ingredient %r", file_path.name, item)
            continue
        ingredients.append(ingredient_from_dict(item))

    notes = post.content.strip() or None

    return Recipe(
        id=str(meta.get("id") or file_path.stem),
        name=str(meta.get("name") or file_path.stem),
        tags=parse_tags(meta.get("tags") or []),
        ingredients=ingredients,
        notes=notes,
    )


def load_recipe_dir(recipes_dir: Path, limit: int | None = None) -> list[Recipe]:
    """Parse every recipe note in a directory, skipping non-recipes."""
    recipes: list[Recipe] = []
    for f in discover_recipe_files(recipes_dir, limit=limit):
        recipe = parse_recipe_file(f)
        if recipe is None:
            logger.debug("SKIP (not a recipe or parse error): %s", f.name)
            continue
        recipes.append(recipe)
    logger.info("Loaded %d recipes from %s", len(recipes), recipes_dir)
    return recipes
