#!/usr/bin/env python3
"""
Set recipe_type = "meal" on every recipe that has none.

Run once after adding the recipe_type column. Uses the record store chosen
by DATABASE (production or test).

Usage:
    python backend/scripts/set_recipe_types.py
    python backend/scripts/set_recipe_types.py --dry-run
"""

import argparse
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()
load_dotenv(Path(__file__).parent.parent.parent / ".env")

from app.config import get_settings
from app.models.recipes import RecipeType
from app.services.supabase import TABLES, get_supabase_client


def run_migration(dry_run: bool = False) -> int:
    """Returns the number of recipes that failed to update."""
    settings = get_settings()
    client = get_supabase_client()

    print(f"Database: {settings.database}")
    print("Fetching all recipes...")
    recipes = client.table(TABLES["recipes"]).select("id, name, recipe_type").order("name").execute().data or []
    print(f"Found {len(recipes)} recipes")
    print("-" * 50)

    updated = skipped = failed = 0
    for recipe in recipes:
        if recipe.get("recipe_type"):
            print(f"Skipped: {recipe['name']} (already {recipe['recipe_type']})")
            skipped += 1
            continue

        if dry_run:
            print(f"Would update: {recipe['name']} -> {RecipeType.MEAL.value}")
            updated += 1
            continue

        try:
            (
                client.table(TABLES["recipes"])
                .update({"recipe_type": RecipeType.MEAL.value})
                .eq("id", recipe["id"])
                .execute()
            )
            print(f"Updated: {recipe['name']} -> {RecipeType.MEAL.value}")
            updated += 1
        except Exception as e:
            print(f"Failed to update {recipe['name']}: {e}")
            failed += 1

    print("-" * 50)
    print(f"Updated: {updated}  Skipped: {skipped}  Failed: {failed}")
    return failed


def main():
    parser = argparse.ArgumentParser(description="Backfill recipe_type on recipes")
    parser.add_argument("--dry-run", action="store_true", help="Only report what would change")
    args = parser.parse_args()

    sys.exit(1 if run_migration(dry_run=args.dry_run) else 0)


if __name__ == "__main__":
    main()
