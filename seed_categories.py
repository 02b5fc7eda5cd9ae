#!/usr/bin/env python3
"""
Script to populate the default beauty categories.
Safe to re-run: existing categories are left untouched.
"""

import logging
from dotenv import load_dotenv

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

load_dotenv()

from config import Config  # noqa: E402
from database import unit_of_work  # noqa: E402
from demiland import create_app  # noqa: E402
from demiland.models import Category  # noqa: E402


def seed_categories(names=None):
    """Inserts every missing category name and returns how many were created."""
    names = names or Config.DEFAULT_CATEGORIES
    created_count = 0
    with unit_of_work() as s:
        existing = {name.lower() for (name,) in s.query(Category.name).all()}
        for name in names:
            if name.lower() in existing:
                logger.info(f"Category already present: {name}")
                continue
            s.add(Category(name=name, description=f"{name} products", is_active=True))
            created_count += 1
    logger.info(f"✅ Created {created_count} categories")
    return created_count


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        seed_categories()
