#!/usr/bin/env python3
"""
Load a catalog from CSV files into the database, so the database source has
something to export. Existing categories and products are updated in place.
"""

import sys

from catalog_export.catalog.source import CatalogSourceError
from catalog_export.processors.csv_source import CSVCatalogSource
from catalog_export.storage.database import DatabaseManager
from catalog_export.utils.config_helper import get_config


def main():
    """Read the configured CSV files and save them to the database."""
    config = get_config()

    source = CSVCatalogSource(config.get_categories_csv_path(), config.get_products_csv_path())
    try:
        categories = source.fetch_categories_with_products()
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Failed to read CSV catalog: {e}")
        return 1

    print(f"✓ Read {len(categories)} categories from CSV")

    db = DatabaseManager(config.get_database_url())
    if not db.connect():
        print("❌ Failed to connect to database")
        return 1

    print("✓ Connected to database")

    try:
        if not db.create_tables():
            print("❌ Failed to create tables")
            return 1
        saved = db.save_catalog(categories)
    except CatalogSourceError as e:
        print(f"❌ Failed to save catalog: {e}")
        return 1
    finally:
        db.disconnect()

    print(f"✓ Saved {saved} categories ({sum(category.count for category in categories)} products)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
