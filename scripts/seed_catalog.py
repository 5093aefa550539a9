"""
Seed the default badge catalog — 15 topics x 3 levels (45 badges).

Usage:
    python scripts/seed_catalog.py              # Uses APP_ENV / development DB
    python scripts/seed_catalog.py --env production

This script is idempotent — safe to run multiple times.
"""

import argparse
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from badger import create_app
from badger.services.catalog_seed import CATALOG_BADGES
from badger.services.catalog_service import seed_catalog


def main():
    parser = argparse.ArgumentParser(description="Seed the 10xBadger badge catalog")
    parser.add_argument("--env", default=None, help="development | production (default: APP_ENV)")
    args = parser.parse_args()

    app = create_app(args.env)
    with app.app_context():
        created = seed_catalog(CATALOG_BADGES)
        print(f"Catalog seeded: {created} new badge(s), {len(CATALOG_BADGES) - created} already present.")


if __name__ == "__main__":
    main()
