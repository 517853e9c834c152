#!/usr/bin/env python3
"""
Seed Script

Inserts the starter attributes and user types. Safe to run repeatedly:
slugs that already exist are left untouched.
Usage: python scripts/seed_catalogue.py
"""
import sys
sys.path.insert(0, '.')

from backoffice.core.logging_config import configure_logging
from backoffice.db.mongodb import init_mongo_indexes
from backoffice.services.seed_service import seed_catalogue


def main():
    configure_logging()
    init_mongo_indexes()
    inserted = seed_catalogue()
    print(f"Attributes added: {inserted['attributes']}")
    print(f"User types added: {inserted['user_types']}")


if __name__ == "__main__":
    main()
