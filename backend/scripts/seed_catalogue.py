#!/usr/bin/env python3
"""
Create the schema and load the sample storefront catalogue
(4 categories, 6 products) into the configured database.

Usage:
    python scripts/seed_catalogue.py [--reset]
"""
import argparse
import logging
import os
import sys

# allow running from repo/scripts
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.config import settings
from app.db import SessionLocal, init_db, seed_catalogue
from app.utils.logging import configure_logging

log = logging.getLogger("seed")


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--reset", action="store_true", help="drop and recreate all tables first")
    args = parser.parse_args(argv)

    configure_logging(settings.LOG_LEVEL)
    init_db(reset=args.reset)
    with SessionLocal() as s:
        created = seed_catalogue(s)
    if created:
        log.info("Seeded %d products into %s", created, settings.DATABASE_URL)
    else:
        log.info("Catalogue already present in %s, nothing to do", settings.DATABASE_URL)
    return 0


if __name__ == "__main__":
    sys.exit(main())
