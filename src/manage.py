"""Poster Parlor catalogue management CLI.

Creates, drops and seeds the SQL catalogue named by ``CATALOG_DATABASE_URI``
(or ``--database``). The API and the load tests read prices and stock from
the same tables.

Usage:
    python src/manage.py setup-db                     # Create the products table
    python src/manage.py drop-db                      # Drop it
    python src/manage.py seed --stock 500             # Load the sample posters
    python src/manage.py seed --file products.json    # Load [{id, title, price, stock}, ...]
"""

import argparse
import json
import os
import sys

from catalogue import SqlCatalog

SAMPLE_POSTERS = [
    ("poster-001", "Starry Night", "100.00"),
    ("poster-002", "The Great Wave", "75.50"),
    ("poster-003", "Girl with a Pearl Earring", "300.00"),
    ("poster-004", "The Kiss", "149.00"),
    ("poster-005", "Water Lilies", "89.99"),
]


def _catalog(database_uri):
    uri = database_uri or os.getenv("CATALOG_DATABASE_URI", "")
    if not uri:
        print("No catalogue database: pass --database or set CATALOG_DATABASE_URI.")
        sys.exit(1)
    return SqlCatalog.from_uri(uri)


def setup_database(database_uri=None):
    catalog = _catalog(database_uri)
    try:
        catalog.create_schema()
        print("Catalogue schema ready.")
    finally:
        catalog.close()


def drop_database(database_uri=None):
    catalog = _catalog(database_uri)
    try:
        catalog.drop_schema()
        print("Catalogue schema dropped.")
    finally:
        catalog.close()


def seed_catalog(database_uri=None, path=None, stock=100):
    """Insert products, replacing any with the same id."""
    if path:
        with open(path) as handle:
            rows = [(row["id"], row["title"], row["price"], row.get("stock", stock)) for row in json.load(handle)]
    else:
        rows = [(product_id, title, price, stock) for product_id, title, price in SAMPLE_POSTERS]

    catalog = _catalog(database_uri)
    try:
        for product_id, title, price, units in rows:
            catalog.add_product(product_id, title, price, stock=int(units))
            print(f"  {product_id}: {title} @ {price} ({units} in stock)")
    finally:
        catalog.close()

    print(f"Seeded {len(rows)} products.")


def main():
    parser = argparse.ArgumentParser(description="Poster Parlor catalogue management")
    parser.add_argument("--database", help="SQLAlchemy URI (default: $CATALOG_DATABASE_URI)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create the catalogue tables")
    subparsers.add_parser("drop-db", help="Drop the catalogue tables")

    seed_parser = subparsers.add_parser("seed", help="Load products into the catalogue")
    seed_parser.add_argument("--file", help="JSON list of {id, title, price, stock}")
    seed_parser.add_argument("--stock", type=int, default=100, help="Stock for rows that do not set one")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database(args.database)
    elif args.command == "drop-db":
        drop_database(args.database)
    elif args.command == "seed":
        seed_catalog(args.database, args.file, args.stock)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
