"""Initialise the local wardrobe database and upload directory."""

from __future__ import annotations

import argparse
from pathlib import Path

from tools.binary_store import LocalBinaryStore
from tools.wardrobe_store import SQLiteWardrobeStore


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Initialise wardrobe storage")
    parser.add_argument(
        "--database",
        default="data/wardrobe.db",
        help="Path to the SQLite database holding wardrobe items.",
    )
    parser.add_argument(
        "--uploads",
        default="data/uploads",
        help="Directory that stores uploaded images.",
    )
    args = parser.parse_args(argv)

    db_path = Path(args.database)
    SQLiteWardrobeStore(database_path=db_path)  # creates the table and indexes
    LocalBinaryStore(root=args.uploads)
    print(f"Wardrobe storage ready at {db_path} (uploads in {args.uploads})")


if __name__ == "__main__":
    main()
