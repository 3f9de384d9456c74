"""One-off migration script: JSON (database.json) -> SQL backend."""
from __future__ import annotations

import argparse
import json
from pathlib import Path
import sys

# Make the prekclip package importable when run directly
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from prekclip.core.config import get_settings
from prekclip.domain.entities import Database
from prekclip.repositories.json_storage import db_defaults
from prekclip.repositories.sql_repository import SQLDocumentStorage


def _load_json(path: Path) -> Database:
    if not path.exists():
        raise SystemExit(f"File not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    return Database.from_dict(db_defaults(data))


def migrate(source: Path) -> Database:
    db = _load_json(source)
    storage = SQLDocumentStorage()
    storage.initialize()
    storage.save(db)
    return db


def main() -> None:
    ap = argparse.ArgumentParser(description="Copy a JSON document into the SQL backend (DATABASE_URL)")
    ap.add_argument("--source", help="JSON file (default: DATA_FILE setting)")
    args = ap.parse_args()

    source = Path(args.source) if args.source else get_settings().data_file
    db = migrate(source)
    print("JSON data migrated to SQL successfully.")
    print(f"  Users: {len(db.users)}")
    print(f"  Posts: {len(db.posts)}")
    print(f"  Sessions: {len(db.sessions)}")


if __name__ == "__main__":
    main()
