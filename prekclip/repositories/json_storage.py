"""
Flat-file persistence adapter.

The whole document (users, posts, sessions) lives in one JSON file that is
read completely on ``load`` and replaced completely on ``save``.
"""

from __future__ import annotations

from pathlib import Path
import json
import logging
import os
import tempfile

from prekclip.domain.entities import Database

logger = logging.getLogger(__name__)


def db_defaults(db: dict) -> dict:
    db.setdefault("users", [])
    db.setdefault("posts", [])
    db.setdefault("sessions", {})
    return db


class JsonDocumentStorage:
    """Reads and writes the document as ``database.json``."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> Database:
        if not self.path.exists():
            return Database()
        with self.path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
        return Database.from_dict(db_defaults(raw))

    def save(self, db: Database) -> None:
        # Written next to the target and renamed, so readers never see half a file.
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(db.to_dict(), ensure_ascii=False, indent=2)
        fd, tmp_name = tempfile.mkstemp(prefix=".database-", suffix=".json", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.path)
        except OSError:
            logger.exception("Failed to write %s", self.path)
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def initialize(self) -> None:
        if not self.path.exists():
            self.save(Database())
