#!/usr/bin/env python3
"""
Mark an account as verified (or remove the badge).

Usage:
  python scripts/set_verified.py --username alice [--off]
"""
from __future__ import annotations

import argparse
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from prekclip.repositories.store import get_store
from prekclip.services.auth_service import AuthService
from prekclip.services.errors import NotFoundError


def main() -> None:
    ap = argparse.ArgumentParser(description="Toggle the verified badge of a user")
    ap.add_argument("--username", required=True, help="Exact username (case-sensitive)")
    ap.add_argument("--off", action="store_true", help="Remove the badge instead of granting it")
    args = ap.parse_args()

    username = (args.username or "").strip()
    if not username:
        raise SystemExit("Invalid username")

    service = AuthService(get_store())
    try:
        user = service.set_verified(username, not args.off)
    except NotFoundError:
        raise SystemExit(f"User '{username}' does not exist")
    print("OK: user updated")
    print(f"  ID: {user.id}")
    print(f"  Username: {user.username}")
    print(f"  Verified: {user.is_verified}")


if __name__ == "__main__":
    main()
