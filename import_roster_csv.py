#!/usr/bin/env python3
"""
Standalone importer for event rosters.

Reads a names file (one name per line or comma-separated, no header) and
appends the names to an event session's roster in Redis. Use --replace to
swap out the existing roster instead.
"""

import argparse
import os
import sys
from pathlib import Path
from typing import Optional

import redis

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "hr_suite.settings")

import django  # noqa: E402

django.setup()

from hr_suite.session_store import EventSessionError, normalize_code, session_lock  # noqa: E402
from roster.ingestion import build_participants, has_allowed_extension, split_names  # noqa: E402
from roster.store import Roster, load_roster, save_roster  # noqa: E402


def _read_env_redis_url(base_dir: Path) -> Optional[str]:
    env_path = base_dir / ".env"
    if not env_path.exists():
        return None
    try:
        for raw in env_path.read_text(encoding="utf-8").splitlines():
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            if line.upper().startswith("REDIS_URL="):
                return line.split("=", 1)[1].strip().strip('"').strip("'")
    except OSError:
        return None
    return None


def main() -> int:
    base_dir = Path(__file__).resolve().parent

    parser = argparse.ArgumentParser(
        description="Load participant names from a file into an event session roster."
    )
    parser.add_argument("session_code", help="Event session code, e.g. AB12CD")
    parser.add_argument("path", help="Path to a .csv or .txt names file")
    parser.add_argument(
        "--redis-url",
        dest="redis_url",
        help="Redis URL (default: REDIS_URL from the environment or .env)",
    )
    parser.add_argument(
        "--encoding",
        default="utf-8-sig",
        help="File encoding (default: utf-8-sig)",
    )
    parser.add_argument(
        "--replace",
        action="store_true",
        help="Replace the existing roster instead of appending to it.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse the file only, do not touch Redis.",
    )

    args = parser.parse_args()

    try:
        code = normalize_code(args.session_code)
    except EventSessionError as exc:
        print(f"Invalid session code: {exc}", file=sys.stderr)
        return 2

    path = Path(args.path).expanduser()
    if not path.exists():
        print(f"File not found: {path}", file=sys.stderr)
        return 2
    if not has_allowed_extension(path.name):
        print("Only .csv and .txt files are supported.", file=sys.stderr)
        return 2

    try:
        text = path.read_text(encoding=args.encoding)
    except UnicodeDecodeError as exc:
        print(
            f"Failed to decode file. Consider using --encoding big5. Details: {exc}",
            file=sys.stderr,
        )
        return 2
    except OSError as exc:
        print(f"Failed to read file: {exc}", file=sys.stderr)
        return 2

    names = split_names(text)
    if args.dry_run:
        print(f"Dry-run: parsed {len(names)} names.")
        return 0

    redis_url = args.redis_url or os.environ.get("REDIS_URL") or _read_env_redis_url(base_dir)
    if not redis_url:
        print("REDIS_URL not provided and .env missing or invalid.", file=sys.stderr)
        return 2

    try:
        client = redis.Redis.from_url(redis_url, decode_responses=True)
        with session_lock(client, code):
            roster = Roster() if args.replace else load_roster(client, code)
            roster.extend(build_participants(names, roster.ids()))
            save_roster(client, code, roster)
    except (redis.RedisError, EventSessionError) as exc:
        print(f"Failed to import roster: {exc}", file=sys.stderr)
        return 3

    print(f"Imported {len(names)} names into session {code} ({len(roster)} total).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
