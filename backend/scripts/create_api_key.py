"""Issue an API key for the administration endpoints."""

from __future__ import annotations

import argparse
import datetime as dt
import logging
import sys
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[1]
sys.path.append(str(BASE_DIR))

from ams.core.config import settings  # noqa: E402
from ams.core.logging import setup_logging  # noqa: E402
from ams.db.session import SessionLocal  # noqa: E402
from ams.services.api_keys import issue_api_key  # noqa: E402

logger = logging.getLogger("ams.scripts.create_api_key")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("description", help="Who or what the key is for (max 100 chars).")
    parser.add_argument("--days", type=int, default=365, help="Lifetime in days (default: 365).")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(settings.LOG_LEVEL)
    if args.days <= 0:
        logger.error("--days must be positive")
        return 2

    db = SessionLocal()
    try:
        api_key = issue_api_key(db, args.description, lifetime=dt.timedelta(days=args.days))
    finally:
        db.close()

    print(f"{settings.API_KEY_HEADER_NAME}: {api_key.key}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
