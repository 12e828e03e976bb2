"""Copy the attendee database to a timestamped file next to it."""

import argparse
import logging
import sqlite3
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from config import Settings
from logging_setup import setup_logging

logger = logging.getLogger(__name__)


def backup_db(db_path: Path, now: Optional[datetime] = None) -> Path:
    """Write a consistent copy of ``db_path`` using SQLite's online backup API."""
    db_path = Path(db_path)
    if not db_path.exists():
        raise FileNotFoundError(f"No DB file found at {db_path}")
    ts = (now or datetime.now()).strftime("%Y-%m-%dT%H-%M-%S-%f")
    out = db_path.with_name(f"{db_path.stem}-backup-{ts}{db_path.suffix}")

    src = sqlite3.connect(db_path)
    dst = sqlite3.connect(out)
    try:
        src.backup(dst)
    finally:
        dst.close()
        src.close()
    return out


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Back up the attendee database.")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory holding attendees.db (defaults to DATA_DIR or ./data)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    settings = Settings(data_dir=args.data_dir) if args.data_dir else Settings()
    setup_logging(settings.log_level)
    try:
        out = backup_db(settings.db_path)
    except FileNotFoundError as e:
        logger.error("%s", e)
        return 1
    logger.info("Backed up DB to %s", out)
    return 0


if __name__ == "__main__":
    sys.exit(main())
