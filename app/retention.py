"""
CLI entrypoint for the scan retention job. Run from cron, e.g.:

  python -m app.retention
  python -m app.retention --dry-run    # report what would be deleted

Or hourly: 0 * * * * cd /path/to/cloud-posture && .venv/bin/python -m app.retention
"""

import argparse
import logging
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.services.retention import run_retention

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Run retention: delete scans older than RETENTION_HOURS."""
    parser = argparse.ArgumentParser(description="Delete persisted scans older than RETENTION_HOURS.")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Count expired scans and log the oldest without deleting anything",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    db = SessionLocal()
    try:
        count = run_retention(db, settings, dry_run=args.dry_run)
        if args.dry_run:
            logger.info("Retention dry run completed: scans_expired=%s", count)
        else:
            logger.info(
                "Retention completed: scans_deleted=%s, window_hours=%s",
                count,
                settings.RETENTION_HOURS,
            )
        return 0
    except Exception as e:
        logger.exception("Retention job failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
