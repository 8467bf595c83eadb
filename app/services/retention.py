"""Data retention: delete persisted scans older than RETENTION_HOURS."""

import logging
from datetime import datetime, timezone, timedelta
from typing import TYPE_CHECKING

from sqlalchemy.orm import Query, Session

from app.models import ScanRecord

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def retention_cutoff(settings: "Settings", now: datetime | None = None) -> datetime:
    """Scans that started strictly before this instant are expired."""
    now = now or datetime.now(timezone.utc)
    return now - timedelta(hours=settings.RETENTION_HOURS)


def _expired(session: Session, cutoff: datetime) -> Query:
    return session.query(ScanRecord).filter(ScanRecord.started_at < cutoff)


def run_retention(session: Session, settings: "Settings", dry_run: bool = False) -> int:
    """
    Delete scans whose start time is older than RETENTION_HOURS.

    Returns the number of scans deleted, or with dry_run the number that would be.
    Idempotent: safe to run repeatedly. Nothing is committed when no scan has expired.
    """
    if not settings.RETENTION_ENABLED:
        logger.info("Retention is disabled (RETENTION_ENABLED=false); skipping.")
        return 0

    cutoff = retention_cutoff(settings)
    oldest = (
        session.query(ScanRecord.scan_id, ScanRecord.started_at)
        .filter(ScanRecord.started_at < cutoff)
        .order_by(ScanRecord.started_at.asc(), ScanRecord.id.asc())
        .first()
    )
    if oldest is None:
        logger.debug("Retention run: no scans older than %s", cutoff.isoformat())
        return 0

    if dry_run:
        expired_count = _expired(session, cutoff).count()
        logger.info(
            "Retention dry run: cutoff=%s, scans_expired=%s, oldest=%s (started %s)",
            cutoff.isoformat(),
            expired_count,
            oldest.scan_id,
            oldest.started_at.isoformat(),
            extra={"scan_id": oldest.scan_id},
        )
        return expired_count

    deleted_count = _expired(session, cutoff).delete(synchronize_session=False)
    session.commit()
    logger.info(
        "Retention run: cutoff=%s, scans_deleted=%s, oldest=%s (started %s)",
        cutoff.isoformat(),
        deleted_count,
        oldest.scan_id,
        oldest.started_at.isoformat(),
        extra={"scan_id": oldest.scan_id},
    )
    return deleted_count
