"""Persistence of scan results: write once, read latest / by id / recent history."""

import logging
from datetime import timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import SCAN_RECORD_TYPE, ScanRecord
from app.schemas.scan import ScanResult

logger = logging.getLogger(__name__)


class ResultStoreError(Exception):
    """Raised when persisted scans cannot be read."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


def _as_utc(value):
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_result(record: ScanRecord) -> ScanResult:
    return ScanResult.model_validate(record.payload)


class ScanResultStore:
    """
    Scan result repository over a SQLAlchemy session.

    Records are immutable: save() never overwrites an existing scan_id. Saves are best
    effort (errors rolled back and logged); reads raise ResultStoreError.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def save(self, result: ScanResult) -> None:
        try:
            exists = (
                self._session.query(ScanRecord.id)
                .filter(ScanRecord.scan_id == result.scan_id)
                .first()
            )
            if exists is not None:
                logger.warning(
                    "Scan already persisted; leaving existing record unchanged",
                    extra={"scan_id": result.scan_id},
                )
                return
            record = ScanRecord(
                scan_id=result.scan_id,
                record_type=SCAN_RECORD_TYPE,
                status=result.status.value,
                started_at=_as_utc(result.start_time),
                payload=result.model_dump(mode="json", by_alias=True),
            )
            self._session.add(record)
            self._session.commit()
        except SQLAlchemyError as e:
            self._session.rollback()
            logger.error(
                "Failed to persist scan result",
                extra={"scan_id": result.scan_id, "error": str(e)[:500]},
            )
            return
        logger.info(
            "Scan result persisted",
            extra={"scan_id": result.scan_id, "status": result.status.value},
        )

    def get_latest(self) -> ScanResult | None:
        try:
            record = (
                self._session.query(ScanRecord)
                .filter(ScanRecord.record_type == SCAN_RECORD_TYPE)
                .order_by(ScanRecord.started_at.desc(), ScanRecord.id.desc())
                .first()
            )
        except SQLAlchemyError as e:
            raise ResultStoreError("Failed to load latest scan", cause=e) from e
        return _to_result(record) if record is not None else None

    def get_by_id(self, scan_id: str) -> ScanResult | None:
        try:
            record = (
                self._session.query(ScanRecord)
                .filter(ScanRecord.scan_id == scan_id)
                .first()
            )
        except SQLAlchemyError as e:
            raise ResultStoreError(f"Failed to load scan {scan_id}", cause=e) from e
        return _to_result(record) if record is not None else None

    def list_recent(self, limit: int) -> list[ScanResult]:
        """Newest first, same ordering as get_latest."""
        try:
            records = (
                self._session.query(ScanRecord)
                .filter(ScanRecord.record_type == SCAN_RECORD_TYPE)
                .order_by(ScanRecord.started_at.desc(), ScanRecord.id.desc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            raise ResultStoreError("Failed to list scans", cause=e) from e
        return [_to_result(r) for r in records]
