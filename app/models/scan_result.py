"""ORM model for persisted scan results."""

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, func
from sqlalchemy.dialects.postgresql import JSONB

from app.models.base import Base

# Partition key of the recency index; every scan row carries it.
SCAN_RECORD_TYPE = "SCAN"


class ScanRecord(Base):
    """
    One completed or failed scan, written once and never updated.

    payload holds the full ScanResult in its JSON wire form (ISO-8601 datetimes).
    started_at and id back the "latest scan" query: newest start first, ties by insertion order.
    """

    __tablename__ = "scan_results"
    __table_args__ = (
        Index("ix_scan_results_recency", "record_type", "started_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    scan_id = Column(String(64), nullable=False, unique=True, index=True)
    record_type = Column(String(16), nullable=False, default=SCAN_RECORD_TYPE)
    status = Column(String(16), nullable=False)
    started_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    payload = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)
