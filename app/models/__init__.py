"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.scan_result import SCAN_RECORD_TYPE, ScanRecord

__all__ = ["Base", "SCAN_RECORD_TYPE", "ScanRecord"]
