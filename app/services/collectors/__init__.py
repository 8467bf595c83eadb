"""Read-only provider collectors producing normalized resource sets."""

from app.services.collectors.base import Collector, CollectorError, create_session
from app.services.collectors.compute import ComputeCollector
from app.services.collectors.database import DatabaseCollector
from app.services.collectors.identity import IdentityCollector
from app.services.collectors.storage import StorageCollector

__all__ = [
    "Collector",
    "CollectorError",
    "ComputeCollector",
    "DatabaseCollector",
    "IdentityCollector",
    "StorageCollector",
    "create_session",
]
