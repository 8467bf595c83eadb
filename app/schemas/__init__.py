"""Pydantic request/response schemas."""

from app.schemas.health import HealthResponse
from app.schemas.provider import AwsConfig, AwsCredentials
from app.schemas.rules import RulesResponse, SecurityRule
from app.schemas.scan import (
    CheckStatus,
    Finding,
    ResourceType,
    ScanHistoryItem,
    ScanHistoryResponse,
    ScanResponse,
    ScanResult,
    ScanStatus,
    ScanSummary,
    Severity,
    SummaryResponse,
)

__all__ = [
    "AwsConfig",
    "AwsCredentials",
    "CheckStatus",
    "Finding",
    "HealthResponse",
    "ResourceType",
    "RulesResponse",
    "ScanHistoryItem",
    "ScanHistoryResponse",
    "ScanResponse",
    "ScanResult",
    "ScanStatus",
    "ScanSummary",
    "SecurityRule",
    "Severity",
    "SummaryResponse",
]
