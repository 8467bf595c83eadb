"""Pydantic schemas for scan output: findings, summaries, and persisted scan results."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class ResourceType(str, Enum):
    """Kind of cloud resource a finding refers to."""

    OBJECT_STORE = "OBJECT_STORE"
    COMPUTE = "COMPUTE"
    IDENTITY = "IDENTITY"
    DATABASE = "DATABASE"
    NETWORK_ACL = "NETWORK_ACL"


class CheckStatus(str, Enum):
    """Outcome of a single check. ERROR means the status could not be determined."""

    PASS = "PASS"
    FAIL = "FAIL"
    ERROR = "ERROR"


class Severity(str, Enum):
    """Finding severity, ordered LOW < MEDIUM < HIGH < CRITICAL."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER.index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_ORDER: tuple[Severity, ...] = (
    Severity.LOW,
    Severity.MEDIUM,
    Severity.HIGH,
    Severity.CRITICAL,
)


class ScanStatus(str, Enum):
    """Lifecycle of a scan: RUNNING until it reaches COMPLETED or FAILED."""

    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class CamelModel(BaseModel):
    """Base for wire models: snake_case attributes, camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Finding(CamelModel):
    """Result of one check against one resource."""

    resource_type: ResourceType = Field(..., description="Kind of resource checked.")
    resource_id: str = Field(
        ...,
        min_length=1,
        description="Provider-assigned identifier, or a sentinel id for provider-level errors.",
    )
    check_name: str = Field(..., min_length=1, description="Stable human-readable check name.")
    status: CheckStatus
    severity: Severity
    message: str = Field(..., description="Human-readable explanation of the result.")
    timestamp: datetime | None = Field(
        default=None,
        description="Set by the orchestrator; identical for every finding in one scan.",
    )
    region: str | None = Field(default=None, description="Provider-reported location, if any.")


class ScanSummary(CamelModel):
    """Counts derived from a scan's findings. Never mutated independently of the findings."""

    total_resources: int = Field(default=0, ge=0)
    passed: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    errors: int = Field(default=0, ge=0)
    high_severity: int = Field(default=0, ge=0, description="Failed findings with HIGH severity.")
    critical_severity: int = Field(
        default=0, ge=0, description="Failed findings with CRITICAL severity."
    )
    scan_time: datetime

    @model_validator(mode="after")
    def check_totals(self) -> "ScanSummary":
        if self.passed + self.failed + self.errors != self.total_resources:
            raise ValueError("passed + failed + errors must equal total_resources")
        return self


class ScanResult(CamelModel):
    """Unit of persistence and retrieval: one end-to-end scan."""

    scan_id: str = Field(..., min_length=1, description="Time-ordered unique scan identifier.")
    summary: ScanSummary
    findings: list[Finding] = Field(default_factory=list)
    start_time: datetime
    end_time: datetime | None = None
    status: ScanStatus = ScanStatus.RUNNING


class ScanResponse(BaseModel):
    """Envelope for endpoints returning a full scan."""

    success: bool
    message: str | None = None
    data: ScanResult | None = None


class SummaryResponse(BaseModel):
    """Envelope for the latest-summary endpoint."""

    success: bool
    message: str | None = None
    data: ScanSummary | None = None


class ScanHistoryItem(CamelModel):
    """Scan listing entry without findings."""

    scan_id: str
    summary: ScanSummary
    start_time: datetime
    end_time: datetime | None = None
    status: ScanStatus
    findings_count: int = Field(..., ge=0)


class ScanHistoryResponse(BaseModel):
    """Envelope for the scan history endpoint."""

    success: bool
    message: str | None = None
    data: list[ScanHistoryItem] = Field(default_factory=list)
