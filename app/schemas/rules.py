"""Pydantic schemas for the static security rule catalog."""

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.scan import CamelModel, ResourceType, Severity


class SecurityRule(CamelModel):
    """Descriptive metadata for one benchmark rule. Not consulted during evaluation."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Benchmark identifier, e.g. CIS-1.5.")
    name: str = Field(..., min_length=1)
    description: str
    resource_type: ResourceType
    severity: Severity
    category: str
    recommendation: str


class RulesResponse(BaseModel):
    """Envelope for the rule catalog endpoint."""

    success: bool
    message: str | None = None
    data: list[SecurityRule] = Field(default_factory=list)
