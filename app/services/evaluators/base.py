"""Evaluator base: run a collector, apply pure check functions, contain every failure."""

import logging
from abc import ABC, abstractmethod
from typing import Any

from app.schemas.scan import CheckStatus, Finding, ResourceType, Severity
from app.services.collectors.base import Collector, CollectorError

logger = logging.getLogger(__name__)


def check_result(
    *,
    resource_type: ResourceType,
    resource_id: str,
    check_name: str,
    passed: bool,
    fail_severity: Severity,
    pass_message: str,
    fail_message: str,
    region: str | None = None,
) -> Finding:
    """Build one PASS/FAIL finding. Passing checks are always LOW severity."""
    return Finding(
        resource_type=resource_type,
        resource_id=resource_id,
        check_name=check_name,
        status=CheckStatus.PASS if passed else CheckStatus.FAIL,
        severity=Severity.LOW if passed else fail_severity,
        message=pass_message if passed else fail_message,
        region=region,
    )


class Evaluator(ABC):
    """
    One provider's fixed, ordered set of checks.

    evaluate() is pure and may raise on malformed input; run() never raises. Any failure
    there (collection or evaluation) is reported as exactly one ERROR finding with the
    provider's sentinel resource id, and no partial findings.
    """

    provider: str = ""
    resource_type: ResourceType = ResourceType.COMPUTE

    def __init__(self, collector: Collector[Any]) -> None:
        self._collector = collector

    @property
    def sentinel_id(self) -> str:
        return f"{self.provider}-SCANNER"

    @abstractmethod
    def evaluate(self, resources: Any) -> list[Finding]:
        """Map a normalized resource set to findings; no I/O."""

    def error_finding(self, message: str) -> Finding:
        return Finding(
            resource_type=self.resource_type,
            resource_id=self.sentinel_id,
            check_name=f"{self.provider} Scan",
            status=CheckStatus.ERROR,
            severity=Severity.HIGH,
            message=f"Error scanning {self.provider}: {message}",
        )

    async def run(self) -> list[Finding]:
        try:
            resources = await self._collector.collect()
            findings = self.evaluate(resources)
        except CollectorError as e:
            logger.warning(
                "Provider collection failed",
                extra={"provider": self.provider, "reason": e.message[:500]},
            )
            return [self.error_finding(e.message)]
        except Exception as e:
            logger.exception("Provider evaluation failed", extra={"provider": self.provider})
            return [self.error_finding(str(e) or type(e).__name__)]
        logger.info(
            "Provider scan complete",
            extra={"provider": self.provider, "finding_count": len(findings)},
        )
        return findings
