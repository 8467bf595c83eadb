"""
Scan orchestration: run every provider evaluator concurrently, aggregate, persist once.

Each provider is isolated. A provider that fails, crashes or exceeds its timeout
contributes exactly one ERROR finding and never prevents the others from reporting.
run_scan() always returns a ScanResult and never raises.
"""

import asyncio
import logging
import secrets
import time
from datetime import datetime, timezone
from typing import Sequence

from app.schemas.provider import AwsConfig
from app.schemas.scan import CheckStatus, Finding, ScanResult, ScanStatus, ScanSummary, Severity
from app.services.collectors import (
    ComputeCollector,
    DatabaseCollector,
    IdentityCollector,
    StorageCollector,
    create_session,
)
from app.services.evaluators import (
    ComputeEvaluator,
    DatabaseEvaluator,
    Evaluator,
    IdentityEvaluator,
    StorageEvaluator,
)
from app.services.result_store import ScanResultStore

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER_TIMEOUT_SEC = 120.0


def generate_scan_id() -> str:
    """Return `scan-<epoch ms, 13 digits>-<8 hex>`; ids sort by creation time."""
    return f"scan-{int(time.time() * 1000):013d}-{secrets.token_hex(4)}"


def calculate_summary(findings: Sequence[Finding], scan_time: datetime) -> ScanSummary:
    passed = failed = errors = high = critical = 0
    for f in findings:
        if f.status == CheckStatus.PASS:
            passed += 1
        elif f.status == CheckStatus.FAIL:
            failed += 1
            if f.severity == Severity.HIGH:
                high += 1
            elif f.severity == Severity.CRITICAL:
                critical += 1
        else:
            errors += 1
    return ScanSummary(
        total_resources=len(findings),
        passed=passed,
        failed=failed,
        errors=errors,
        high_severity=high,
        critical_severity=critical,
        scan_time=scan_time,
    )


class ScanOrchestrator:
    """Runs one full scan across a fixed, ordered set of evaluators."""

    def __init__(
        self,
        evaluators: Sequence[Evaluator],
        store: ScanResultStore | None = None,
        provider_timeout: float = DEFAULT_PROVIDER_TIMEOUT_SEC,
    ) -> None:
        self._evaluators = list(evaluators)
        self._store = store
        self._provider_timeout = provider_timeout

    async def _run_provider(self, evaluator: Evaluator) -> list[Finding]:
        try:
            return await asyncio.wait_for(evaluator.run(), timeout=self._provider_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Provider scan timed out",
                extra={"provider": evaluator.provider, "timeout_sec": self._provider_timeout},
            )
            return [
                evaluator.error_finding(
                    f"Timed out after {self._provider_timeout:g} seconds"
                )
            ]

    async def _collect_findings(self) -> list[Finding]:
        outcomes = await asyncio.gather(
            *(self._run_provider(e) for e in self._evaluators),
            return_exceptions=True,
        )
        findings: list[Finding] = []
        for evaluator, outcome in zip(self._evaluators, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(
                    "Provider evaluator crashed",
                    extra={"provider": evaluator.provider, "error": repr(outcome)[:500]},
                )
                findings.append(evaluator.error_finding(str(outcome) or type(outcome).__name__))
                continue
            logger.info(
                "Provider findings collected",
                extra={"provider": evaluator.provider, "finding_count": len(outcome)},
            )
            findings.extend(outcome)
        return findings

    async def run_scan(self) -> ScanResult:
        start_time = datetime.now(timezone.utc)
        result = ScanResult(
            scan_id=generate_scan_id(),
            summary=calculate_summary([], start_time),
            start_time=start_time,
            status=ScanStatus.RUNNING,
        )
        logger.info(
            "Scan started",
            extra={"scan_id": result.scan_id, "providers": [e.provider for e in self._evaluators]},
        )

        findings: list[Finding] = []
        try:
            findings = await self._collect_findings()
            scan_time = datetime.now(timezone.utc)
            stamped = [f.model_copy(update={"timestamp": scan_time}) for f in findings]
            result = result.model_copy(
                update={
                    "findings": stamped,
                    "summary": calculate_summary(stamped, scan_time),
                    "end_time": datetime.now(timezone.utc),
                    "status": ScanStatus.COMPLETED,
                }
            )
        except Exception:
            logger.exception("Scan aggregation failed", extra={"scan_id": result.scan_id})
            result = self._failed_result(result, findings)

        await self._persist(result)
        summary = result.summary
        logger.info(
            "Scan finished",
            extra={
                "scan_id": result.scan_id,
                "status": result.status.value,
                "total": summary.total_resources,
                "passed": summary.passed,
                "failed": summary.failed,
                "errors": summary.errors,
                "duration_ms": int((result.end_time - result.start_time).total_seconds() * 1000),
            },
        )
        return result

    @staticmethod
    def _failed_result(result: ScanResult, findings: list[Finding]) -> ScanResult:
        """FAILED result whose summary is derived from the findings it keeps."""
        end_time = datetime.now(timezone.utc)
        kept = [f.model_copy(update={"timestamp": end_time}) for f in findings]
        try:
            summary = calculate_summary(kept, end_time)
        except Exception:
            logger.exception(
                "Summary of partial findings failed; dropping them",
                extra={"scan_id": result.scan_id, "finding_count": len(kept)},
            )
            kept = []
            summary = ScanSummary(scan_time=end_time)
        return result.model_copy(
            update={
                "findings": kept,
                "summary": summary,
                "end_time": end_time,
                "status": ScanStatus.FAILED,
            }
        )

    async def _persist(self, result: ScanResult) -> None:
        """Save off the event loop; the store's session calls block."""
        if self._store is None:
            return
        try:
            await asyncio.to_thread(self._store.save, result)
        except Exception:
            logger.exception("Scan result persistence failed", extra={"scan_id": result.scan_id})


def build_evaluators(aws_config: AwsConfig) -> list[Evaluator]:
    """One boto3 session shared by every collector; evaluator order fixes finding order."""
    session = create_session(aws_config)
    return [
        StorageEvaluator(StorageCollector.from_session(session, aws_config)),
        ComputeEvaluator(ComputeCollector.from_session(session, aws_config)),
        IdentityEvaluator(IdentityCollector.from_session(session, aws_config)),
        DatabaseEvaluator(DatabaseCollector.from_session(session, aws_config)),
    ]


def build_orchestrator(
    aws_config: AwsConfig,
    store: ScanResultStore | None,
    provider_timeout: float = DEFAULT_PROVIDER_TIMEOUT_SEC,
) -> ScanOrchestrator:
    return ScanOrchestrator(build_evaluators(aws_config), store, provider_timeout)
