"""Scan endpoints: trigger a scan, fetch the latest or a specific scan, list recent scans."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.config import get_aws_config, settings
from app.core.database import get_db
from app.schemas.scan import (
    ScanHistoryItem,
    ScanHistoryResponse,
    ScanResponse,
    ScanStatus,
    SummaryResponse,
)
from app.services.result_store import ScanResultStore
from app.services.scan_service import ScanOrchestrator, build_orchestrator

router = APIRouter()

NO_SCANS_MESSAGE = "No scan results found. Run a scan first."
DEFAULT_HISTORY_LIMIT = 20


def get_result_store(db: Annotated[Session, Depends(get_db)]) -> ScanResultStore:
    return ScanResultStore(db)


def get_orchestrator(
    store: Annotated[ScanResultStore, Depends(get_result_store)],
) -> ScanOrchestrator:
    """Fresh orchestrator per request; provider clients are built from current settings."""
    return build_orchestrator(
        get_aws_config(settings),
        store,
        provider_timeout=settings.SCAN_PROVIDER_TIMEOUT_SEC,
    )


@router.post("", response_model=ScanResponse)
async def trigger_scan(
    orchestrator: Annotated[ScanOrchestrator, Depends(get_orchestrator)],
):
    """
    Run a full scan across all providers and return the result.

    Provider failures show up as ERROR findings in a COMPLETED scan. Only a scan that
    could not be aggregated is FAILED; it is still returned (with HTTP 500) and persisted.
    """
    result = await orchestrator.run_scan()
    if result.status == ScanStatus.FAILED:
        body = ScanResponse(success=False, message="Scan failed", data=result)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=body.model_dump(mode="json", by_alias=True),
        )
    return ScanResponse(success=True, message="Scan completed", data=result)


@router.get("", response_model=ScanHistoryResponse)
def list_scans(
    store: Annotated[ScanResultStore, Depends(get_result_store)],
    limit: Annotated[int, Query(ge=1)] = DEFAULT_HISTORY_LIMIT,
) -> ScanHistoryResponse:
    """Recent scans, newest first, without findings. limit is capped at SCAN_HISTORY_MAX_LIMIT."""
    results = store.list_recent(min(limit, settings.SCAN_HISTORY_MAX_LIMIT))
    items = [
        ScanHistoryItem(
            scan_id=r.scan_id,
            summary=r.summary,
            start_time=r.start_time,
            end_time=r.end_time,
            status=r.status,
            findings_count=len(r.findings),
        )
        for r in results
    ]
    return ScanHistoryResponse(success=True, data=items)


@router.get("/latest", response_model=ScanResponse)
def get_latest_scan(
    store: Annotated[ScanResultStore, Depends(get_result_store)],
) -> ScanResponse:
    result = store.get_latest()
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NO_SCANS_MESSAGE)
    return ScanResponse(success=True, data=result)


@router.get("/latest/summary", response_model=SummaryResponse)
def get_latest_summary(
    store: Annotated[ScanResultStore, Depends(get_result_store)],
) -> SummaryResponse:
    result = store.get_latest()
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NO_SCANS_MESSAGE)
    return SummaryResponse(success=True, data=result.summary)


@router.get("/{scan_id}", response_model=ScanResponse)
def get_scan(
    scan_id: str,
    store: Annotated[ScanResultStore, Depends(get_result_store)],
) -> ScanResponse:
    result = store.get_by_id(scan_id)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Scan {scan_id} not found",
        )
    return ScanResponse(success=True, data=result)
