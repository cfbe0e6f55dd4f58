"""
API router for scan submission and the offline queue.
"""
from fastapi import APIRouter, Request

from farmcore.api.dependencies import (
    DailyQuotaDep,
    FieldServiceDep,
    OfflineQueueDep,
    ScanOrchestratorDep,
)
from farmcore.api.rate_limit import DEFAULT_LIMIT, limiter
from farmcore.api.v1.models.requests import ScanSubmitRequest
from farmcore.api.v1.models.responses import (
    AcknowledgeResponse,
    DroppedSubmissionsResponse,
    QuotaStatusResponse,
    ScanOutcomeResponse,
    ScanRecordResponse,
)
from farmcore.domain.models import DrainReport
from farmcore.domain.presentation import confidence_level


router = APIRouter(
    prefix="/scans",
    tags=["scans"],
)


@router.post(
    "",
    response_model=ScanOutcomeResponse,
    summary="Submit a leaf scan",
    description="""
    One scan is accepted per civil day (Asia/Bangkok). The image is
    quality-checked first unless `force` is set. When the classifier cannot be
    reached the scan is queued and a pending placeholder is returned; the
    daily scan counts as used either way.
    """,
    responses={
        429: {"description": "Daily scan limit reached or rate limit exceeded"},
    },
)
@limiter.limit(DEFAULT_LIMIT)
async def submit_scan(
    request: Request,
    body: ScanSubmitRequest,
    orchestrator: ScanOrchestratorDep,
    field_service: FieldServiceDep,
) -> ScanOutcomeResponse:
    field_id = body.field_id
    if field_id is None:
        field = field_service.get_field()
        field_id = field.id if field else None
    
    outcome = await orchestrator.submit_scan(
        body.image_ref,
        field_id,
        body.crop_type,
        force=body.force,
    )
    return ScanOutcomeResponse(
        status=outcome.status,
        record=outcome.record,
        confidence_level=confidence_level(outcome.record.confidence_percent) if outcome.record else None,
        issues=outcome.issues,
    )


@router.get("/latest", response_model=ScanRecordResponse, summary="Most recent scan result")
async def get_latest_scan(orchestrator: ScanOrchestratorDep) -> ScanRecordResponse:
    record = orchestrator.get_scan_record()
    return ScanRecordResponse(
        record=record,
        confidence_level=confidence_level(record.confidence_percent) if record else None,
    )


@router.get("/quota", response_model=QuotaStatusResponse, summary="Daily scan quota")
async def get_quota(quota: DailyQuotaDep, queue: OfflineQueueDep) -> QuotaStatusResponse:
    return QuotaStatusResponse(
        last_scan_date=quota.state.get_last_scan_date(),
        remaining_scans=quota.remaining_scans_today(),
        pending_submissions=len(queue.pending()),
    )


@router.post(
    "/queue/drain",
    response_model=DrainReport,
    summary="Deliver queued scans",
    description="Call when connectivity returns. A drain already running makes this a no-op.",
)
async def drain_queue(queue: OfflineQueueDep) -> DrainReport:
    return await queue.drain_queue()


@router.get(
    "/failures",
    response_model=DroppedSubmissionsResponse,
    summary="Queued scans dropped after exhausting retries",
)
async def list_failures(queue: OfflineQueueDep) -> DroppedSubmissionsResponse:
    return DroppedSubmissionsResponse(failures=queue.list_dropped())


@router.delete("/failures", response_model=AcknowledgeResponse, summary="Acknowledge dropped scans")
async def acknowledge_failures(queue: OfflineQueueDep) -> AcknowledgeResponse:
    return AcknowledgeResponse(cleared=queue.acknowledge_dropped())
