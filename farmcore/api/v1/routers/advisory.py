"""
API router for the spray advisory.
"""
from typing import Optional

from fastapi import APIRouter, Query, Request

from farmcore.api.dependencies import AdvisoryServiceDep
from farmcore.api.rate_limit import DEFAULT_LIMIT, limiter
from farmcore.api.v1.models.requests import ClassifyRequest
from farmcore.domain.models import HourlySample
from farmcore.services.application.advisory_service import AdvisoryReport


router = APIRouter(
    prefix="/advisory",
    tags=["advisory"],
)


@router.get(
    "",
    response_model=AdvisoryReport,
    summary="Spray advisory for the active location",
    description="""
    Resolves the active location (field first, then saved preference),
    fetches the hourly forecast and classifies the next hours:
    
    - **dont** when any hour has rain probability ≥ 40% (reason rain) or
      wind ≥ 18 km/h (reason wind)
    - **caution** when any hour has rain ≥ 20% or wind ≥ 12 km/h
    - **good** otherwise
    
    The first run of hours with rain < 20% and wind < 12 km/h is returned as
    the next good window.
    """,
    responses={
        429: {"description": "Rate limit exceeded"},
        503: {"description": "Weather provider unavailable"},
    },
)
@limiter.limit(DEFAULT_LIMIT)
async def get_advisory(
    request: Request,
    advisory_service: AdvisoryServiceDep,
    lang: Optional[str] = Query(default=None, pattern="^(th|en)$"),
) -> AdvisoryReport:
    return await advisory_service.get_advisory(lang)


@router.post(
    "/classify",
    response_model=AdvisoryReport,
    summary="Classify supplied forecast hours",
)
async def classify_hours(
    body: ClassifyRequest,
    advisory_service: AdvisoryServiceDep,
) -> AdvisoryReport:
    samples = [HourlySample(**h.model_dump()) for h in body.hours]
    return advisory_service.build_report(samples, body.lang)
