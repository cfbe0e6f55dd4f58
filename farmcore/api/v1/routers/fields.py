"""
API router for the field and active location.
"""
from typing import Optional

from fastapi import APIRouter, status

from farmcore.api.dependencies import FieldServiceDep, LocationResolverDep
from farmcore.api.v1.models.requests import FieldSaveRequest, LocationUpdateRequest
from farmcore.domain.models import FarmField, FieldUpdate, ResolvedLocation


router = APIRouter(tags=["field"])


@router.get("/field", response_model=Optional[FarmField], summary="Get the registered field")
async def get_field(field_service: FieldServiceDep) -> Optional[FarmField]:
    return field_service.get_field()


@router.put(
    "/field",
    response_model=FarmField,
    summary="Create or update the field",
    description="""
    Only one field can be registered. Saving when a field exists merges the
    submitted attributes over it; the field id never changes.
    """,
    responses={400: {"description": "Missing name, coordinates or place text"}},
)
async def save_field(body: FieldSaveRequest, field_service: FieldServiceDep) -> FarmField:
    update = FieldUpdate(**body.model_dump(exclude_unset=True))
    return field_service.save_field(update)


@router.delete("/field", status_code=status.HTTP_204_NO_CONTENT, summary="Delete the field")
async def delete_field(field_service: FieldServiceDep) -> None:
    field_service.delete_field()


@router.put(
    "/field/location",
    response_model=ResolvedLocation,
    summary="Change the active location",
    description="""
    Geocodes a place name, or reverse-geocodes a map pin, and stores it on the
    field when one exists, otherwise as the saved preference location.
    """,
    responses={404: {"description": "No place matches the query"}},
)
async def update_location(
    body: LocationUpdateRequest,
    field_service: FieldServiceDep,
) -> ResolvedLocation:
    if body.text:
        return await field_service.update_location_from_text(body.text)
    return await field_service.update_location_from_coordinates(body.latitude, body.longitude)


@router.get("/location", response_model=ResolvedLocation, summary="Get the active location")
async def get_location(resolver: LocationResolverDep) -> ResolvedLocation:
    return resolver.resolve()
