"""Trip endpoints - creation, action batches, snapshots, versions and audit trail."""

from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import Field

from itinerary_backend.app.api.auth import get_current_context
from itinerary_backend.app.api.dependencies import get_trip_action_service
from itinerary_backend.app.db.context import RequestContext
from itinerary_backend.app.models.actions import (
    MAX_ACTIONS_PER_BATCH,
    ApplyTripActionsResult,
    TripAction,
)
from itinerary_backend.app.models.trip import TripSnapshot, TripState, WireModel
from itinerary_backend.app.services.trip_actions import TripActionService
from itinerary_backend.app.travel.errors import (
    OperationConflictError,
    TripActionError,
    TripNotFoundError,
)

router = APIRouter(prefix="/trips", tags=["trips"])


class CreateTripRequest(WireModel):
    """Request body for POST /trips."""

    title: str | None = Field(None, min_length=1, max_length=1000, description="Trip title")


class CreateTripResponse(WireModel):
    """Response for POST /trips."""

    trip_id: str = Field(..., alias="tripId")


class ApplyActionsRequest(WireModel):
    """Request body for POST /trips/{trip_id}/actions/apply."""

    trip_id: str | None = Field(None, alias="tripId")
    client_operation_id: str = Field(
        ..., min_length=8, max_length=191, alias="clientOperationId"
    )
    assistant_message: str | None = Field(None, max_length=5000, alias="assistantMessage")
    trip_state_next: TripState | None = Field(None, alias="tripStateNext")
    actions: list[TripAction] = Field(..., min_length=1, max_length=MAX_ACTIONS_PER_BATCH)


class VersionSummary(WireModel):
    """One entry of GET /trips/{trip_id}/versions."""

    version_id: str = Field(..., alias="versionId")
    version: int
    base_version: int = Field(..., alias="baseVersion")
    client_operation_id: str = Field(..., alias="clientOperationId")
    summary: str | None = None
    created_by: str = Field(..., alias="createdBy")
    created_at: datetime = Field(..., alias="createdAt")


class VersionListResponse(WireModel):
    """Response for GET /trips/{trip_id}/versions."""

    versions: list[VersionSummary]


class ActionLogEntry(WireModel):
    """One audit row."""

    id: str
    version_id: str | None = Field(None, alias="versionId")
    client_operation_id: str = Field(..., alias="clientOperationId")
    action_index: int = Field(..., alias="actionIndex")
    action_type: str = Field(..., alias="actionType")
    payload: dict[str, Any]
    status: str
    error_text: str | None = Field(None, alias="errorText")
    created_by: str = Field(..., alias="createdBy")
    created_at: datetime = Field(..., alias="createdAt")


class ActionLogListResponse(WireModel):
    """Response for GET /trips/{trip_id}/action-logs."""

    logs: list[ActionLogEntry]


class DeleteActionLogsRequest(WireModel):
    """Request body for POST /trips/{trip_id}/action-logs/delete."""

    version_ids: list[str] = Field(..., max_length=1000, alias="versionIds")


class DeleteActionLogsResponse(WireModel):
    """Response for POST /trips/{trip_id}/action-logs/delete."""

    deleted: int


def to_http_error(error: TripActionError) -> HTTPException:
    """Map a service error to its HTTP status."""
    if isinstance(error, TripNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, OperationConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))
    return HTTPException(status_code=422, detail=str(error))


@router.post("", response_model=CreateTripResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    service: Annotated[TripActionService, Depends(get_trip_action_service)],
    request: CreateTripRequest | None = None,
) -> CreateTripResponse:
    """Create an empty trip owned by the caller."""
    trip_id = await service.create_trip(ctx.user_id, request.title if request else None)
    return CreateTripResponse(trip_id=trip_id)


@router.get(
    "/{trip_id}/snapshot", response_model=TripSnapshot, response_model_exclude_none=True
)
async def get_snapshot(
    trip_id: str,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    service: Annotated[TripActionService, Depends(get_trip_action_service)],
) -> TripSnapshot:
    """Get the trip's current snapshot."""
    try:
        return await service.get_trip_snapshot(ctx.user_id, trip_id)
    except TripActionError as e:
        raise to_http_error(e) from e


@router.post(
    "/{trip_id}/actions/apply",
    response_model=ApplyTripActionsResult,
    response_model_exclude_none=True,
)
async def apply_actions(
    trip_id: str,
    request: ApplyActionsRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    service: Annotated[TripActionService, Depends(get_trip_action_service)],
) -> ApplyTripActionsResult:
    """Apply an action batch to the trip.

    Args:
        trip_id: Trip from the path
        request: Batch with its idempotency key
        ctx: Request context (user_id)
        service: Trip action service

    Returns:
        Version number, replay flag and resulting snapshot

    Raises:
        HTTPException: 400 on trip id mismatch, 404 unknown trip, 409
            concurrent conflict, 422 rejected batch
    """
    if request.trip_id is not None and request.trip_id != trip_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Trip id mismatch between path and body",
        )

    try:
        return await service.apply_trip_actions(
            ctx.user_id,
            trip_id,
            request.client_operation_id,
            request.actions,
            assistant_message=request.assistant_message,
            trip_state_next=request.trip_state_next,
        )
    except TripActionError as e:
        raise to_http_error(e) from e


@router.get("/{trip_id}/versions", response_model=VersionListResponse)
async def list_versions(
    trip_id: str,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    service: Annotated[TripActionService, Depends(get_trip_action_service)],
) -> VersionListResponse:
    """List the trip's versions, newest first."""
    try:
        versions = await service.list_trip_versions(ctx.user_id, trip_id)
    except TripActionError as e:
        raise to_http_error(e) from e

    return VersionListResponse(
        versions=[
            VersionSummary(
                version_id=version.version_id,
                version=version.version_number,
                base_version=version.base_version,
                client_operation_id=version.client_operation_id,
                summary=version.summary,
                created_by=version.created_by,
                created_at=version.created_at,
            )
            for version in versions
        ]
    )


@router.get(
    "/{trip_id}/versions/{version_number}",
    response_model=TripSnapshot,
    response_model_exclude_none=True,
)
async def get_version_snapshot(
    trip_id: str,
    version_number: int,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    service: Annotated[TripActionService, Depends(get_trip_action_service)],
) -> TripSnapshot:
    """Get the stored snapshot of one version."""
    try:
        return await service.get_trip_version_snapshot(ctx.user_id, trip_id, version_number)
    except TripActionError as e:
        raise to_http_error(e) from e


@router.get("/{trip_id}/action-logs", response_model=ActionLogListResponse)
async def list_action_logs(
    trip_id: str,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    service: Annotated[TripActionService, Depends(get_trip_action_service)],
    limit: Annotated[int | None, Query(ge=1, le=500)] = None,
) -> ActionLogListResponse:
    """List audit rows, newest first."""
    logs = await service.list_trip_action_logs(ctx.user_id, trip_id, limit)

    return ActionLogListResponse(
        logs=[
            ActionLogEntry(
                id=log.log_id,
                version_id=log.version_id,
                client_operation_id=log.client_operation_id,
                action_index=log.action_index,
                action_type=log.action_type,
                payload=log.payload,
                status=log.status.value,
                error_text=log.error_text,
                created_by=log.created_by,
                created_at=log.created_at,
            )
            for log in logs
        ]
    )


@router.post("/{trip_id}/action-logs/delete", response_model=DeleteActionLogsResponse)
async def delete_action_logs(
    trip_id: str,
    request: DeleteActionLogsRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    service: Annotated[TripActionService, Depends(get_trip_action_service)],
) -> DeleteActionLogsResponse:
    """Delete audit rows that belong to the given versions."""
    deleted = await service.delete_trip_actions_by_version(
        ctx.user_id, trip_id, request.version_ids
    )
    return DeleteActionLogsResponse(deleted=deleted)
