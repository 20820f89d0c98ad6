"""HTTP route definitions for the service."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from app.schemas import (
    DebugInfo,
    HistoryEntry,
    LatestPlaceholder,
    SensorReading,
    ServiceStatus,
    StoreProbe,
    StoreStatus,
    SubmissionAccepted,
)
from errors import InvalidSubmissionError, StoreError
from services.normalization import placeholder_reading
from services.readings import ReadingService, build_default_service
from settings import Settings, get_settings

router = APIRouter()


def get_service() -> ReadingService:
    return build_default_service()


def _server_time() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get(
    "/",
    response_model=ServiceStatus,
    summary="Service status and store connectivity.",
    status_code=status.HTTP_200_OK,
)
async def root(
    service: ReadingService = Depends(get_service),
    settings: Settings = Depends(get_settings),
) -> ServiceStatus:
    return ServiceStatus(
        timestamp=_server_time(),
        store=StoreStatus(
            backend=service.store.backend,
            project=settings.firebase.project_id,
            connected=service.connected,
        ),
    )


@router.post(
    "/api/sensor",
    response_model=SubmissionAccepted,
    summary="Accept a reading pushed by the device.",
)
async def submit_reading(
    request: Request,
    service: ReadingService = Depends(get_service),
) -> SubmissionAccepted:
    try:
        body = await request.json()
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Sensor data must be a JSON object.",
        ) from exc

    try:
        await service.submit(body)
    except InvalidSubmissionError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except StoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to store sensor data: {exc}",
        ) from exc
    return SubmissionAccepted()


@router.get(
    "/api/sensor/latest",
    response_model=SensorReading,
    summary="Most recent reading, or a zero-valued placeholder with 404.",
    responses={status.HTTP_404_NOT_FOUND: {"model": LatestPlaceholder}},
)
async def get_latest(service: ReadingService = Depends(get_service)):
    try:
        reading = await service.latest()
    except StoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to read latest sensor data: {exc}",
        ) from exc
    if reading is None:
        placeholder = placeholder_reading(now_ms=service.clock())
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=placeholder.model_dump(by_alias=True),
        )
    return reading


@router.get(
    "/api/sensor/history",
    response_model=List[HistoryEntry],
    summary="Up to the 20 most recent readings, oldest first.",
)
async def get_history(service: ReadingService = Depends(get_service)) -> List[HistoryEntry]:
    try:
        return await service.history()
    except StoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to read sensor history: {exc}",
        ) from exc


@router.get(
    "/api/debug",
    response_model=DebugInfo,
    summary="Non-secret configuration for troubleshooting.",
)
async def debug_info(
    service: ReadingService = Depends(get_service),
    settings: Settings = Depends(get_settings),
) -> DebugInfo:
    firebase = settings.firebase
    return DebugInfo(
        environment=settings.app_env,
        store_backend=service.store.backend,
        store_root_path=settings.store_root_path,
        project_id=firebase.project_id,
        database_url=firebase.database_url,
        client_email=firebase.client_email,
        has_private_key=firebase.has_private_key,
        cors_origins=list(settings.cors_origins),
        connected=service.connected,
        server_time=_server_time(),
    )


@router.get(
    "/api/test-firebase",
    response_model=StoreProbe,
    summary="Write and read back a probe record in the store.",
)
async def probe_store(service: ReadingService = Depends(get_service)) -> StoreProbe:
    try:
        data = await service.probe_store()
    except StoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Store connection failed: {exc}",
        ) from exc
    return StoreProbe(message="Store connection successful", data=data)
