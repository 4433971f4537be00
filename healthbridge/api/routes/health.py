"""Health record endpoints.

Each endpoint dispatches one canonical operation. Request and response
bodies are camelCase; absent optional fields are left out of responses.
"""

from fastapi import APIRouter, Depends, Response

from healthbridge.api.deps import get_health_service
from healthbridge.schemas.health import (
    AuthorizationRequest,
    AuthorizationStatus,
    AvailabilityResult,
    QueryHydrationRequest,
    QueryHydrationResult,
    QuerySleepRequest,
    QuerySleepResult,
    QueryWorkoutsRequest,
    QueryWorkoutsResult,
    ReadSamplesRequest,
    ReadSamplesResult,
    SaveSampleRequest,
    VersionResult,
)
from healthbridge.services.health import HealthService

router = APIRouter()


@router.get("/available", response_model=AvailabilityResult, response_model_exclude_none=True)
async def is_available(service: HealthService = Depends(get_health_service)):
    """Whether the platform store can be used, and why not."""
    return await service.is_available()


@router.get("/version", response_model=VersionResult)
async def get_plugin_version(service: HealthService = Depends(get_health_service)):
    return service.get_plugin_version()


@router.post("/authorization/request", response_model=AuthorizationStatus)
async def request_authorization(
    request: AuthorizationRequest,
    service: HealthService = Depends(get_health_service),
):
    """Request read/write access, handing off to consent when needed."""
    return await service.request_authorization(request)


@router.post("/authorization/check", response_model=AuthorizationStatus)
async def check_authorization(
    request: AuthorizationRequest,
    service: HealthService = Depends(get_health_service),
):
    """Report authorization status without prompting."""
    return await service.check_authorization(request)


@router.post("/samples/read", response_model=ReadSamplesResult, response_model_exclude_none=True)
async def read_samples(
    request: ReadSamplesRequest,
    service: HealthService = Depends(get_health_service),
):
    return await service.read_samples(request)


@router.post("/samples", status_code=204)
async def save_sample(
    request: SaveSampleRequest,
    service: HealthService = Depends(get_health_service),
):
    await service.save_sample(request)
    return Response(status_code=204)


@router.post("/workouts/query", response_model=QueryWorkoutsResult, response_model_exclude_none=True)
async def query_workouts(
    request: QueryWorkoutsRequest,
    service: HealthService = Depends(get_health_service),
):
    """Workout sessions with energy and distance totals where available."""
    return await service.query_workouts(request)


@router.post("/sleep/query", response_model=QuerySleepResult, response_model_exclude_none=True)
async def query_sleep(
    request: QuerySleepRequest,
    service: HealthService = Depends(get_health_service),
):
    return await service.query_sleep(request)


@router.post(
    "/hydration/query", response_model=QueryHydrationResult, response_model_exclude_none=True
)
async def query_hydration(
    request: QueryHydrationRequest,
    service: HealthService = Depends(get_health_service),
):
    return await service.query_hydration(request)
