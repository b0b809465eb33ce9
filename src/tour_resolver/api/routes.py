"""
API routes.

POST /tours                     resolve a destination into a tour
GET  /tours                     recent tours
GET  /tours/{tour_id}           one stored tour
GET  /health                    degradation level, source health, breakers
POST /admin/degradation-level   force a degradation level
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status

from tour_resolver.api.dependencies import (
    get_circuit_breakers,
    get_degradation_controller,
    get_orchestrator,
    get_settings,
    get_tour_repository,
)
from tour_resolver.api.models import (
    DegradationOverrideRequest,
    DegradationOverrideResponse,
    HealthResponse,
    TourListResponse,
    TourRequest,
    TourResponse,
)
from tour_resolver.config import Settings
from tour_resolver.degradation.circuit_breaker import CircuitBreakerRegistry
from tour_resolver.degradation.controller import DegradationController
from tour_resolver.persistence.repository import RedisTourRepository
from tour_resolver.resolution.orchestrator import TourOrchestrator

logger = structlog.get_logger(__name__)

router = APIRouter()


def _require_repository(
    repository: Optional[RedisTourRepository] = Depends(get_tour_repository),
) -> RedisTourRepository:
    if repository is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tour persistence is disabled")
    return repository


@router.post(
    "/tours",
    response_model=TourResponse,
    status_code=status.HTTP_200_OK,
    summary="Resolve a destination into a tour",
    responses={
        400: {"description": "Blank destination"},
        502: {"description": "Landmark suggestions unavailable"},
    },
    tags=["tours"],
)
async def create_tour(
    request: TourRequest,
    orchestrator: TourOrchestrator = Depends(get_orchestrator),
) -> TourResponse:
    logger.info("Tour requested", destination=request.destination)
    resolution = await orchestrator.resolve_tour(request.destination)
    return TourResponse(tour=resolution)


@router.get("/tours", response_model=TourListResponse, tags=["tours"])
async def list_tours(
    limit: int = Query(default=20, ge=1, le=100),
    destination: Optional[str] = Query(default=None, max_length=200),
    repository: RedisTourRepository = Depends(_require_repository),
) -> TourListResponse:
    if destination:
        tours = await repository.get_tours_for_destination(destination, limit)
    else:
        tours = await repository.get_recent_tours(limit)
    return TourListResponse(tours=tours, count=len(tours))


@router.get("/tours/{tour_id}", response_model=TourResponse, tags=["tours"])
async def get_tour(
    tour_id: str,
    repository: RedisTourRepository = Depends(_require_repository),
) -> TourResponse:
    tour = await repository.get_tour(tour_id)
    if tour is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Tour {tour_id} not found")
    return TourResponse(tour=tour)


@router.get("/health", response_model=HealthResponse, tags=["ops"])
async def health(
    controller: DegradationController = Depends(get_degradation_controller),
    breakers: CircuitBreakerRegistry = Depends(get_circuit_breakers),
    settings: Settings = Depends(get_settings),
) -> HealthResponse:
    system_health = await controller.get_system_health()
    level = system_health["degradation_level"]
    if level == 0:
        overall = "ok"
    elif level < 4:
        overall = "degraded"
    else:
        overall = "minimal"
    return HealthResponse(
        status=overall,
        version=settings.APP_VERSION,
        degradation=system_health,
        circuit_breakers=breakers.all_metrics(),
    )


@router.post(
    "/admin/degradation-level",
    response_model=DegradationOverrideResponse,
    tags=["ops"],
)
async def force_degradation_level(
    request: DegradationOverrideRequest,
    controller: DegradationController = Depends(get_degradation_controller),
) -> DegradationOverrideResponse:
    if not controller.force_level(request.level):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown degradation level {request.level}",
        )
    policy = controller.get_current_policy()
    logger.warning("Degradation level forced via API", level=policy.level, name=policy.name)
    return DegradationOverrideResponse(
        level=policy.level,
        name=policy.name,
        enabled_sources=sorted(policy.enabled_sources),
        timeout_ms=policy.timeout_ms,
    )
