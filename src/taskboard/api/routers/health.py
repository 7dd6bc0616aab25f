"""Liveness route."""

from __future__ import annotations

from fastapi import APIRouter

from ...deps import SettingsDependency
from ...schemas import HealthCheckResponse

router = APIRouter(tags=["system"])


@router.get("/health", response_model=HealthCheckResponse, summary="Report service liveness")
async def health(settings: SettingsDependency) -> HealthCheckResponse:
    return HealthCheckResponse(environment=settings.environment, version=settings.version)
