"""
Health and metrics API routes.
"""
from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST

from projectflow.database import TaskDatabase
from projectflow.dependencies.services import get_db
from projectflow.monitoring import get_health_info, get_metrics

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(db: TaskDatabase = Depends(get_db)):
    """Health check with task store connectivity."""
    health_info = get_health_info(db)
    if health_info.get("status") == "unhealthy":
        return JSONResponse(content=health_info, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return health_info


@router.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(content=get_metrics(), media_type=CONTENT_TYPE_LATEST)
