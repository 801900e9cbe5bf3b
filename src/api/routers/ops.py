import logging
import os

from fastapi import APIRouter, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from api import state

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint for container orchestration."""
    health = {
        "status": "healthy",
        "profile": os.getenv("DEPLOYMENT_PROFILE", "unknown"),
        "ai": state.classifier is not None,
    }

    store = state.store
    if store is None:
        health["status"] = "degraded"
        health["store"] = None
        return health

    try:
        store_health = await store.health()
        health["store"] = store_health
        if store_health.get("status") != "healthy":
            health["status"] = "degraded"
    except Exception as e:
        logger.error(f"Store health check failed: {e}")
        health["status"] = "degraded"
        health["store"] = {"status": "error", "error": str(e)}

    return health


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus scrape endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
