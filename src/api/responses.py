import logging
import time
from typing import Optional

from fastapi import HTTPException

from api.metrics import observe
from brainflow.errors import BrainflowError

logger = logging.getLogger(__name__)


def http_error(err: BrainflowError) -> HTTPException:
    return HTTPException(status_code=err.status_code, detail=err.to_detail())


def internal_error(
    where: str,
    err: Exception,
    endpoint: Optional[str] = None,
    started: Optional[float] = None,
) -> HTTPException:
    """Log the failure with its traceback; must be called from an ``except`` block."""
    logger.exception(f"[{where}] {err}")
    if endpoint is not None and started is not None:
        observe(endpoint, "internal", started, time.time())
    return HTTPException(
        status_code=500,
        detail={"error": "Internal error", "kind": "internal"},
    )


def not_found(what: str) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"error": f"{what} not found", "kind": "not_found"},
    )
