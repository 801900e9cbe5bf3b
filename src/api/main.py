import logging
import os
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api import state
from api.routers import ai, backlog, braindump, ops, tasks
from classification.task_classifier import LLMQuadrantClassifier, QuadrantClassifier
from llm.llm_client import LLMClient
from storage import db
from storage.memory_store import InMemoryTaskStore
from storage.postgres_store import PostgresTaskStore
from storage.task_store import TaskStore

# Logging configuration
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s"
)
logger = logging.getLogger(__name__)

USE_DATABASE = os.getenv("USE_DATABASE", "false").lower() in {"1", "true", "yes"}

app = FastAPI(title="brainflow")

app.include_router(ops.router)
app.include_router(backlog.router, prefix="/api/backlog")
app.include_router(braindump.router, prefix="/api/braindump")
app.include_router(tasks.router, prefix="/api/tasks")
app.include_router(ai.router, prefix="/api/ai")


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    logger.info(f"Rejected {request.method} {request.url.path}: {message}")
    return JSONResponse(
        status_code=400,
        content={"detail": {"error": message, "kind": "validation"}},
    )


async def _build_store() -> TaskStore:
    if not USE_DATABASE:
        logger.info("USE_DATABASE is off, using in-memory store")
        return InMemoryTaskStore()

    await db.init_db_pool()
    await db.init_schema()
    return PostgresTaskStore()


def _build_classifier() -> Optional[QuadrantClassifier]:
    try:
        return LLMQuadrantClassifier(LLMClient())
    except RuntimeError as e:
        logger.warning(f"AI classification disabled: {e}")
        return None


@app.on_event("startup")
async def startup() -> None:
    if state.store is None:
        state.store = await _build_store()
    if state.classifier is None:
        state.classifier = _build_classifier()
    logger.info(
        f"Brainflow started (store={state.store.kind}, ai={state.classifier is not None})"
    )


@app.on_event("shutdown")
async def shutdown() -> None:
    if isinstance(state.store, PostgresTaskStore):
        await db.close_db_pool()
