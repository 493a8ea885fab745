"""
HTTP API for Ingestion Orchestrator

Thin FastAPI transport over the batch scheduler: parses requests, calls the
scheduler, and renders its records and errors as JSON.
"""

from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Union

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, StrictInt, StrictStr, field_validator

from ..core.scheduler import BatchScheduler
from ..core.exceptions import (
    IngestionOrchestratorError,
    InvalidInputError,
    SubmissionNotFoundError,
    SchedulerError
)
from ..models.batch import Priority
from ..utils.config import Settings, load_settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

ERROR_STATUS_CODES = {
    InvalidInputError: 400,
    SubmissionNotFoundError: 404,
    SchedulerError: 503
}


class IngestRequest(BaseModel):
    ids: List[Union[StrictStr, StrictInt]]
    priority: Priority = Priority.MEDIUM

    @field_validator("priority", mode="before")
    @classmethod
    def _priority_case_insensitive(cls, value: Any) -> Any:
        # Same rule as BatchScheduler.submit
        return value.upper() if isinstance(value, str) else value


class IngestResponse(BaseModel):
    submission_id: str


def _status_code_for(error: IngestionOrchestratorError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(error, error_type):
            return status_code
    return 500


def _validation_error_to_input_error(exc: RequestValidationError) -> InvalidInputError:
    errors = exc.errors()
    if not errors:
        return InvalidInputError("body", "is invalid")

    first = errors[0]
    # loc is ("body", "ids", 0, ...) for body fields
    location = [str(part) for part in first.get("loc", ()) if part != "body"]
    field = ".".join(location) or "body"
    return InvalidInputError(field, first.get("msg", "is invalid").lower(), first.get("input"))


def create_app(settings: Optional[Settings] = None, scheduler: Optional[BatchScheduler] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Runtime settings; loaded from the environment when omitted
        scheduler: Scheduler to serve; built from settings when omitted

    Returns:
        Application with the scheduler available as ``app.state.scheduler``
    """
    settings = settings or load_settings()
    scheduler = scheduler or BatchScheduler.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await scheduler.start()
        try:
            yield
        finally:
            await scheduler.stop()

    app = FastAPI(
        title="Ingestion Orchestrator API",
        description="Submit item ids for rate-limited, priority-ordered batch ingestion and poll their status.",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.scheduler = scheduler
    app.state.settings = settings

    @app.exception_handler(IngestionOrchestratorError)
    async def orchestrator_error_handler(request: Request, exc: IngestionOrchestratorError):
        return JSONResponse(status_code=_status_code_for(exc), content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        error = _validation_error_to_input_error(exc)
        logger.info("Rejected invalid request", extra={"path": request.url.path, "error": error.message})
        return JSONResponse(status_code=400, content=error.to_dict())

    @app.post("/ingest", response_model=IngestResponse)
    async def ingest(request: IngestRequest) -> IngestResponse:
        """Submit item ids for ingestion."""
        submission_id = await scheduler.submit(request.ids, request.priority)
        return IngestResponse(submission_id=submission_id)

    @app.get("/status/{submission_id}")
    async def get_status(submission_id: str) -> Dict[str, Any]:
        """Get a submission and the status of each of its batches."""
        return await scheduler.get_submission(submission_id)

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"status": "ok", "scheduler": await scheduler.get_statistics()}

    return app
