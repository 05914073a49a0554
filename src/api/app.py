"""HTTP API for the conversion service.

Routes:
- POST   /api/hls/convert            accept a conversion request (202)
- GET    /api/hls/health             liveness probe
- GET    /api/hls/{conversion_id}    progress of an active job
- DELETE /api/hls/{conversion_id}    cancel an active job

The queue is created on startup and drained on shutdown through the
application lifespan.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from aws_lambda_powertools import Logger
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..job_queue.queue import JobProcessor, JobQueue
from ..shared.config import Settings, get_settings
from ..shared.exceptions import QueueClosedError
from ..shared.job import ConversionJob
from ..shared.models import (
    CancelResponse,
    ConversionRequest,
    ConvertResponse,
    HealthResponse,
    JobStatusResponse,
)

logger = Logger(service="api")


def create_app(
    settings: Settings | None = None,
    processor: JobProcessor | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Application settings (defaults to cached settings)
        processor: Job processor handed to the queue (defaults to the pipeline)
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.queue = JobQueue(processor=processor, capacity=settings.queue_capacity)
        logger.info("HLS converter started", extra={"environment": settings.environment})
        try:
            yield
        finally:
            app.state.queue.shutdown()
            logger.info("HLS converter stopped")

    app = FastAPI(title="HLS Converter", lifespan=lifespan)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            f"{'.'.join(str(part) for part in err['loc'] if part != 'body')}: {err['msg']}"
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "invalid request: " + "; ".join(errors)},
        )

    # Runs in the threadpool; enqueue blocks while the queue is full
    @app.post("/api/hls/convert", status_code=status.HTTP_202_ACCEPTED, response_model=ConvertResponse)
    def convert(body: ConversionRequest, request: Request):
        job = ConversionJob(request=body)
        try:
            request.app.state.queue.enqueue(job)
        except QueueClosedError as e:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"error": e.message},
            )

        logger.info(
            "Conversion accepted",
            extra={"job_id": job.id, "media_file_id": body.media_file_id},
        )
        return ConvertResponse(conversion_id=job.id, message="conversion started")

    @app.get("/api/hls/health", response_model=HealthResponse)
    def health():
        return HealthResponse(status="ok")

    @app.get("/api/hls/{conversion_id}", response_model=JobStatusResponse)
    def job_status(conversion_id: str, request: Request):
        job = request.app.state.queue.get(conversion_id)
        if job is None:
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content={"error": "conversion not found"},
            )
        return JobStatusResponse(
            conversion_id=job.id,
            media_file_id=job.request.media_file_id,
            qualities=job.request.qualities,
            completed_qualities=job.completed_snapshot(),
            cancelled=job.cancelled,
        )

    @app.delete("/api/hls/{conversion_id}", response_model=CancelResponse)
    def cancel(conversion_id: str, request: Request):
        if request.app.state.queue.cancel(conversion_id):
            logger.info("Conversion cancelled", extra={"job_id": conversion_id})
            return CancelResponse(success=True, message="conversion cancelled")

        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=CancelResponse(success=False, message="conversion not found").model_dump(),
        )

    return app
