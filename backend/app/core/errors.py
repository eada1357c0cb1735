# app/core/errors.py
"""
Error taxonomy for the import pipeline.

Every failure the pipeline can surface is a PipelineError subclass carrying an
HTTP status, a machine-readable code and optional context. None of them are
retried internally; they end the current invocation.
"""
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("uvicorn.error")


class PipelineError(Exception):
    """Base class for all import pipeline errors."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context


class Unauthenticated(PipelineError):
    """No resolvable caller identity."""
    status_code = 401
    code = "AUTH_REQUIRED"


class NotFound(PipelineError):
    """Participant, conversation or storage object is missing."""
    status_code = 404
    code = "NOT_FOUND"


class UploadFailure(PipelineError):
    """Client upload to the object store was rejected."""
    status_code = 400
    code = "UPLOAD_FAILED"


class TranscriptionFailure(PipelineError):
    """Speech service failed on the single-file path."""
    status_code = 502
    code = "TRANSCRIPTION_FAILED"


class ChunkTranscriptionFailure(PipelineError):
    """Speech service failed on one chunk of a chunked import."""
    status_code = 502
    code = "CHUNK_TRANSCRIPTION_FAILED"

    def __init__(self, message: str, chunk_index: int, **context: Any) -> None:
        super().__init__(message, chunkIndex=chunk_index, **context)
        self.chunk_index = chunk_index


class MappingError(PipelineError):
    """Speaker label does not fit the conversation (e.g. S2 in a solo recording)."""
    status_code = 422
    code = "SPEAKER_MAPPING_ERROR"


class PersistenceFailure(PipelineError):
    """Record store rejected a lifecycle call."""
    status_code = 500
    code = "PERSISTENCE_FAILED"


def register_error_handlers(app: FastAPI) -> None:
    """Render PipelineError subclasses with the API's standard error envelope."""

    @app.exception_handler(PipelineError)
    async def handle_pipeline_error(request: Request, exc: PipelineError) -> JSONResponse:
        log = logger.warning if exc.status_code < 500 else logger.error
        log("[error] %s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "error": {"code": exc.code, "message": exc.message, **exc.context},
            },
        )
