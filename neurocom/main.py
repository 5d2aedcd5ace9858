"""FastAPI application entry point."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from neurocom.api import router as api_router
from neurocom.api import voice
from neurocom.core.errors import GenerationError, NeurocomError, PersistenceError
from neurocom.core.logging import get_logger

logger = get_logger(__name__)

app = FastAPI(
    title="Neurocom Chat",
    description="Retrieval-augmented chat and real-time voice streaming service",
    version="0.1.0",
)

_ERROR_RESPONSES: dict[type, tuple[int, str]] = {
    GenerationError: (502, "Failed to generate a reply"),
    PersistenceError: (500, "Failed to save the conversation"),
}


@app.exception_handler(NeurocomError)
async def pipeline_error_handler(request: Request, exc: NeurocomError) -> JSONResponse:
    """Log pipeline failures in full; return only a generic message."""
    status_code, message = _ERROR_RESPONSES.get(type(exc), (500, "Failed to process request"))
    logger.error(f"{type(exc).__name__} on {request.url.path}: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": message})


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "ok"}, status_code=200)


# Include v1 API router
app.include_router(api_router, prefix="/v1", tags=["v1"])

# Voice WebSocket lives at a fixed path outside the versioned API
app.include_router(voice.router, tags=["voice"])
