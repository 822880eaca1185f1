"""Main FastAPI application and server startup."""

from datetime import datetime, timezone
from typing import Optional
import logging
import threading

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from .schemas import (
    QueryRequest,
    IndexRequest,
    CaptureRequest,
    IndexFileRequest,
    StatsResponse,
    HealthResponse,
    error_payload,
)
from ..config.settings import Settings, load_settings
from ..errors import MemoryServiceError
from ..memory.integrate import MemoryService, create_memory_service
from ..memory.schemas import CaptureResult, FileIndexResult, IndexResult, QueryResult
from ..telemetry import configure_logging


logger = logging.getLogger(__name__)

app = FastAPI(
    title="Semantic Memory API",
    description="Long-term semantic memory for conversational agents",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# Global state for dependencies (built lazily on first use)
_settings: Optional[Settings] = None
_service: Optional[MemoryService] = None
_service_lock = threading.Lock()


def get_settings() -> Settings:
    """Dependency to get process settings."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def get_service() -> MemoryService:
    """Dependency to get the memory service."""
    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                _service = create_memory_service(get_settings())
    return _service


@app.on_event("startup")
async def startup_event():
    """Configure logging on startup; the service itself is built on first request."""
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("Starting %s", settings.service_name)


@app.on_event("shutdown")
async def shutdown_event():
    """Release the vector store handle."""
    global _service
    if _service is not None:
        close = getattr(_service.store, "close", None)
        if close is not None:
            close()
        _service = None


# Error envelope: every failure is {"error": ..., "details"?: ...}

@app.exception_handler(MemoryServiceError)
async def memory_error_handler(request: Request, exc: MemoryServiceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.details)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    )
    return JSONResponse(status_code=400, content=error_payload("Invalid request", details))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # Unmatched path or method is a plain 404; other statuses collapse to 400/500
    if exc.status_code in (404, 405):
        return JSONResponse(status_code=404, content=error_payload("Not found"))
    status = 400 if exc.status_code < 500 else 500
    return JSONResponse(status_code=status, content=error_payload(str(exc.detail)))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_payload("Internal server error", str(exc)))


# Routes

@app.get("/", response_model=HealthResponse)
@app.get("/health", response_model=HealthResponse)
def health(settings: Settings = Depends(get_settings)):
    """Liveness check; does not touch the model or store."""
    return HealthResponse(
        status="ok",
        service=settings.service_name,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@app.post("/query", response_model=QueryResult)
def query(request: QueryRequest, service: MemoryService = Depends(get_service)):
    """
    Retrieve memories similar to the query text.

    Matches are filtered by owner/category, thresholded by minScore and
    returned in descending score order.
    """
    return service.query(
        request.query,
        owner=request.owner,
        category=request.category,
        top_k=request.top_k,
        min_score=request.min_score,
    )


@app.post("/index", response_model=IndexResult)
def index(request: IndexRequest, service: MemoryService = Depends(get_service)):
    """Chunk, embed and upsert free text."""
    return service.index(request.owner, request.text, request.category, request.source)


@app.post("/capture", response_model=CaptureResult, response_model_exclude_none=True)
def capture(request: CaptureRequest, service: MemoryService = Depends(get_service)):
    """Classify a conversational turn and store it if memory-worthy."""
    return service.capture(request.owner, request.content, request.classification)


@app.post("/index-file", response_model=FileIndexResult)
def index_file(request: IndexFileRequest, service: MemoryService = Depends(get_service)):
    """Index a document from the owner's blob bucket."""
    return service.index_file(request.owner, request.file)


@app.get("/stats", response_model=StatsResponse)
def stats(service: MemoryService = Depends(get_service)):
    """Index statistics (record count is approximate)."""
    return service.stats()


def run():
    """Run the development server."""
    uvicorn.run("semantic_memory.api.main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    run()
