"""
FastAPI server for the Product Page Optimizer.

Exposes extraction, single-task execution and full optimization over HTTP.
Services are built once from settings and injected with ``Depends`` so tests
can override them.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from product_optimizer import __version__
from product_optimizer.config import get_api_logger, get_settings
from product_optimizer.core.exceptions import NotAProductPageError
from product_optimizer.models import ProductRecord, TaskRequest
from product_optimizer.pipeline import ExtractionPipeline, TaskOrchestrator
from product_optimizer.processing import ProductScraper, TaskRunner
from product_optimizer.processing.validators import to_wire
from product_optimizer.services import (
    CompletionProvider,
    HttpCompletionProvider,
    SqliteCacheStore,
    TaskCache,
)


logger = get_api_logger(__name__)
settings = get_settings()


# Pydantic models for API requests/responses


class HealthResponse(BaseModel):
    """Response model for health check."""

    overall: str
    components: Dict[str, Any]
    timestamp: str


class ExtractRequest(BaseModel):
    html: str = Field(min_length=1)
    url: Optional[str] = None
    platform_hint: Optional[str] = None


class AnalyzeRequest(ExtractRequest):
    offline: bool = False


class TaskRunRequest(BaseModel):
    task: str
    input: Dict[str, Any] = Field(default_factory=dict)
    offline: bool = False
    product: ProductRecord


class OptimizeRequest(BaseModel):
    product: ProductRecord
    offline: bool = False


class Services:
    """Long-lived collaborators shared by every request."""

    def __init__(
        self,
        scraper: ProductScraper,
        orchestrator: TaskOrchestrator,
        cache: TaskCache,
        provider: Optional[CompletionProvider] = None,
    ):
        self.scraper = scraper
        self.orchestrator = orchestrator
        self.runner = orchestrator.runner
        self.cache = cache
        self.provider = provider


def build_services() -> Services:
    store = SqliteCacheStore() if settings.enable_durable_cache else None
    cache = TaskCache(store=store)
    provider = HttpCompletionProvider() if settings.provider_enabled else None
    runner = TaskRunner(cache=cache, provider=provider)
    return Services(
        scraper=ProductScraper(pipeline=ExtractionPipeline()),
        orchestrator=TaskOrchestrator(runner=runner),
        cache=cache,
        provider=provider,
    )


_services: Optional[Services] = None


def get_services() -> Services:
    global _services
    if _services is None:
        _services = build_services()
    return _services


# Application lifespan management
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application startup and shutdown."""
    logger.info("Starting Product Page Optimizer server")
    services = get_services()
    logger.info(
        "Services ready",
        provider_enabled=services.provider is not None,
        durable_cache=services.cache.store is not None,
    )
    try:
        yield
    finally:
        logger.info("Shutting down Product Page Optimizer server")
        await services.cache.flush()
        logger.info("Server shutdown completed")


async def verify_api_key(request: Request):
    """
    Verify API key from request headers.

    Raises:
        HTTPException: If API key is missing or invalid
    """
    settings = get_settings()

    if not settings.require_api_key:
        return True

    api_key = request.headers.get("X-API-Key") or request.headers.get("Authorization")

    if not api_key:
        raise HTTPException(
            status_code=401,
            detail="API key required. Please provide X-API-Key or Authorization header",
        )

    if api_key.startswith("Bearer "):
        api_key = api_key[7:]

    if api_key != settings.api_key:
        raise HTTPException(status_code=401, detail="Invalid API key")

    return True


app = FastAPI(
    title="Product Page Optimizer",
    description="Product page extraction and content optimization service",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    dependencies=[Depends(verify_api_key)],
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


# API Endpoints


@app.get("/", response_model=Dict[str, str])
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Product Page Optimizer API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "status": "operational",
    }


@app.get("/health", response_model=HealthResponse)
async def health_check(services: Services = Depends(get_services)):
    """Report the status of the extraction, cache and provider components."""
    components = {
        "extractors": [e.name for e in services.scraper.pipeline.extractors],
        "memory_cache_entries": len(services.cache),
        "durable_cache": "enabled" if services.cache.store is not None else "disabled",
        "provider": "enabled" if services.provider is not None else "offline",
    }
    return HealthResponse(overall="healthy", components=components, timestamp=_utc_now())


@app.post("/extract")
async def extract_product(
    request: ExtractRequest, services: Services = Depends(get_services)
):
    """
    Extract a product record from page HTML.

    Responds 422 when the page is not a product page.
    """
    try:
        record, result = await services.scraper.scrape(
            request.html, request.url, request.platform_hint
        )
    except NotAProductPageError as e:
        logger.info("Not a product page", url=request.url)
        raise HTTPException(status_code=422, detail=str(e))

    return JSONResponse(
        content={
            "product": to_wire(record),
            "extraction": result.summary(),
            "timestamp": _utc_now(),
        }
    )


@app.post("/tasks/run")
async def run_task(request: TaskRunRequest, services: Services = Depends(get_services)):
    """Run one generation task against the supplied product."""
    task_request = TaskRequest(
        task=request.task, input=request.input, offline=request.offline
    )
    response = await services.runner.run_task(task_request, request.product)
    return JSONResponse(content=to_wire(response))


@app.post("/optimize")
async def optimize_product(
    request: OptimizeRequest, services: Services = Depends(get_services)
):
    """Run every generation task against the supplied product."""
    result = await services.orchestrator.optimize_product(
        request.product, offline=request.offline
    )
    return JSONResponse(content=to_wire(result))


@app.post("/analyze")
async def analyze_page(request: AnalyzeRequest, services: Services = Depends(get_services)):
    """Extract a product from page HTML, then optimize it."""
    try:
        record, extraction = await services.scraper.scrape(
            request.html, request.url, request.platform_hint
        )
    except NotAProductPageError as e:
        raise HTTPException(status_code=422, detail=str(e))

    result = await services.orchestrator.optimize_product(record, offline=request.offline)
    return JSONResponse(
        content={
            "extraction": extraction.summary(),
            "optimization": to_wire(result),
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": "internal_error"},
    )
