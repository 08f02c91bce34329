from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
import time
import structlog

from docbrain.config import get_settings
from docbrain.routers import documents as documents_router
from docbrain.services.logging import configure_logging, log_api_request
from docbrain.services.monitoring import health_checker, get_metrics, REQUEST_COUNT, REQUEST_DURATION
from docbrain.middleware.rate_limit import limiter, rate_limit_exceeded_handler

# Configure logging
configure_logging()
logger = structlog.get_logger()

settings = get_settings()

app = FastAPI(
    title="DocBrain",
    description="Turns PDF and Word documents into summaries, exam questions and flashcards",
    version="1.0.0"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Add middleware for request logging and metrics
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()

    # Log request start
    log_api_request(request)

    response = await call_next(request)

    # Calculate processing time
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)

    # Update metrics
    REQUEST_COUNT.labels(
        method=request.method,
        endpoint=request.url.path,
        status=response.status_code
    ).inc()

    REQUEST_DURATION.labels(
        method=request.method,
        endpoint=request.url.path
    ).observe(process_time)

    # Log request completion
    response.response_time = process_time
    log_api_request(request, response)

    return response

# ----------------- Health & Monitoring Endpoints -----------------
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return health_checker.get_health_status()

@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    return get_metrics()


# ----------------- Routers -----------------
app.include_router(documents_router.router)
