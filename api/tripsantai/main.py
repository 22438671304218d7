"""
Tripsantai API - Main Application Entry Point
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse, Response
import time
import logging

# Prometheus metrics
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST, REGISTRY

from tripsantai.config import settings

# Define Prometheus metrics
REQUEST_COUNT = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

REQUEST_LATENCY = Histogram(
    'http_request_duration_seconds',
    'HTTP request latency in seconds',
    ['method', 'endpoint']
)
from tripsantai.routers import (
    auth, blog, dashboard, destinations, health, invoices, orders, reviews,
    settings as site_settings,
)
from tripsantai.utils.database import init_db, close_db
from tripsantai.utils.redis import init_redis, close_redis

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager - handles startup and shutdown events
    """
    # Startup
    logger.info("Starting Tripsantai API...")

    await init_db()
    await init_redis()

    logger.info("Tripsantai API ready to serve requests!")

    yield

    # Shutdown
    logger.info("Shutting down Tripsantai API...")

    await close_db()
    await close_redis()

    logger.info("Cleanup completed")


# Create FastAPI application
app = FastAPI(
    title="Tripsantai API",
    description="""
    ## Travel Agency Booking API

    Backend for the Tripsantai website: destination catalog, group pricing,
    customer orders and the admin back office.

    ### Features
    - Destination catalog with tiered group pricing
    - Public booking and review forms
    - Order lifecycle: contact, down payment, settlement, completion
    - Shareable invoices
    - Admin login with lockout and TOTP second factor

    ### Authentication
    Admin endpoints expect the auth provider's access token.
    Include the token in the Authorization header: `Bearer <token>`
    """,
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request timing middleware with Prometheus metrics
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time

    # Record metrics (skip /metrics endpoint to avoid recursion)
    if request.url.path != "/metrics":
        route = request.scope.get("route")
        endpoint = route.path if route is not None else request.url.path
        method = request.method
        status = response.status_code

        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=status).inc()
        REQUEST_LATENCY.labels(method=method, endpoint=endpoint).observe(process_time)

    response.headers["X-Process-Time"] = str(process_time)
    return response


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(destinations.router, prefix="/destinations", tags=["Destinations"])
app.include_router(orders.router, prefix="/orders", tags=["Orders"])
app.include_router(invoices.router, prefix="/invoices", tags=["Invoices"])
app.include_router(blog.router, prefix="/blog", tags=["Blog"])
app.include_router(reviews.router, prefix="/reviews", tags=["Reviews"])
app.include_router(site_settings.router, prefix="/settings", tags=["Site Settings"])
app.include_router(dashboard.router, prefix="/admin/dashboard", tags=["Admin - Dashboard"])


@app.get("/", include_in_schema=False)
async def root():
    """Root endpoint - API information"""
    return {
        "name": "Tripsantai API",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs" if settings.DEBUG else "disabled",
    }


@app.get("/metrics", include_in_schema=False)
async def metrics():
    """Prometheus metrics endpoint"""
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST
    )
