"""FastAPI application."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .domain_errors import DomainError
from .problem_details import domain_error_handler
from .routers import auctions, cooperatives, dashboard, farmers, inventory, lots, payments, sms, users

# Create app
app = FastAPI(
    title="Coffee Ledger",
    version="1.0.0",
    description="Backend API for coffee lot traceability, auctions, payments and SMS alerts"
)

# Production safety checks
if settings.ENV.lower() == "production" and not settings.cors_origins:
    raise RuntimeError("ALLOWED_ORIGINS must be set in production (explicit frontend origin required).")
if settings.ENV.lower() == "production" and any(origin.strip() == "*" for origin in settings.cors_origins):
    raise RuntimeError("ALLOWED_ORIGINS must be explicit in production (no wildcard when using credentials).")
if settings.ENV.lower() == "production" and any(
    origin.startswith("http://localhost") or origin.startswith("http://127.0.0.1") for origin in settings.cors_origins
):
    raise RuntimeError("ALLOWED_ORIGINS contains localhost in production; set it to your real frontend origin.")

# CORS
cors_methods = ["GET", "POST", "PUT", "OPTIONS"]
cors_headers = ["Content-Type"]
if settings.ENV.lower() != "production":
    cors_headers = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=cors_methods,
    allow_headers=cors_headers,
)

app.add_exception_handler(DomainError, domain_error_handler)

# Include routers
app.include_router(users.router, prefix="/api")
app.include_router(cooperatives.router, prefix="/api")
app.include_router(farmers.router, prefix="/api")
app.include_router(lots.router, prefix="/api")
app.include_router(inventory.router, prefix="/api")
app.include_router(auctions.router, prefix="/api")
app.include_router(payments.router, prefix="/api")
app.include_router(sms.router, prefix="/api")
app.include_router(dashboard.router, prefix="/api")


@app.get("/api/health")
def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": "1.0.0",
    }


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "message": "Coffee Ledger API",
        "version": "1.0.0",
        "docs": "/docs"
    }
