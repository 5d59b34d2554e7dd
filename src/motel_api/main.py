"""FastAPI application for the motel booking REST API.

This package provides REST endpoints for:
- Health checks
- Availability search and stay quotes
- Reservation lifecycle (create, amend, confirm, cancel, check-in/out)
- Invoices and payment settlement

The same app runs locally under uvicorn and on AWS Lambda via Mangum.
"""

import os
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from motel_api.exceptions import register_exception_handlers
from motel_api.middleware import CorrelationIdMiddleware
from motel_api.routes import (
    availability_router,
    payments_router,
    pricing_router,
    reservations_router,
)
from motel_booking import __version__
from motel_booking.utils.logging import configure_logging, get_logger

configure_logging(os.getenv("LOG_LEVEL", "INFO"))
logger = get_logger(__name__)

API_PREFIX = "/api/v1"

app = FastAPI(
    title="Motel Booking API",
    description="REST API for motel availability, reservations and settlement",
    version=__version__,
)

# Configure CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

# Register exception handlers for consistent error responses
register_exception_handlers(app)

app.include_router(availability_router, prefix=API_PREFIX)
app.include_router(pricing_router, prefix=API_PREFIX)
app.include_router(reservations_router, prefix=API_PREFIX)
app.include_router(payments_router, prefix=API_PREFIX)


@app.get("/api/ping")
async def ping() -> dict[str, Any]:
    """Root health check endpoint at /api/ping."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "motel-booking-api",
        "version": __version__,
    }


# Lambda handler - Mangum wraps FastAPI for AWS Lambda + API Gateway
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = True) -> None:
    """Run the FastAPI server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: 8080)
        reload: Enable hot reload for development (default: True)
    """
    import uvicorn

    logger.info("Starting motel booking API on %s:%s", host, port)
    if reload:
        # Use string reference for reload mode (uvicorn requirement)
        uvicorn.run("motel_api.main:app", host=host, port=port, reload=True, reload_dirs=["src"])
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
