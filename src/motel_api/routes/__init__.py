"""API routes package.

Routers are organized by domain:

- availability: Free-room search per room type
- pricing: Stay quotes
- reservations: Booking lifecycle
- payments: Invoices and payment settlement

All routers are registered in main.py with the /api/v1 prefix.
"""

from motel_api.routes.availability import router as availability_router
from motel_api.routes.payments import router as payments_router
from motel_api.routes.pricing import router as pricing_router
from motel_api.routes.reservations import router as reservations_router

__all__ = [
    "availability_router",
    "payments_router",
    "pricing_router",
    "reservations_router",
]
