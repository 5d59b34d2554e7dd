"""API-specific request/response models.

Request bodies for the REST layer. Domain models (Booking, Invoice,
Payment, ...) are in motel_booking.models and are returned directly.

Modules:
- common: Error response re-exports and version-guarded action bodies
- pricing: Quote request body
- reservations: Reservation create/amend/cancel bodies
- payments: Authorize and refund bodies
"""

__all__: list[str] = []
