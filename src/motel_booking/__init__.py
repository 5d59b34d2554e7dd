"""Motel reservation and availability engine.

Domain models live in ``motel_booking.models`` and DynamoDB-backed services
in ``motel_booking.services``.
"""

__version__ = "0.1.0"
