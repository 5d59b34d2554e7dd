"""FastAPI dependency providers for engine services.

Each factory is wrapped in @lru_cache so services are built once per process
and shared across requests.

Service dependency graph:
    DynamoDBService (singleton via get_dynamodb_service)
        ├── InventoryCatalog ── PricingEngine
        ├── RoomCalendarService ── AvailabilityEngine (+ AvailabilityCache)
        ├── GuestDirectory
        ├── InvoiceLedger
        ├── BookingEngine (all of the above)
        └── PaymentSettlement (InvoiceLedger, BookingEngine, PaymentGateway)

Testing:
    Use reset_services() to clear cached instances between tests.
"""

from functools import lru_cache

from motel_booking.config import Settings
from motel_booking.models import AvailabilityResult
from motel_booking.services.availability import AvailabilityEngine
from motel_booking.services.availability_cache import AvailabilityCache
from motel_booking.services.booking import BookingEngine
from motel_booking.services.catalog import InventoryCatalog
from motel_booking.services.dynamodb import get_dynamodb_service
from motel_booking.services.guest_directory import GuestDirectory
from motel_booking.services.invoice_ledger import InvoiceLedger
from motel_booking.services.pricing import PricingEngine
from motel_booking.services.room_calendar import RoomCalendarService
from motel_booking.services.settlement import (
    PaymentGateway,
    PaymentSettlement,
    SimulatedPaymentGateway,
)


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()


@lru_cache
def get_catalog() -> InventoryCatalog:
    return InventoryCatalog(db=get_dynamodb_service())


@lru_cache
def get_room_calendars() -> RoomCalendarService:
    return RoomCalendarService(db=get_dynamodb_service())


@lru_cache
def get_availability_cache() -> AvailabilityCache[AvailabilityResult]:
    settings = get_settings()
    return AvailabilityCache(
        ttl_seconds=settings.availability_cache_ttl_seconds,
        max_entries=settings.availability_cache_max_entries,
    )


@lru_cache
def get_availability_engine() -> AvailabilityEngine:
    """Get cached AvailabilityEngine instance.

    Returns:
        AvailabilityEngine sharing the process-wide availability cache.
    """
    return AvailabilityEngine(
        catalog=get_catalog(),
        calendars=get_room_calendars(),
        cache=get_availability_cache(),
    )


@lru_cache
def get_pricing_engine() -> PricingEngine:
    return PricingEngine(catalog=get_catalog())


@lru_cache
def get_invoice_ledger() -> InvoiceLedger:
    return InvoiceLedger(db=get_dynamodb_service())


@lru_cache
def get_booking_engine() -> BookingEngine:
    """Get cached BookingEngine instance.

    Returns:
        BookingEngine configured with all required dependencies.
    """
    db = get_dynamodb_service()
    return BookingEngine(
        db=db,
        catalog=get_catalog(),
        guests=GuestDirectory(db=db),
        calendars=get_room_calendars(),
        pricing=get_pricing_engine(),
        availability=get_availability_engine(),
        invoices=get_invoice_ledger(),
        settings=get_settings(),
    )


@lru_cache
def get_payment_gateway() -> PaymentGateway:
    return SimulatedPaymentGateway()


@lru_cache
def get_payment_settlement() -> PaymentSettlement:
    return PaymentSettlement(
        db=get_dynamodb_service(),
        invoices=get_invoice_ledger(),
        bookings=get_booking_engine(),
        gateway=get_payment_gateway(),
    )


def reset_services() -> None:
    """Clear all cached service instances.

    Call this in test fixtures to ensure clean state between tests.
    Also resets the underlying DynamoDB singleton.
    """
    from motel_booking.services.dynamodb import reset_dynamodb_service

    get_settings.cache_clear()
    get_catalog.cache_clear()
    get_room_calendars.cache_clear()
    get_availability_cache.cache_clear()
    get_availability_engine.cache_clear()
    get_pricing_engine.cache_clear()
    get_invoice_ledger.cache_clear()
    get_booking_engine.cache_clear()
    get_payment_gateway.cache_clear()
    get_payment_settlement.cache_clear()

    reset_dynamodb_service()
