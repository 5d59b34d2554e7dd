"""DynamoDB-backed services for the motel booking engine."""

from .availability import AvailabilityEngine
from .availability_cache import AvailabilityCache
from .booking import BookingEngine
from .catalog import InventoryCatalog
from .dynamodb import (
    DynamoDBService,
    TransactionCancelledError,
    get_dynamodb_service,
    reset_dynamodb_service,
)
from .guest_directory import GuestDirectory
from .invoice_ledger import InvoiceLedger, apply_payment, apply_refund
from .pricing import PricingEngine, TaxPolicy, ZeroTaxPolicy
from .room_calendar import RoomCalendarService
from .settlement import (
    GatewayResponse,
    PaymentGateway,
    PaymentSettlement,
    SimulatedPaymentGateway,
)

__all__ = [
    "DynamoDBService",
    "TransactionCancelledError",
    "get_dynamodb_service",
    "reset_dynamodb_service",
    "AvailabilityEngine",
    "AvailabilityCache",
    "BookingEngine",
    "InventoryCatalog",
    "GuestDirectory",
    "InvoiceLedger",
    "apply_payment",
    "apply_refund",
    "PricingEngine",
    "TaxPolicy",
    "ZeroTaxPolicy",
    "RoomCalendarService",
    "GatewayResponse",
    "PaymentGateway",
    "PaymentSettlement",
    "SimulatedPaymentGateway",
]
