"""Allocation & booking engine.

Every mutation is a single DynamoDB transaction holding the booking, its
reference, its invoice and the calendars of every room it touches. Room
calendars are compare-and-swapped on the version read during allocation, so
the overlap check and the write are atomic: two requests racing for the last
room cannot both commit.
"""

import datetime as dt
import uuid
from typing import TYPE_CHECKING, Any, Callable

from motel_booking.config import Settings
from motel_booking.models import (
    AddOn,
    Booking,
    BookingAmendment,
    BookingError,
    BookingRequest,
    BookingStatus,
    ErrorCode,
    Invoice,
    Money,
    PaymentStatus,
    PricingContext,
    PricingQuote,
    Property,
    RatePlan,
    RoomCalendar,
    RoomStatus,
    RoomType,
)
from motel_booking.models.booking import MAX_ADDONS, MAX_ROOM_TYPES
from motel_booking.models.transitions import ensure_booking_transition
from motel_booking.utils.logging import get_logger, log_booking_operation

from .availability import validate_date_range, validate_party
from .dynamodb import TransactionCancelledError, model_to_item
from .invoice_ledger import cancel_invoice, issue_invoice, reissue_invoice
from .schema import index_name

if TYPE_CHECKING:
    from .availability import AvailabilityEngine
    from .catalog import InventoryCatalog
    from .dynamodb import DynamoDBService
    from .guest_directory import GuestDirectory
    from .invoice_ledger import InvoiceLedger
    from .pricing import PricingEngine
    from .room_calendar import RoomCalendarService

logger = get_logger(__name__)

# Transaction item roles, used to explain a cancelled transaction
BOOKING = "booking"
REFERENCE = "reference"
INVOICE = "invoice"
CALENDAR = "calendar"


class _ReferenceTaken(Exception):
    """The generated reference collided with an existing booking."""


def generate_reference(property_code: str) -> str:
    """Human-readable reference: property code plus 8 random hex characters."""
    return f"{property_code.upper()}-{uuid.uuid4().hex[:8].upper()}"


def generate_booking_id() -> str:
    return f"BKG-{uuid.uuid4().hex[:16].upper()}"


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


class _Resolved:
    """Catalog records resolved for a request."""

    def __init__(
        self,
        prop: Property,
        rate_plan: RatePlan,
        room_types: list[RoomType],
        add_ons: list[AddOn],
    ) -> None:
        self.prop = prop
        self.rate_plan = rate_plan
        self.room_types = room_types
        self.add_ons = add_ons


class BookingEngine:
    """Service for the booking lifecycle."""

    BOOKINGS = "bookings"
    REFERENCES = "booking-references"
    PAYMENTS = "payments"

    def __init__(
        self,
        db: "DynamoDBService",
        catalog: "InventoryCatalog",
        guests: "GuestDirectory",
        calendars: "RoomCalendarService",
        pricing: "PricingEngine",
        availability: "AvailabilityEngine",
        invoices: "InvoiceLedger",
        settings: Settings | None = None,
        clock: Callable[[], dt.datetime] = _utcnow,
    ) -> None:
        """Initialize booking engine.

        Args:
            db: DynamoDB service instance
            catalog: Inventory catalog
            guests: Guest directory
            calendars: Room calendar service
            pricing: Pricing engine
            availability: Availability engine, whose cache is invalidated on commit
            invoices: Invoice ledger
            settings: Engine settings, defaults to Settings()
            clock: Source of the current UTC time
        """
        self.db = db
        self.catalog = catalog
        self.guests = guests
        self.calendars = calendars
        self.pricing = pricing
        self.availability = availability
        self.invoices = invoices
        self.settings = settings or Settings()
        self.clock = clock

    # =========================================================================
    # Lookups
    # =========================================================================

    def get_by_id(self, booking_id: str) -> Booking | None:
        item = self.db.get_item(
            self.BOOKINGS, {"booking_id": booking_id}, consistent_read=True
        )
        return Booking.model_validate(item) if item else None

    def get(self, reference: str) -> Booking | None:
        """Get a booking by confirmation reference."""
        item = self.db.get_item(
            self.REFERENCES, {"reference": reference}, consistent_read=True
        )
        if not item:
            return None
        return self.get_by_id(item["booking_id"])

    def require(
        self,
        reference: str | None = None,
        booking_id: str | None = None,
    ) -> Booking:
        """Get a booking by reference or ID, or raise BOOKING_NOT_FOUND."""
        booking = None
        if reference:
            booking = self.get(reference)
        elif booking_id:
            booking = self.get_by_id(booking_id)
        if booking is None:
            details = {"reference": reference} if reference else {}
            if booking_id:
                details["booking_id"] = booking_id
            raise BookingError(code=ErrorCode.BOOKING_NOT_FOUND, details=details)
        return booking

    # =========================================================================
    # Create / confirm / amend
    # =========================================================================

    def create(self, request: BookingRequest) -> Booking:
        """Create a booking, allocating one room per requested room type.

        Allocation is all-or-nothing and deterministic: rooms are taken in
        ascending room ID order. The booking is CONFIRMED with its invoice,
        or HOLD without one when ``request.hold`` is set.

        Args:
            request: Booking parameters

        Returns:
            The persisted Booking

        Raises:
            BookingError: Validation, not-found, ROOM_UNAVAILABLE or CONFLICT
        """
        try:
            self._validate(request)
            resolved = self._resolve(request)
            booking_id = generate_booking_id()
            room_ids, calendars = self._allocate(resolved, request)
            quote = self._quote(resolved, request)

            now = self.clock()
            status = BookingStatus.HOLD if request.hold else BookingStatus.CONFIRMED
            booking = Booking(
                booking_id=booking_id,
                reference=generate_reference(resolved.prop.code),
                property_id=resolved.prop.property_id,
                guest_id=request.guest_id,
                status=status,
                channel=request.channel,
                source=request.source,
                check_in=request.check_in,
                check_out=request.check_out,
                adults=request.adults,
                children=request.children,
                rate_plan_id=request.rate_plan_id,
                room_type_ids=list(request.room_type_ids),
                room_ids=room_ids,
                addon_ids=list(request.addon_ids),
                total_amount=quote.total_amount,
                balance_due=quote.total_amount,
                created_at=now,
                updated_at=now,
            )
            invoice = None
            if status == BookingStatus.CONFIRMED:
                invoice = issue_invoice(booking, quote, now)
                booking = booking.model_copy(update={"invoice_id": invoice.invoice_id})

            booking = self._insert(booking, invoice, calendars, resolved.prop.code)
        except BookingError as e:
            log_booking_operation(
                logger,
                "create",
                property_id=request.property_id,
                error=e.code.name,
                retryable=e.retryable,
            )
            raise

        self.availability.invalidate(booking.property_id)
        log_booking_operation(
            logger,
            "create",
            booking_id=booking.booking_id,
            reference=booking.reference,
            property_id=booking.property_id,
            status=booking.status.value,
            version=booking.version,
            rooms=",".join(booking.room_ids),
        )
        return booking

    def _insert(
        self,
        booking: Booking,
        invoice: Invoice | None,
        calendars: dict[str, RoomCalendar],
        property_code: str,
    ) -> Booking:
        """Commit a new booking, regenerating the reference on collision."""
        for _ in range(self.settings.reference_retry_attempts):
            items = [
                self.db.put_request(
                    self.BOOKINGS,
                    model_to_item(booking),
                    condition_expression="attribute_not_exists(#pk)",
                    expression_attribute_names={"#pk": "booking_id"},
                ),
                self._reference_request(booking),
            ]
            roles = [BOOKING, REFERENCE]
            if invoice is not None:
                items.append(self.invoices.create_request(invoice))
                roles.append(INVOICE)
            for room_id in booking.room_ids:
                items.append(
                    self.calendars.reserve_request(
                        calendars[room_id],
                        booking.booking_id,
                        booking.check_in,
                        booking.check_out,
                    )
                )
                roles.append(CALENDAR)

            try:
                self._commit(items, roles)
                return booking
            except _ReferenceTaken:
                logger.warning("Reference %s already taken, retrying", booking.reference)
                booking = booking.model_copy(
                    update={"reference": generate_reference(property_code)}
                )

        raise BookingError(
            code=ErrorCode.CONFLICT,
            details={"reason": "could not generate a unique reference"},
        )

    def confirm(self, reference: str, expected_version: int | None = None) -> Booking:
        """Confirm a HOLD booking and issue its invoice.

        The stay is re-quoted so the invoice reflects current rates.
        """
        booking = self.require(reference)
        self._check_version(booking, expected_version)
        ensure_booking_transition(
            booking.status, BookingStatus.CONFIRMED, booking.booking_id
        )
        if booking.status == BookingStatus.CONFIRMED:
            # amend is the only CONFIRMED -> CONFIRMED path
            raise BookingError(
                code=ErrorCode.INVALID_STATE_TRANSITION,
                details={
                    "entity": "booking",
                    "current_status": booking.status.value,
                    "requested_status": BookingStatus.CONFIRMED.value,
                },
            )

        request = BookingAmendment().apply_to(booking)
        resolved = self._resolve(request)
        quote = self._quote(resolved, request)
        now = self.clock()
        updated = self._next_version(
            booking,
            now,
            status=BookingStatus.CONFIRMED,
            total_amount=quote.total_amount,
            balance_due=quote.total_amount,
        )
        invoice = issue_invoice(updated, quote, now)
        updated = updated.model_copy(update={"invoice_id": invoice.invoice_id})

        self._commit(
            [
                self._replace_request(updated, booking.version),
                self.invoices.create_request(invoice),
            ],
            [BOOKING, INVOICE],
        )
        log_booking_operation(
            logger,
            "confirm",
            booking_id=updated.booking_id,
            reference=updated.reference,
            status=updated.status.value,
            version=updated.version,
        )
        return updated

    def amend(
        self,
        reference: str,
        amendment: BookingAmendment,
        expected_version: int | None = None,
    ) -> Booking:
        """Change dates, party, rate plan, room types or add-ons of a booking.

        The booking's own stays are ignored during the availability re-check,
        so it may keep its current rooms. Rooms no longer used are released in
        the same transaction. The booking ends CONFIRMED and its invoice is
        re-issued from the new quote, keeping the amount already paid.

        Args:
            reference: Confirmation reference
            amendment: Fields to change
            expected_version: Version the caller read, checked before and at commit

        Returns:
            The amended Booking

        Raises:
            BookingError: BOOKING_NOT_FOUND, INVALID_STATE_TRANSITION (only HOLD
                and CONFIRMED bookings can be amended), validation errors,
                ROOM_UNAVAILABLE or CONFLICT
        """
        booking = self.require(reference)
        try:
            self._check_version(booking, expected_version)
            ensure_booking_transition(
                booking.status, BookingStatus.CONFIRMED, booking.booking_id
            )

            request = amendment.apply_to(booking)
            self._validate(request)
            resolved = self._resolve(request)
            room_ids, calendars = self._allocate(
                resolved,
                request,
                current=booking,
            )
            quote = self._quote(resolved, request)
            now = self.clock()

            invoice_item, invoice = self._amended_invoice(booking, quote, now)
            updated = self._next_version(
                booking,
                now,
                status=BookingStatus.CONFIRMED,
                guest_id=request.guest_id,
                check_in=request.check_in,
                check_out=request.check_out,
                adults=request.adults,
                children=request.children,
                rate_plan_id=request.rate_plan_id,
                room_type_ids=list(request.room_type_ids),
                room_ids=room_ids,
                addon_ids=list(request.addon_ids),
                total_amount=quote.total_amount,
                balance_due=invoice.balance_due or quote.total_amount,
                invoice_id=invoice.invoice_id,
            )

            items = [self._replace_request(updated, booking.version), invoice_item]
            roles = [BOOKING, INVOICE]
            for room_id in room_ids:
                items.append(
                    self.calendars.reserve_request(
                        calendars[room_id],
                        booking.booking_id,
                        request.check_in,
                        request.check_out,
                    )
                )
                roles.append(CALENDAR)
            for room_id in booking.room_ids:
                if room_id not in room_ids:
                    items.append(
                        self.calendars.vacate_request(
                            calendars[room_id], booking.booking_id
                        )
                    )
                    roles.append(CALENDAR)

            self._commit(items, roles)
        except BookingError as e:
            log_booking_operation(
                logger,
                "amend",
                booking_id=booking.booking_id,
                reference=booking.reference,
                error=e.code.name,
                retryable=e.retryable,
            )
            raise

        self.availability.invalidate(updated.property_id)
        log_booking_operation(
            logger,
            "amend",
            booking_id=updated.booking_id,
            reference=updated.reference,
            status=updated.status.value,
            version=updated.version,
            rooms=",".join(updated.room_ids),
        )
        return updated

    def _amended_invoice(
        self, booking: Booking, quote: PricingQuote, now: dt.datetime
    ) -> tuple[dict[str, Any], Invoice]:
        existing = self.invoices.get_for_booking(booking.booking_id)
        if existing is None:
            # HOLD bookings get their first invoice when amended into CONFIRMED
            invoice = issue_invoice(booking, quote, now)
            return self.invoices.create_request(invoice), invoice
        invoice = reissue_invoice(existing, quote, now)
        return self.invoices.replace_request(invoice, existing.version), invoice

    # =========================================================================
    # Cancel and stay lifecycle
    # =========================================================================

    def cancel(
        self,
        reference: str | None = None,
        booking_id: str | None = None,
        reason: str | None = None,
        requested_by: str | None = None,
        expected_version: int | None = None,
    ) -> Booking:
        """Cancel a booking.

        Idempotent: a CANCELLED booking is returned unchanged. Otherwise the
        booking's stays are removed from its room calendars; ``room_ids`` stays
        on the booking as history. An invoice nothing was paid on is cancelled
        too, unless an authorization on it is still waiting to be captured.

        Args:
            reference: Confirmation reference
            booking_id: Booking ID, used when no reference is given
            reason: Cancellation reason
            requested_by: Who asked for the cancellation
            expected_version: Version the caller read

        Returns:
            The cancelled Booking
        """
        booking = self.require(reference, booking_id)
        if booking.status == BookingStatus.CANCELLED:
            log_booking_operation(
                logger,
                "cancel",
                booking_id=booking.booking_id,
                reference=booking.reference,
                status=booking.status.value,
                version=booking.version,
                result="already_cancelled",
            )
            return booking

        self._check_version(booking, expected_version)
        ensure_booking_transition(
            booking.status, BookingStatus.CANCELLED, booking.booking_id
        )
        now = self.clock()
        updated = self._next_version(
            booking,
            now,
            status=BookingStatus.CANCELLED,
            cancellation_reason=reason,
            cancelled_by=requested_by,
        )

        items = [self._replace_request(updated, booking.version)]
        roles = [BOOKING]
        invoice = self.invoices.get_for_booking(booking.booking_id)
        if (
            invoice is not None
            and invoice.is_open
            and invoice.amount_paid == 0
            and not self._has_pending_authorization(invoice.invoice_id)
        ):
            items.append(
                self.invoices.replace_request(cancel_invoice(invoice, now), invoice.version)
            )
            roles.append(INVOICE)
        self._append_releases(items, roles, booking)

        self._commit(items, roles, calendar_error=ErrorCode.CONFLICT)
        self.availability.invalidate(updated.property_id)
        log_booking_operation(
            logger,
            "cancel",
            booking_id=updated.booking_id,
            reference=updated.reference,
            status=updated.status.value,
            version=updated.version,
            reason=reason or "",
        )
        return updated

    def check_in(self, reference: str, expected_version: int | None = None) -> Booking:
        """Mark a CONFIRMED booking as checked in."""
        return self._move(reference, BookingStatus.CHECKED_IN, expected_version)

    def check_out(self, reference: str, expected_version: int | None = None) -> Booking:
        """Check a guest out and free the booking's rooms."""
        return self._move(
            reference, BookingStatus.CHECKED_OUT, expected_version, release=True
        )

    def mark_no_show(self, reference: str, expected_version: int | None = None) -> Booking:
        """Close a booking whose guest never arrived and free its rooms."""
        return self._move(reference, BookingStatus.NO_SHOW, expected_version, release=True)

    def _move(
        self,
        reference: str,
        target: BookingStatus,
        expected_version: int | None,
        release: bool = False,
    ) -> Booking:
        booking = self.require(reference)
        self._check_version(booking, expected_version)
        ensure_booking_transition(booking.status, target, booking.booking_id)
        updated = self._next_version(booking, self.clock(), status=target)

        items = [self._replace_request(updated, booking.version)]
        roles = [BOOKING]
        if release:
            self._append_releases(items, roles, booking)

        self._commit(items, roles, calendar_error=ErrorCode.CONFLICT)
        if release:
            self.availability.invalidate(updated.property_id)
        log_booking_operation(
            logger,
            target.value,
            booking_id=updated.booking_id,
            reference=updated.reference,
            status=updated.status.value,
            version=updated.version,
        )
        return updated

    # =========================================================================
    # Helpers
    # =========================================================================

    def _validate(self, request: BookingRequest) -> None:
        """Reject malformed requests before touching storage."""
        validate_date_range(request.check_in, request.check_out, field="check_out")
        if request.nights > self.settings.max_stay_nights:
            raise BookingError(
                code=ErrorCode.INVALID_DATE_RANGE,
                details={
                    "field": "check_out",
                    "nights": str(request.nights),
                    "max_nights": str(self.settings.max_stay_nights),
                },
            )
        validate_party(request.adults, request.children)
        if not request.room_type_ids:
            raise BookingError(
                code=ErrorCode.EMPTY_ROOM_TYPE_SET,
                details={"field": "room_type_ids"},
            )
        if len(request.room_type_ids) > MAX_ROOM_TYPES:
            raise BookingError(
                code=ErrorCode.TOO_MANY_ITEMS,
                details={"field": "room_type_ids", "max": str(MAX_ROOM_TYPES)},
            )
        if len(request.addon_ids) > MAX_ADDONS:
            raise BookingError(
                code=ErrorCode.TOO_MANY_ITEMS,
                details={"field": "addon_ids", "max": str(MAX_ADDONS)},
            )

    def _resolve(self, request: BookingRequest) -> _Resolved:
        prop = self.catalog.get_property(request.property_id)
        if prop is None:
            raise BookingError(
                code=ErrorCode.PROPERTY_NOT_FOUND,
                details={"property_id": request.property_id},
            )
        if self.guests.get_guest(request.guest_id) is None:
            raise BookingError(
                code=ErrorCode.GUEST_NOT_FOUND,
                details={"guest_id": request.guest_id},
            )
        rate_plan = self.catalog.get_rate_plan(prop.property_id, request.rate_plan_id)
        if rate_plan is None:
            raise BookingError(
                code=ErrorCode.RATE_PLAN_NOT_FOUND,
                details={
                    "rate_plan_id": request.rate_plan_id,
                    "property_id": prop.property_id,
                },
            )
        room_types = self.pricing.resolve_room_types(prop, request.room_type_ids)

        add_ons = self.catalog.get_add_ons(prop.property_id, request.addon_ids)
        for addon_id in request.addon_ids:
            if addon_id not in add_ons:
                raise BookingError(
                    code=ErrorCode.ADDON_NOT_FOUND,
                    details={"addon_id": addon_id, "property_id": prop.property_id},
                )
        return _Resolved(prop, rate_plan, room_types, list(add_ons.values()))

    def _allocate(
        self,
        resolved: _Resolved,
        request: BookingRequest,
        current: Booking | None = None,
    ) -> tuple[list[str], dict[str, RoomCalendar]]:
        """Pick one free room per requested room type.

        Rooms are considered in ascending room ID order; a room chosen for an
        earlier room type in the same request is skipped. When amending,
        ``current``'s own stays do not count as booked and its rooms' calendars
        are loaded too so that dropped rooms can be released.

        Returns:
            (chosen room IDs in request order, calendars read for them)

        Raises:
            BookingError: ROOM_UNAVAILABLE if any room type has no free room
        """
        wanted_types = {rt.room_type_id for rt in resolved.room_types}
        rooms = [
            room
            for room in self.catalog.list_rooms(
                resolved.prop.property_id, RoomStatus.AVAILABLE
            )
            if room.room_type_id in wanted_types
        ]
        room_ids = [room.room_id for room in rooms]
        if current is not None:
            room_ids.extend(current.room_ids)
        calendars = self.calendars.load(resolved.prop.property_id, room_ids)

        ignore = current.booking_id if current is not None else None
        booked = self.calendars.booked_room_ids(
            calendars.values(), request.check_in, request.check_out, ignore
        )

        chosen: list[str] = []
        for room_type in resolved.room_types:
            room = next(
                (
                    r
                    for r in rooms
                    if r.room_type_id == room_type.room_type_id
                    and r.room_id not in booked
                    and r.room_id not in chosen
                ),
                None,
            )
            if room is None:
                raise BookingError(
                    code=ErrorCode.ROOM_UNAVAILABLE,
                    details={
                        "room_type_id": room_type.room_type_id,
                        "room_type_code": room_type.code,
                        "check_in": request.check_in.isoformat(),
                        "check_out": request.check_out.isoformat(),
                    },
                )
            chosen.append(room.room_id)
        return chosen, calendars

    def _quote(self, resolved: _Resolved, request: BookingRequest) -> PricingQuote:
        context = PricingContext(
            property_id=resolved.prop.property_id,
            rate_plan_id=resolved.rate_plan.rate_plan_id,
            check_in=request.check_in,
            check_out=request.check_out,
            adults=request.adults,
            children=request.children,
            room_type_ids=list(request.room_type_ids),
        )
        return self.pricing.quote_resolved(
            resolved.prop, resolved.rate_plan, resolved.room_types, context
        )

    @staticmethod
    def _check_version(booking: Booking, expected_version: int | None) -> None:
        if expected_version is not None and expected_version != booking.version:
            raise BookingError(
                code=ErrorCode.CONFLICT,
                details={
                    "booking_id": booking.booking_id,
                    "expected_version": str(expected_version),
                    "current_version": str(booking.version),
                },
            )

    @staticmethod
    def _next_version(booking: Booking, now: dt.datetime, **changes: Any) -> Booking:
        return booking.model_copy(
            update={**changes, "updated_at": now, "version": booking.version + 1}
        )

    def payment_update_request(
        self,
        booking: Booking,
        now: dt.datetime,
        payment_status: PaymentStatus,
        balance_due: Money | None = None,
    ) -> tuple[dict[str, Any], Booking]:
        """Mirror a settlement outcome on the booking.

        Returns the transactional write and the booking it will produce.
        """
        changes: dict[str, Any] = {"payment_status": payment_status}
        if balance_due is not None:
            changes["balance_due"] = balance_due
        updated = self._next_version(booking, now, **changes)
        return self._replace_request(updated, booking.version), updated

    def _reference_request(self, booking: Booking) -> dict[str, Any]:
        return self.db.put_request(
            self.REFERENCES,
            {
                "reference": booking.reference,
                "booking_id": booking.booking_id,
                "property_id": booking.property_id,
            },
            condition_expression="attribute_not_exists(#pk)",
            expression_attribute_names={"#pk": "reference"},
        )

    def _replace_request(self, booking: Booking, seen_version: int) -> dict[str, Any]:
        """Put the new booking state if nobody changed it since ``seen_version``."""
        return self.db.put_request(
            self.BOOKINGS,
            model_to_item(booking),
            condition_expression="#version = :seen",
            expression_attribute_names={"#version": "version"},
            expression_attribute_values={":seen": seen_version},
        )

    def _has_pending_authorization(self, invoice_id: str) -> bool:
        payments = self.db.query_by_gsi(
            self.PAYMENTS, index_name("invoice_id"), "invoice_id", invoice_id
        )
        return any(p["status"] == PaymentStatus.AUTHORIZED.value for p in payments)

    def _append_releases(
        self, items: list[dict[str, Any]], roles: list[str], booking: Booking
    ) -> None:
        for room_id in booking.room_ids:
            items.append(self.calendars.release_request(room_id, booking.booking_id))
            roles.append(CALENDAR)

    def _commit(
        self,
        items: list[dict[str, Any]],
        roles: list[str],
        calendar_error: ErrorCode = ErrorCode.ROOM_UNAVAILABLE,
    ) -> None:
        """Run one transaction and translate a cancellation into an engine error."""
        try:
            self.db.transact_write(items)
        except TransactionCancelledError as e:
            failed = {
                roles[i]
                for i, reason in enumerate(e.reasons)
                if i < len(roles) and reason not in ("None", "")
            }
            if CALENDAR in failed:
                raise BookingError(
                    code=calendar_error,
                    details={"reason": "room calendar changed concurrently"},
                ) from e
            if REFERENCE in failed:
                raise _ReferenceTaken() from e
            raise BookingError(
                code=ErrorCode.CONFLICT,
                details={"failed": ",".join(sorted(failed)) or "transaction"},
            ) from e
