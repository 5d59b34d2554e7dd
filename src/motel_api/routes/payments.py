"""Invoice and payment settlement endpoints.

Provides REST endpoints for:
- Reading an invoice and its payments
- Authorizing a payment against an open invoice
- Capturing, refunding and voiding payments

Gateway declines are not errors: the response carries the resulting
payment status with ``failure_reason`` set.
"""

from fastapi import APIRouter, Depends

from motel_api.dependencies import get_invoice_ledger, get_payment_settlement
from motel_api.models.common import ErrorResponse
from motel_api.models.payments import AuthorizeRequest, RefundRequest
from motel_booking.models import Invoice, Payment, PaymentResult
from motel_booking.services.invoice_ledger import InvoiceLedger
from motel_booking.services.settlement import PaymentSettlement

router = APIRouter(tags=["payments"])

_PAYMENT_NOT_FOUND = {"model": ErrorResponse, "description": "Payment not found"}
_TRANSITION = {
    "model": ErrorResponse,
    "description": "Payment status does not allow this action",
}


@router.get(
    "/invoices/{invoice_id}",
    summary="Get invoice",
    description="Get an invoice with its line items, totals and balance due.",
    response_model=Invoice,
    responses={404: {"model": ErrorResponse, "description": "Invoice not found"}},
)
async def get_invoice(
    invoice_id: str,
    ledger: InvoiceLedger = Depends(get_invoice_ledger),
) -> Invoice:
    return ledger.require_invoice(invoice_id)


@router.get(
    "/invoices/{invoice_id}/payments",
    summary="List invoice payments",
    description="List payments made against an invoice, oldest first.",
    response_model=list[Payment],
    responses={404: {"model": ErrorResponse, "description": "Invoice not found"}},
)
async def list_invoice_payments(
    invoice_id: str,
    ledger: InvoiceLedger = Depends(get_invoice_ledger),
    settlement: PaymentSettlement = Depends(get_payment_settlement),
) -> list[Payment]:
    ledger.require_invoice(invoice_id)
    return settlement.list_payments(invoice_id)


@router.post(
    "/invoices/{invoice_id}/payments/authorize",
    summary="Authorize payment",
    description="""
Authorize a payment against an open invoice.

**Notes:**
- Amount must be positive with at most 2 decimals
- The invoice balance only changes when the payment is captured
""",
    response_model=PaymentResult,
    responses={
        200: {
            "description": "Authorization processed",
            "content": {
                "application/json": {
                    "example": {
                        "payment_id": "PAY-0A1B2C3D4E5F6071",
                        "status": "authorized",
                        "processor_reference": "AUTH-5D41402A",
                        "failure_reason": None,
                    }
                }
            },
        },
        400: {"model": ErrorResponse, "description": "Invalid amount"},
        404: {"model": ErrorResponse, "description": "Invoice not found"},
        409: {"model": ErrorResponse, "description": "Invoice is not open"},
    },
)
async def authorize_payment(
    invoice_id: str,
    body: AuthorizeRequest,
    settlement: PaymentSettlement = Depends(get_payment_settlement),
) -> PaymentResult:
    return settlement.authorize(
        invoice_id,
        body.payment_token,
        body.amount,
        method=body.method,
        initiated_by=body.initiated_by,
    )


@router.get(
    "/payments/{payment_id}",
    summary="Get payment",
    response_model=Payment,
    responses={404: _PAYMENT_NOT_FOUND},
)
async def get_payment(
    payment_id: str,
    settlement: PaymentSettlement = Depends(get_payment_settlement),
) -> Payment:
    return settlement.require_payment(payment_id)


@router.post(
    "/payments/{payment_id}/capture",
    summary="Capture payment",
    description="Capture an authorized payment and apply it to the invoice balance.",
    response_model=PaymentResult,
    responses={404: _PAYMENT_NOT_FOUND, 409: _TRANSITION},
)
async def capture_payment(
    payment_id: str,
    settlement: PaymentSettlement = Depends(get_payment_settlement),
) -> PaymentResult:
    return settlement.capture(payment_id)


@router.post(
    "/payments/{payment_id}/refund",
    summary="Refund payment",
    description="""
Refund a captured payment, in full or in part.

The invoice balance grows by the refunded amount, never beyond the
invoice's grand total.
""",
    response_model=PaymentResult,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid refund amount"},
        404: _PAYMENT_NOT_FOUND,
        409: _TRANSITION,
    },
)
async def refund_payment(
    payment_id: str,
    body: RefundRequest | None = None,
    settlement: PaymentSettlement = Depends(get_payment_settlement),
) -> PaymentResult:
    amount = body.amount if body else None
    return settlement.refund(payment_id, amount)


@router.post(
    "/payments/{payment_id}/void",
    summary="Void payment",
    description="Release an authorization that will not be captured.",
    response_model=PaymentResult,
    responses={404: _PAYMENT_NOT_FOUND, 409: _TRANSITION},
)
async def void_payment(
    payment_id: str,
    settlement: PaymentSettlement = Depends(get_payment_settlement),
) -> PaymentResult:
    return settlement.void(payment_id)
