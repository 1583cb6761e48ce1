"""Invoice API Routes

FastAPI routes for invoice payment and voiding of prepaid top-up invoices.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Header, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.error import raise_for_error
from src.api.schemas.prepaid_request import VoidAndSwitchRequestSchema
from src.app.use_cases.prepaid import RecordInvoicePayment, RetryPolicy, VoidInvoiceAndSwitchBilling
from src.app.use_cases.prepaid.dtos import InvoicePaymentResponseDTO, VoidAndSwitchResponseDTO
from src.adapter.repositories import (
    SqlAlchemyClientBillingProfileRepository,
    SqlAlchemyInvoiceRepository,
    SqlAlchemyLedgerTransactionRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_retry_policy, get_session

router = APIRouter(prefix="/invoices", tags=["Invoices"])


@router.post(
    "/{invoice_id}/pay",
    response_model=InvoicePaymentResponseDTO,
    status_code=status.HTTP_200_OK,
    responses={
        404: {
            "description": "Invoice not found",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "INVOICE_NOT_FOUND",
                            "message": "Invoice 123 not found"
                        }
                    }
                }
            }
        },
        400: {
            "description": "Invoice was cancelled",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "INVOICE_ALREADY_CANCELLED",
                            "message": "Invoice INV-2025-000007 was cancelled and cannot be paid"
                        }
                    }
                }
            }
        }
    }
)
async def pay_invoice(
    invoice_id: int,
    x_workspace_id: Optional[str] = Header(default=None),
    session: AsyncSession = Depends(get_session),
    policy: RetryPolicy = Depends(get_retry_policy),
):
    """
    Record payment of an invoice.

    Paying a prepaid top-up invoice credits the client's balance by the
    invoice amount. Paying an invoice twice credits once and reports
    `already_paid=true` the second time.

    **Returns:**
    - 200: Payment recorded
    - 400: Invoice was cancelled
    - 404: Invoice not found
    """
    use_case = RecordInvoicePayment(
        uow=SqlAlchemyUnitOfWork(session),
        invoice_repo=SqlAlchemyInvoiceRepository(session),
        profile_repo=SqlAlchemyClientBillingProfileRepository(session),
        transaction_repo=SqlAlchemyLedgerTransactionRepository(session),
        policy=policy,
    )
    result = await use_case.execute(invoice_id, workspace_id=x_workspace_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/{invoice_id}/void-and-switch",
    response_model=VoidAndSwitchResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def void_and_switch_billing(
    invoice_id: int,
    request: VoidAndSwitchRequestSchema,
    x_workspace_id: Optional[str] = Header(default=None),
    session: AsyncSession = Depends(get_session),
    policy: RetryPolicy = Depends(get_retry_policy),
):
    """
    Void an unpaid top-up invoice and move the client off prepaid billing.

    The remaining balance is kept on the profile as credit.

    **Example request:**
    ```json
    {"new_billing_mode": "PER_SESSION"}
    ```

    **Returns:**
    - 200: Invoice voided and billing mode switched
    - 400: Not a top-up invoice, already paid/cancelled, or invalid mode
    - 404: Invoice not found
    """
    use_case = VoidInvoiceAndSwitchBilling(
        uow=SqlAlchemyUnitOfWork(session),
        invoice_repo=SqlAlchemyInvoiceRepository(session),
        profile_repo=SqlAlchemyClientBillingProfileRepository(session),
        transaction_repo=SqlAlchemyLedgerTransactionRepository(session),
        policy=policy,
    )
    result = await use_case.execute(
        invoice_id, request.new_billing_mode, workspace_id=x_workspace_id
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value
