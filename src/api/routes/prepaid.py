"""Prepaid Billing API Routes

FastAPI routes for prepaid balances, session deductions and top-up invoices.
Workspace scoping comes from the X-Workspace-Id header; a resource in another
workspace is reported as not found.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Header, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.api.error import raise_for_error
from src.api.schemas.prepaid_request import (
    AddCreditRequestSchema,
    TopUpInvoiceRequestSchema,
    UpdateBillingRequestSchema,
)
from src.app.services.notification_service import NotificationService
from src.app.use_cases.prepaid import (
    AddCredit,
    DeductSession,
    GenerateTopUpInvoice,
    GetPrepaidClientsSummary,
    ListTransactions,
    ProcessSessionCompletion,
    RetryPolicy,
    SessionRateResolver,
    UpdateBillingSettings,
)
from src.app.use_cases.prepaid.dtos import (
    AddCreditCommandDTO,
    AddCreditResponseDTO,
    BillingSettingsResponseDTO,
    ListTransactionsResponseDTO,
    PrepaidClientsSummaryResponseDTO,
    SessionBillingResponseDTO,
    SessionDeductionOutcomeDTO,
    TopUpInvoiceResponseDTO,
    UpdateBillingSettingsCommandDTO,
)
from src.adapter.repositories import (
    SqlAlchemyClientBillingProfileRepository,
    SqlAlchemyInvoiceLineRepository,
    SqlAlchemyInvoiceRepository,
    SqlAlchemyLedgerTransactionRepository,
    SqlAlchemyTrainerSettingsRepository,
    SqlAlchemyTrainingSessionRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_notification_service, get_retry_policy, get_session

router = APIRouter(prefix="/prepaid", tags=["Prepaid"])

ERROR_EXAMPLE = {
    "application/json": {
        "example": {
            "error": {
                "code": "TRANSIENT_FAILURE",
                "message": "deduct_session could not complete due to concurrent updates; safe to retry",
                "reason": "ClientBillingProfile 1 was modified concurrently (expected 3)"
            }
        }
    }
}


def _deduct_session(session: AsyncSession, policy: RetryPolicy) -> DeductSession:
    session_repo = SqlAlchemyTrainingSessionRepository(session)
    return DeductSession(
        uow=SqlAlchemyUnitOfWork(session),
        session_repo=session_repo,
        profile_repo=SqlAlchemyClientBillingProfileRepository(session),
        transaction_repo=SqlAlchemyLedgerTransactionRepository(session),
        rate_resolver=SessionRateResolver(
            session_repo, SqlAlchemyTrainerSettingsRepository(session)
        ),
        policy=policy,
    )


def _generate_top_up_invoice(
    session: AsyncSession, policy: RetryPolicy, notification_service: NotificationService
) -> GenerateTopUpInvoice:
    return GenerateTopUpInvoice(
        uow=SqlAlchemyUnitOfWork(session),
        profile_repo=SqlAlchemyClientBillingProfileRepository(session),
        transaction_repo=SqlAlchemyLedgerTransactionRepository(session),
        invoice_repo=SqlAlchemyInvoiceRepository(session),
        invoice_line_repo=SqlAlchemyInvoiceLineRepository(session),
        settings_repo=SqlAlchemyTrainerSettingsRepository(session),
        notification_service=notification_service,
        policy=policy,
        currency=ApplicationConfig.CURRENCY,
        default_due_days=ApplicationConfig.DEFAULT_INVOICE_DUE_DAYS,
    )


@router.post(
    "/sessions/{session_id}/deduct",
    response_model=SessionDeductionOutcomeDTO,
    status_code=status.HTTP_200_OK,
    responses={
        404: {"description": "Session or client not found"},
        409: {"description": "Session rate not configured"},
        503: {"description": "Concurrent updates, safe to retry", "content": ERROR_EXAMPLE},
    }
)
async def deduct_session(
    session_id: str,
    session: AsyncSession = Depends(get_session),
    policy: RetryPolicy = Depends(get_retry_policy),
):
    """
    Deduct one completed session from the client's prepaid balance.

    Repeating the call for the same session returns the recorded outcome
    with `already_processed=true` and never charges twice. A short balance is
    drained to zero and reported with `success=false`.

    **Returns:**
    - 200: Deduction outcome
    - 400: Session was cancelled
    - 404: Session or client profile not found
    - 409: Rate not configured
    - 503: Retries exhausted under contention
    """
    result = await _deduct_session(session, policy).execute(session_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/sessions/{session_id}/complete",
    response_model=SessionBillingResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def complete_session(
    session_id: str,
    session: AsyncSession = Depends(get_session),
    policy: RetryPolicy = Depends(get_retry_policy),
    notification_service: NotificationService = Depends(get_notification_service),
):
    """
    Run the billing pipeline for a completed session.

    Deducts the session for a PREPAID client and, when the balance runs
    short, generates (at most one) top-up invoice.
    """
    use_case = ProcessSessionCompletion(
        session_repo=SqlAlchemyTrainingSessionRepository(session),
        profile_repo=SqlAlchemyClientBillingProfileRepository(session),
        deduct_session=_deduct_session(session, policy),
        generate_invoice=_generate_top_up_invoice(session, policy, notification_service),
    )
    result = await use_case.execute(session_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/clients/{client_id}/credits",
    response_model=AddCreditResponseDTO,
    status_code=status.HTTP_201_CREATED,
)
async def add_credit(
    client_id: str,
    request: AddCreditRequestSchema,
    x_workspace_id: Optional[str] = Header(default=None),
    session: AsyncSession = Depends(get_session),
    policy: RetryPolicy = Depends(get_retry_policy),
):
    """
    Add prepaid credit to a client's balance.

    A client not yet on PREPAID billing is switched to it; this requires a
    target balance to be configured.

    **Example request:**
    ```json
    {"amount": "500.00", "notes": "Initial prepaid deposit"}
    ```
    """
    command = AddCreditCommandDTO(
        client_id=client_id,
        amount=request.amount,
        notes=request.notes,
        workspace_id=x_workspace_id,
    )

    use_case = AddCredit(
        uow=SqlAlchemyUnitOfWork(session),
        profile_repo=SqlAlchemyClientBillingProfileRepository(session),
        transaction_repo=SqlAlchemyLedgerTransactionRepository(session),
        policy=policy,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.put(
    "/clients/{client_id}/billing",
    response_model=BillingSettingsResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def update_billing_settings(
    client_id: str,
    request: UpdateBillingRequestSchema,
    x_workspace_id: Optional[str] = Header(default=None),
    session: AsyncSession = Depends(get_session),
    policy: RetryPolicy = Depends(get_retry_policy),
):
    """
    Change a client's billing mode and target balance.
    """
    command = UpdateBillingSettingsCommandDTO(
        client_id=client_id,
        billing_mode=request.billing_mode,
        target_balance=request.target_balance,
        workspace_id=x_workspace_id,
    )

    use_case = UpdateBillingSettings(
        uow=SqlAlchemyUnitOfWork(session),
        profile_repo=SqlAlchemyClientBillingProfileRepository(session),
        policy=policy,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/clients/{client_id}/top-up-invoice",
    response_model=Optional[TopUpInvoiceResponseDTO],
    status_code=status.HTTP_200_OK,
)
async def generate_top_up_invoice(
    client_id: str,
    request: Optional[TopUpInvoiceRequestSchema] = None,
    x_workspace_id: Optional[str] = Header(default=None),
    session: AsyncSession = Depends(get_session),
    policy: RetryPolicy = Depends(get_retry_policy),
    notification_service: NotificationService = Depends(get_notification_service),
):
    """
    Generate (or return the open) top-up invoice for a prepaid client.

    Returns `null` when the balance is already at or above the target.
    """
    use_case = _generate_top_up_invoice(session, policy, notification_service)
    result = await use_case.execute(
        client_id,
        trainer_id=request.trainer_id if request else None,
        workspace_id=x_workspace_id,
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get(
    "/profiles/{profile_id}/transactions",
    response_model=ListTransactionsResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def list_transactions(
    profile_id: int,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    x_workspace_id: Optional[str] = Header(default=None),
    session: AsyncSession = Depends(get_session),
):
    """
    Page through a client's prepaid ledger, newest first.
    """
    use_case = ListTransactions(
        profile_repo=SqlAlchemyClientBillingProfileRepository(session),
        transaction_repo=SqlAlchemyLedgerTransactionRepository(session),
    )
    result = await use_case.execute(
        profile_id, limit=limit, offset=offset, workspace_id=x_workspace_id
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get(
    "/summary",
    response_model=PrepaidClientsSummaryResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def get_prepaid_summary(
    trainer_id: str = Query(..., min_length=1),
    workspace_id: str = Query(..., min_length=1),
    session: AsyncSession = Depends(get_session),
):
    """
    Prepaid clients of a trainer with balance status and totals.
    """
    use_case = GetPrepaidClientsSummary(
        profile_repo=SqlAlchemyClientBillingProfileRepository(session),
        transaction_repo=SqlAlchemyLedgerTransactionRepository(session),
        low_balance_ratio=ApplicationConfig.LOW_BALANCE_RATIO,
    )
    result = await use_case.execute(trainer_id, workspace_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
