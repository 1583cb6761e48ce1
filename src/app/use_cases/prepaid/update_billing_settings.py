"""UpdateBillingSettings Use Case

Operator change of a client's billing mode and prepaid target balance.
"""

import logging
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.client_billing_profile_repository import ClientBillingProfileRepository
from src.domain.base import to_money
from src.domain.client_billing_profile import BillingMode
from src.domain.errors import RetriesExhaustedError
from .dtos import BillingSettingsResponseDTO, UpdateBillingSettingsCommandDTO
from .errors import ErrorCode, client_not_found, transient_failure
from .retry import RetryPolicy, run_in_transaction

logger = logging.getLogger(__name__)


class UpdateBillingSettings:
    """
    Use Case: Update billing mode and target balance

    The balance itself is never changed here. PREPAID requires a positive
    target; other modes keep whatever target is supplied (None clears it).
    """

    def __init__(
        self,
        uow: UnitOfWork,
        profile_repo: ClientBillingProfileRepository,
        policy: RetryPolicy = RetryPolicy(),
    ):
        self.uow = uow
        self.profile_repo = profile_repo
        self.policy = policy

    async def execute(
        self, command: UpdateBillingSettingsCommandDTO
    ) -> Result[BillingSettingsResponseDTO]:
        try:
            mode = BillingMode(command.billing_mode)
        except ValueError:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_BILLING_MODE,
                    message=f"Unknown billing mode {command.billing_mode}",
                    reason=f"allowed={[m.value for m in BillingMode]}",
                )
            )

        if command.target_balance is not None and command.target_balance <= 0:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_AMOUNT,
                    message="Target balance must be greater than zero",
                    reason=f"target_balance={command.target_balance}",
                )
            )

        if mode == BillingMode.PREPAID and command.target_balance is None:
            return Return.err(
                Error(
                    code=ErrorCode.TARGET_BALANCE_NOT_CONFIGURED,
                    message="Prepaid billing requires a target balance",
                )
            )

        try:
            return await run_in_transaction(
                self.uow,
                "update_billing_settings",
                lambda: self._update(command, mode),
                self.policy,
            )
        except RetriesExhaustedError as e:
            return Return.err(transient_failure(e))
        except Exception as e:
            logger.exception(f"Updating billing settings failed for client {command.client_id}")
            return Return.err(
                Error(
                    code="UPDATE_BILLING_SETTINGS_FAILED",
                    message="Failed to update billing settings",
                    reason=str(e),
                )
            )

    async def _update(
        self, command: UpdateBillingSettingsCommandDTO, mode: BillingMode
    ) -> Result[BillingSettingsResponseDTO]:
        profile = await self.profile_repo.get_by_client_id(command.client_id)
        if not profile or (command.workspace_id and profile.workspace_id != command.workspace_id):
            return Return.err(client_not_found(command.client_id))

        target = to_money(command.target_balance) if command.target_balance is not None else None
        await self.profile_repo.update_billing_settings(profile, mode, target)
        logger.info(f"Client {profile.client_id} billing set to {mode.value} (target {target})")

        return Return.ok(
            BillingSettingsResponseDTO(
                client_id=profile.client_id,
                client_profile_id=profile.id,
                billing_mode=mode.value,
                target_balance=target,
                current_balance=profile.current_balance,
            )
        )
