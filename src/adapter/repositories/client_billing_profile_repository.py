"""SQLAlchemy implementation of ClientBillingProfileRepository

Balance and settings mutations are single conditional UPDATE statements
guarded by the version column (optimistic compare-and-swap).
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from sqlalchemy import update
from sqlalchemy.orm.attributes import set_committed_value
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.client_billing_profile_repository import ClientBillingProfileRepository
from src.domain.base import to_money
from src.domain.client_billing_profile import BillingMode, ClientBillingProfile
from src.domain.errors import ConcurrencyConflictError, NegativeBalanceError


class SqlAlchemyClientBillingProfileRepository(ClientBillingProfileRepository):
    """
    SQLAlchemy implementation of ClientBillingProfileRepository

    Features:
    - Compare-and-swap updates (WHERE id = ? AND version = ?)
    - Non-negative balance enforced before the write and by a check constraint
    - Different clients never contend (one row per client)
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, profile_id: int) -> Optional[ClientBillingProfile]:
        stmt = select(ClientBillingProfile).where(ClientBillingProfile.id == profile_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_client_id(self, client_id: str) -> Optional[ClientBillingProfile]:
        stmt = select(ClientBillingProfile).where(ClientBillingProfile.client_id == client_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, profile: ClientBillingProfile) -> ClientBillingProfile:
        self.session.add(profile)
        await self.session.flush()
        await self.session.refresh(profile)
        return profile

    async def apply_delta(self, profile: ClientBillingProfile, delta: Decimal) -> Decimal:
        """
        Add delta to the balance read into profile

        Note:
            Must run in the same unit of work as the ledger entry that justifies it
        """
        new_balance = to_money(profile.current_balance + delta)
        if new_balance < 0:
            raise NegativeBalanceError(profile.id, profile.current_balance, delta)

        await self._compare_and_swap(profile, current_balance=new_balance)
        return new_balance

    async def update_billing_settings(
        self,
        profile: ClientBillingProfile,
        billing_mode: BillingMode,
        target_balance: Optional[Decimal],
    ) -> ClientBillingProfile:
        await self._compare_and_swap(
            profile,
            billing_mode=billing_mode,
            target_balance=to_money(target_balance) if target_balance is not None else None,
        )
        return profile

    async def list_prepaid(self, trainer_id: str, workspace_id: str) -> List[ClientBillingProfile]:
        stmt = (
            select(ClientBillingProfile)
            .where(ClientBillingProfile.trainer_id == trainer_id)
            .where(ClientBillingProfile.workspace_id == workspace_id)
            .where(ClientBillingProfile.billing_mode == BillingMode.PREPAID)
            .order_by(ClientBillingProfile.client_name.asc(), ClientBillingProfile.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_all(self) -> List[ClientBillingProfile]:
        stmt = select(ClientBillingProfile).order_by(ClientBillingProfile.id.asc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def _compare_and_swap(self, profile: ClientBillingProfile, **values) -> None:
        expected_version = profile.version
        values["version"] = expected_version + 1
        values["updated_at"] = datetime.utcnow()

        stmt = (
            update(ClientBillingProfile)
            .where(ClientBillingProfile.id == profile.id)
            .where(ClientBillingProfile.version == expected_version)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            raise ConcurrencyConflictError("ClientBillingProfile", profile.id, expected_version)

        # Keep the loaded instance in step with the row without marking it dirty
        for key, value in values.items():
            set_committed_value(profile, key, value)
