"""Client Billing Profile Repository Interface

The balance store: the only way to change a client's prepaid balance.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional
from src.domain.client_billing_profile import BillingMode, ClientBillingProfile


class ClientBillingProfileRepository(ABC):
    """
    Repository interface for ClientBillingProfile persistence

    Mutations are compare-and-swap on the profile's version column: they
    succeed only if nobody changed the row since it was read, otherwise they
    raise ConcurrencyConflictError and the caller retries the whole unit of work.
    """

    @abstractmethod
    async def get_by_id(self, profile_id: int) -> Optional[ClientBillingProfile]:
        """
        Retrieve profile by ID

        Returns:
            ClientBillingProfile if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_client_id(self, client_id: str) -> Optional[ClientBillingProfile]:
        """
        Retrieve profile by client ID

        Returns:
            ClientBillingProfile if found, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, profile: ClientBillingProfile) -> ClientBillingProfile:
        pass

    @abstractmethod
    async def apply_delta(self, profile: ClientBillingProfile, delta: Decimal) -> Decimal:
        """
        Atomically add delta to the balance

        Args:
            profile: Profile as read in the current unit of work
            delta: Signed amount (negative for deductions)

        Returns:
            The new balance

        Raises:
            NegativeBalanceError: If the result would be below zero
            ConcurrencyConflictError: If the profile changed since it was read
        """
        pass

    @abstractmethod
    async def update_billing_settings(
        self,
        profile: ClientBillingProfile,
        billing_mode: BillingMode,
        target_balance: Optional[Decimal],
    ) -> ClientBillingProfile:
        """
        Atomically change billing mode and target balance

        Raises:
            ConcurrencyConflictError: If the profile changed since it was read
        """
        pass

    @abstractmethod
    async def list_prepaid(self, trainer_id: str, workspace_id: str) -> List[ClientBillingProfile]:
        """
        List PREPAID profiles of a trainer within a workspace, ordered by client name
        """
        pass

    @abstractmethod
    async def get_all(self) -> List[ClientBillingProfile]:
        pass
