"""Notification Service Interface

Defines the contract for telling a client about a new top-up invoice.
Delivery (email, SMS) belongs to the invoicing pipeline; the billing engine
only hands the invoice over.
"""

from abc import ABC, abstractmethod
from src.domain.invoice import Invoice


class NotificationService(ABC):
    """
    Abstract notification service for invoice delivery

    Implementations can deliver via:
    - Webhook (HTTP POST to the invoicing pipeline)
    - Log only (development)
    """

    @abstractmethod
    async def send_top_up_invoice(self, invoice: Invoice) -> bool:
        """
        Hand a freshly created top-up invoice to the delivery channel

        Args:
            invoice: SENT top-up invoice

        Returns:
            True if handed over successfully, False otherwise
        """
        pass
