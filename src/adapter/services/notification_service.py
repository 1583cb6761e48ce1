"""Top-up invoice delivery adapters

The billing engine never renders or emails invoices itself; these adapters
hand a SENT top-up invoice to whoever does.
"""

import logging
from typing import Optional
import httpx
from src.app.services.notification_service import NotificationService
from src.domain.invoice import Invoice

logger = logging.getLogger(__name__)


def top_up_invoice_payload(invoice: Invoice) -> dict:
    """JSON body describing a top-up invoice to the invoicing pipeline"""
    return {
        "type": "prepaid_top_up_invoice",
        "invoice_id": invoice.id,
        "invoice_number": invoice.invoice_number,
        "client_id": invoice.client_id,
        "trainer_id": invoice.trainer_id,
        "workspace_id": invoice.workspace_id,
        "amount": str(invoice.amount),
        "currency": invoice.currency,
        "due_date": invoice.due_date.isoformat() if invoice.due_date else None,
        "notes": invoice.notes,
    }


class LoggingNotificationService(NotificationService):
    """Development channel, and the audit line every invoice gets"""

    async def send_top_up_invoice(self, invoice: Invoice) -> bool:
        logger.info(
            f"[TOP-UP INVOICE] {invoice.invoice_number} for client {invoice.client_id}: "
            f"{invoice.amount} {invoice.currency}, due {invoice.due_date}"
        )
        return True


class WebhookNotificationService(NotificationService):
    """
    POSTs the invoice to the invoicing pipeline's webhook

    The invoice number goes out as ``Idempotency-Key`` so the receiver can
    drop a repeated delivery. Transport errors and 5xx responses are retried
    up to ``attempts`` times; a 4xx is final.
    """

    def __init__(
        self,
        webhook_url: str,
        timeout: float = 10.0,
        attempts: int = 2,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.attempts = max(1, attempts)
        self.transport = transport

    async def send_top_up_invoice(self, invoice: Invoice) -> bool:
        headers = {"Idempotency-Key": invoice.invoice_number}
        payload = top_up_invoice_payload(invoice)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            for attempt in range(1, self.attempts + 1):
                try:
                    response = await client.post(self.webhook_url, json=payload, headers=headers)
                    response.raise_for_status()
                except httpx.HTTPStatusError as e:
                    logger.error(
                        f"Webhook rejected invoice {invoice.invoice_number} "
                        f"(attempt {attempt}/{self.attempts}): HTTP {e.response.status_code}"
                    )
                    if e.response.status_code < 500:
                        return False
                except httpx.HTTPError as e:
                    logger.error(
                        f"Webhook delivery failed for invoice {invoice.invoice_number} "
                        f"(attempt {attempt}/{self.attempts}): {e}"
                    )
                else:
                    logger.info(f"Invoice {invoice.invoice_number} delivered to {self.webhook_url}")
                    return True
        return False


class CompositeNotificationService(NotificationService):
    """Fans out to every channel; succeeds when at least one channel does"""

    def __init__(self, services: list[NotificationService]):
        self.services = services

    async def send_top_up_invoice(self, invoice: Invoice) -> bool:
        delivered = False
        for service in self.services:
            try:
                delivered = await service.send_top_up_invoice(invoice) or delivered
            except Exception as e:
                logger.error(
                    f"{type(service).__name__} raised for invoice {invoice.invoice_number}: {e}"
                )
        return delivered


def create_notification_service(webhook_url: Optional[str] = None) -> NotificationService:
    """Logging only, or logging plus the webhook when one is configured"""
    if not webhook_url:
        return LoggingNotificationService()
    return CompositeNotificationService(
        [LoggingNotificationService(), WebhookNotificationService(webhook_url)]
    )
