"""Invoice Line Repository Interface"""

from abc import ABC, abstractmethod
from typing import List
from src.domain.invoice_line import InvoiceLine


class InvoiceLineRepository(ABC):

    @abstractmethod
    async def get_by_invoice_id(self, invoice_id: int) -> List[InvoiceLine]:
        pass

    @abstractmethod
    async def create_many(self, lines: List[InvoiceLine]) -> List[InvoiceLine]:
        pass
