"""Unit of Work Interface

Groups repository writes into one atomic database transaction.
"""

from abc import ABC, abstractmethod


class UnitOfWork(ABC):
    """
    Transaction boundary for use cases

    Everything flushed through the repositories sharing this unit of work is
    committed or rolled back together.
    """

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
