"""SQLAlchemy Unit of Work

One AsyncSession per unit of work. The retry loop in the prepaid use cases
rolls back and re-runs the whole unit after a conflict; rollback expires
every loaded instance so the next attempt re-reads fresh rows.
"""

from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()
