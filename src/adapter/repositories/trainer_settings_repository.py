"""SQLAlchemy Trainer Billing Settings Repository Implementation"""

from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.trainer_settings_repository import TrainerSettingsRepository
from src.domain.trainer_settings import TrainerBillingSettings


class SqlAlchemyTrainerSettingsRepository(TrainerSettingsRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_trainer_id(self, trainer_id: str) -> Optional[TrainerBillingSettings]:
        statement = select(TrainerBillingSettings).where(
            TrainerBillingSettings.trainer_id == trainer_id
        )
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()
