"""Trainer Billing Settings Repository Interface"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.trainer_settings import TrainerBillingSettings


class TrainerSettingsRepository(ABC):

    @abstractmethod
    async def get_by_trainer_id(self, trainer_id: str) -> Optional[TrainerBillingSettings]:
        pass
