"""Training Session Repository Interface

Read access to sessions supplied by the scheduling system.
"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.training_session import TrainingSession
from src.domain.trainer_settings import GroupMatchingStrategy


class TrainingSessionRepository(ABC):

    @abstractmethod
    async def get_by_id(self, session_id: str) -> Optional[TrainingSession]:
        pass

    @abstractmethod
    async def count_group_participants(
        self, session: TrainingSession, strategy: GroupMatchingStrategy
    ) -> int:
        """
        Count other clients' live sessions sharing this session's slot

        Only SCHEDULED/COMPLETED sessions of the same trainer and workspace are
        considered; the session's own client is excluded.
        """
        pass
