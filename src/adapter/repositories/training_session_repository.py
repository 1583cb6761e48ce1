"""SQLAlchemy Training Session Repository Implementation"""

from typing import Optional
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.training_session_repository import TrainingSessionRepository
from src.domain.trainer_settings import GroupMatchingStrategy
from src.domain.training_session import SessionStatus, TrainingSession


class SqlAlchemyTrainingSessionRepository(TrainingSessionRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, session_id: str) -> Optional[TrainingSession]:
        statement = select(TrainingSession).where(TrainingSession.id == session_id)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def count_group_participants(
        self, session: TrainingSession, strategy: GroupMatchingStrategy
    ) -> int:
        statement = (
            select(func.count())
            .select_from(TrainingSession)
            .where(TrainingSession.trainer_id == session.trainer_id)
            .where(TrainingSession.workspace_id == session.workspace_id)
            .where(TrainingSession.client_id != session.client_id)
            .where(TrainingSession.id != session.id)
            .where(TrainingSession.status.in_([SessionStatus.SCHEDULED, SessionStatus.COMPLETED]))
        )

        if strategy == GroupMatchingStrategy.START_MATCH:
            statement = statement.where(TrainingSession.start_time == session.start_time)
        elif strategy == GroupMatchingStrategy.END_MATCH:
            statement = statement.where(TrainingSession.end_time == session.end_time)
        elif strategy == GroupMatchingStrategy.ANY_OVERLAP:
            statement = statement.where(TrainingSession.start_time < session.end_time).where(
                TrainingSession.end_time > session.start_time
            )
        else:
            statement = statement.where(TrainingSession.start_time == session.start_time).where(
                TrainingSession.end_time == session.end_time
            )

        result = await self.session.execute(statement)
        return result.scalar_one()
