"""Training Session Domain Entity

Read-side projection of appointments supplied by the scheduling system.
The billing engine only reads sessions; it never decides when one completes.
"""

from datetime import datetime
from enum import Enum
from sqlmodel import Field, Index
from src.domain.base import BaseModel, generate_uuid


class SessionStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class GroupOverride(str, Enum):
    """Trainer-set classification that beats automatic group detection"""
    DEFAULT = "DEFAULT"
    FORCE_INDIVIDUAL = "FORCE_INDIVIDUAL"
    FORCE_GROUP = "FORCE_GROUP"


class TrainingSession(BaseModel, table=True):
    """
    Training Session - One client's appointment with a trainer

    Domain Rules:
    - A session belongs to exactly one client
    - Several clients may share a time slot with the same trainer (group session)
    - CANCELLED sessions are never billed
    """

    __tablename__ = "training_sessions"
    __table_args__ = (
        Index('ix_training_sessions_trainer_start', 'trainer_id', 'start_time'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Session identifier"
    )

    trainer_id: str = Field(description="Trainer running the session")

    client_id: str = Field(index=True, description="Client attending the session")

    workspace_id: str = Field(index=True, description="Workspace (tenant)")

    start_time: datetime = Field(description="Scheduled start")

    end_time: datetime = Field(description="Scheduled end")

    status: SessionStatus = Field(
        default=SessionStatus.SCHEDULED,
        description="Scheduling status"
    )

    group_override: GroupOverride = Field(
        default=GroupOverride.DEFAULT,
        description="Force individual/group pricing for this session"
    )
