"""Session Rate Resolver

Decides what one session costs a client: individual or group price.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from src.app.repositories.trainer_settings_repository import TrainerSettingsRepository
from src.app.repositories.training_session_repository import TrainingSessionRepository
from src.domain.base import to_money
from src.domain.client_billing_profile import ClientBillingProfile
from src.domain.errors import RateConfigurationError
from src.domain.trainer_settings import GroupMatchingStrategy, TrainerBillingSettings
from src.domain.training_session import GroupOverride, TrainingSession
from .dtos import ResolvedRateDTO


def format_session_date(moment: datetime) -> str:
    """'Mar 5, 2025'"""
    return f"{moment.strftime('%b')} {moment.day}, {moment.year}"


def session_description(session: TrainingSession, is_group_session: bool) -> str:
    prefix = "Group training session" if is_group_session else "Training session"
    return f"{prefix} on {format_session_date(session.start_time)}"


class SessionRateResolver:
    """
    Resolves the price of a session

    Rules:
    1. A per-session override wins: FORCE_INDIVIDUAL charges the individual
       rate, FORCE_GROUP takes the group path
    2. Otherwise the session is a group session if another client has a
       SCHEDULED or COMPLETED session with the same trainer in the same slot,
       judged by the trainer's matching strategy (EXACT_MATCH by default)
    3. Group path: client group rate, else trainer default group rate,
       else the individual rate
    4. A rate that is zero or negative is a configuration error, never clamped
    """

    def __init__(
        self,
        session_repo: TrainingSessionRepository,
        settings_repo: TrainerSettingsRepository,
    ):
        self.session_repo = session_repo
        self.settings_repo = settings_repo

    async def resolve(
        self, session: TrainingSession, profile: ClientBillingProfile
    ) -> ResolvedRateDTO:
        """
        Raises:
            RateConfigurationError: If the chosen rate is missing or not positive
        """
        settings = await self.settings_repo.get_by_trainer_id(session.trainer_id)

        if session.group_override == GroupOverride.FORCE_INDIVIDUAL:
            return ResolvedRateDTO(
                rate=self._validated(profile.individual_rate, "individual", profile),
                is_group_session=False,
            )

        participants = 0
        if session.group_override == GroupOverride.FORCE_GROUP:
            is_group = True
        else:
            strategy = settings.group_matching if settings else GroupMatchingStrategy.EXACT_MATCH
            participants = await self.session_repo.count_group_participants(session, strategy)
            is_group = participants > 0

        if not is_group:
            return ResolvedRateDTO(
                rate=self._validated(profile.individual_rate, "individual", profile),
                is_group_session=False,
            )

        return ResolvedRateDTO(
            rate=self._group_rate(profile, settings),
            is_group_session=True,
            participant_count=participants + 1,
        )

    def _group_rate(
        self, profile: ClientBillingProfile, settings: Optional[TrainerBillingSettings]
    ) -> Decimal:
        if profile.group_rate is not None:
            return self._validated(profile.group_rate, "group", profile)
        if settings is not None and settings.default_group_rate is not None:
            return self._validated(settings.default_group_rate, "trainer default group", profile)
        return self._validated(profile.individual_rate, "individual", profile)

    @staticmethod
    def _validated(rate: Optional[Decimal], kind: str, profile: ClientBillingProfile) -> Decimal:
        if rate is None or rate <= 0:
            raise RateConfigurationError(
                f"{kind.capitalize()} rate for client {profile.client_id} is not configured (got {rate})"
            )
        return to_money(rate)
