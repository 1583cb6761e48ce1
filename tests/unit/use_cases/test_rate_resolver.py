"""Unit tests for SessionRateResolver"""

import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.prepaid.rate_resolver import (
    SessionRateResolver,
    format_session_date,
    session_description,
)
from src.domain.errors import RateConfigurationError
from src.domain.trainer_settings import GroupMatchingStrategy, TrainerBillingSettings
from src.domain.training_session import GroupOverride


@pytest.fixture
def mock_session_repo():
    repo = MagicMock()
    repo.count_group_participants = AsyncMock(return_value=0)
    return repo


@pytest.fixture
def mock_settings_repo():
    repo = MagicMock()
    repo.get_by_trainer_id = AsyncMock(return_value=None)
    return repo


@pytest.fixture
def resolver(mock_session_repo, mock_settings_repo):
    return SessionRateResolver(mock_session_repo, mock_settings_repo)


@pytest.mark.asyncio
class TestIndividualSessions:

    async def test_individual_rate_when_alone(
        self, resolver, mock_session_repo, prepaid_profile, completed_session
    ):
        resolved = await resolver.resolve(completed_session, prepaid_profile)

        assert resolved.rate == Decimal("100.00")
        assert resolved.is_group_session is False
        mock_session_repo.count_group_participants.assert_called_once_with(
            completed_session, GroupMatchingStrategy.EXACT_MATCH
        )

    async def test_force_individual_skips_detection(
        self, resolver, mock_session_repo, prepaid_profile, completed_session
    ):
        completed_session.group_override = GroupOverride.FORCE_INDIVIDUAL
        mock_session_repo.count_group_participants = AsyncMock(return_value=3)

        resolved = await resolver.resolve(completed_session, prepaid_profile)

        assert resolved.rate == Decimal("100.00")
        assert resolved.is_group_session is False
        mock_session_repo.count_group_participants.assert_not_called()


@pytest.mark.asyncio
class TestGroupSessions:

    async def test_group_rate_when_slot_is_shared(
        self, resolver, mock_session_repo, prepaid_profile, completed_session
    ):
        mock_session_repo.count_group_participants = AsyncMock(return_value=1)

        resolved = await resolver.resolve(completed_session, prepaid_profile)

        assert resolved.rate == Decimal("75.00")
        assert resolved.is_group_session is True
        assert resolved.participant_count == 2

    async def test_force_group_uses_group_rate(
        self, resolver, mock_session_repo, prepaid_profile, completed_session
    ):
        completed_session.group_override = GroupOverride.FORCE_GROUP

        resolved = await resolver.resolve(completed_session, prepaid_profile)

        assert resolved.rate == Decimal("75.00")
        assert resolved.is_group_session is True
        mock_session_repo.count_group_participants.assert_not_called()

    async def test_trainer_strategy_is_used_for_detection(
        self, resolver, mock_session_repo, mock_settings_repo, prepaid_profile, completed_session
    ):
        mock_settings_repo.get_by_trainer_id = AsyncMock(
            return_value=TrainerBillingSettings(
                trainer_id="trainer_123", group_matching=GroupMatchingStrategy.ANY_OVERLAP
            )
        )

        await resolver.resolve(completed_session, prepaid_profile)

        mock_session_repo.count_group_participants.assert_called_once_with(
            completed_session, GroupMatchingStrategy.ANY_OVERLAP
        )

    async def test_falls_back_to_trainer_default_group_rate(
        self, resolver, mock_session_repo, mock_settings_repo, prepaid_profile, completed_session
    ):
        prepaid_profile.group_rate = None
        mock_session_repo.count_group_participants = AsyncMock(return_value=1)
        mock_settings_repo.get_by_trainer_id = AsyncMock(
            return_value=TrainerBillingSettings(
                trainer_id="trainer_123", default_group_rate=Decimal("60.00")
            )
        )

        resolved = await resolver.resolve(completed_session, prepaid_profile)

        assert resolved.rate == Decimal("60.00")
        assert resolved.is_group_session is True

    async def test_falls_back_to_individual_rate(
        self, resolver, mock_session_repo, prepaid_profile, completed_session
    ):
        prepaid_profile.group_rate = None
        mock_session_repo.count_group_participants = AsyncMock(return_value=1)

        resolved = await resolver.resolve(completed_session, prepaid_profile)

        assert resolved.rate == Decimal("100.00")
        assert resolved.is_group_session is True


@pytest.mark.asyncio
class TestRateConfigurationErrors:

    async def test_zero_individual_rate_is_rejected(
        self, resolver, prepaid_profile, completed_session
    ):
        prepaid_profile.individual_rate = Decimal("0")

        with pytest.raises(RateConfigurationError):
            await resolver.resolve(completed_session, prepaid_profile)

    async def test_negative_group_rate_is_rejected(
        self, resolver, mock_session_repo, prepaid_profile, completed_session
    ):
        prepaid_profile.group_rate = Decimal("-5.00")
        mock_session_repo.count_group_participants = AsyncMock(return_value=1)

        with pytest.raises(RateConfigurationError):
            await resolver.resolve(completed_session, prepaid_profile)


class TestSessionDescription:

    def test_format_session_date(self):
        assert format_session_date(datetime(2025, 3, 5, 10, 0)) == "Mar 5, 2025"

    def test_individual_description(self, completed_session):
        assert session_description(completed_session, False) == "Training session on Mar 5, 2025"

    def test_group_description(self, completed_session):
        assert session_description(completed_session, True) == "Group training session on Mar 5, 2025"
