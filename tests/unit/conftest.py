import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.prepaid.retry import RetryPolicy
from src.domain.client_billing_profile import BillingMode, ClientBillingProfile
from src.domain.training_session import SessionStatus, TrainingSession


@pytest.fixture
def mock_uow():
    """Mock unit of work"""
    uow = MagicMock()
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def fast_policy():
    """Retry policy without backoff delays"""
    return RetryPolicy(max_attempts=3, base_delay=0, max_delay=0)


@pytest.fixture
def prepaid_profile():
    """PREPAID client with 450.00 of 500.00 and a 100.00 individual rate"""
    return ClientBillingProfile(
        id=1,
        client_id="client_abc",
        trainer_id="trainer_123",
        workspace_id="ws_1",
        client_name="Jane Doe",
        client_email="jane@example.com",
        billing_mode=BillingMode.PREPAID,
        current_balance=Decimal("450.00"),
        target_balance=Decimal("500.00"),
        individual_rate=Decimal("100.00"),
        group_rate=Decimal("75.00"),
        version=3,
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow(),
    )


@pytest.fixture
def completed_session():
    return TrainingSession(
        id="sess_789",
        trainer_id="trainer_123",
        client_id="client_abc",
        workspace_id="ws_1",
        start_time=datetime(2025, 3, 5, 10, 0),
        end_time=datetime(2025, 3, 5, 11, 0),
        status=SessionStatus.COMPLETED,
    )
