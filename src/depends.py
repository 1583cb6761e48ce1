from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.notification_service import create_notification_service
from src.app.services.notification_service import NotificationService
from src.app.use_cases.prepaid.retry import RetryPolicy


def _engine_options() -> dict:
    options = {"echo": False, "future": True}
    if ApplicationConfig.DB_ISOLATION_LEVEL:
        options["isolation_level"] = ApplicationConfig.DB_ISOLATION_LEVEL
    return options


engine = create_async_engine(ApplicationConfig.DB_URI, **_engine_options())

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


def get_retry_policy() -> RetryPolicy:
    return RetryPolicy.from_config(ApplicationConfig)


def get_notification_service() -> NotificationService:
    return create_notification_service(ApplicationConfig.TOP_UP_NOTIFICATION_WEBHOOK)
