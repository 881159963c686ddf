"""
Dependency injection container for the application.
"""

from typing import Any, Dict, Optional

import structlog
from motor.motor_asyncio import AsyncIOMotorDatabase

from jobsuite.config.settings import get_settings
from jobsuite.shared.infrastructure.database import DatabaseManager

# Domain services and repositories
from jobsuite.domains.interview.infrastructure.repositories import (
    InterviewRepository,
    JobApplicationRepository,
    UserRepository,
)
from jobsuite.domains.interview.application.services import InterviewService
from jobsuite.domains.notification.application.services import InterviewNotificationService
from jobsuite.domains.notification.domain.services.reminder_registry import ReminderRegistry
from jobsuite.domains.notification.infrastructure.calendar.calendar_service import CalendarService
from jobsuite.domains.notification.infrastructure.email.email_service import InterviewEmailService


logger = structlog.get_logger(__name__)


class Container:
    """Dependency injection container."""

    def __init__(self):
        self._singletons: Dict[str, Any] = {}
        self._settings = get_settings()
        self._database_manager: Optional[DatabaseManager] = None

    async def initialize(self):
        """Initialize the container and all services."""
        logger.info("Initializing dependency container")

        try:
            await self._initialize_database()
            self._initialize_infrastructure()
            self._initialize_domain_services()

            logger.info("Dependency container initialized successfully")

        except Exception as e:
            logger.error("Failed to initialize dependency container", error=str(e))
            raise

    async def cleanup(self):
        """Stop background work and close connections."""
        logger.info("Cleaning up dependency container")

        try:
            notification_service = self._singletons.get("notification_service")
            if notification_service:
                await notification_service.stop()

            if self._database_manager:
                await self._database_manager.disconnect()

            self._singletons.clear()

            logger.info("Dependency container cleaned up successfully")

        except Exception as e:
            logger.error("Error during container cleanup", error=str(e))

    async def _initialize_database(self):
        """Initialize database connections."""
        database_settings = self._settings.database
        self._database_manager = DatabaseManager(
            connection_string=database_settings.mongodb_url,
            database_name=database_settings.mongodb_database,
            min_pool_size=database_settings.mongodb_min_pool_size,
            max_pool_size=database_settings.mongodb_max_pool_size
        )
        await self._database_manager.connect()
        await self._database_manager.create_indexes()

    def _initialize_infrastructure(self):
        """Initialize outbound transports."""
        self._singletons["email_service"] = InterviewEmailService(
            self._settings.email, self._settings.frontend_url
        )
        self._singletons["calendar_service"] = CalendarService(self._settings.frontend_url)

    def _initialize_domain_services(self):
        """Initialize domain services and repositories."""
        database = self.get_database()
        email_service = self._singletons["email_service"]
        calendar_service = self._singletons["calendar_service"]

        interview_repository = InterviewRepository(database)
        user_repository = UserRepository(database)
        application_repository = JobApplicationRepository(database)

        notification_service = InterviewNotificationService(
            interview_repository=interview_repository,
            user_repository=user_repository,
            application_repository=application_repository,
            email_service=email_service,
            calendar_service=calendar_service,
            registry=ReminderRegistry(),
            settings=self._settings.reminders
        )

        interview_service = InterviewService(
            interview_repository=interview_repository,
            user_repository=user_repository,
            application_repository=application_repository,
            notification_service=notification_service,
            email_service=email_service,
            calendar_service=calendar_service
        )

        self._singletons["interview_repository"] = interview_repository
        self._singletons["user_repository"] = user_repository
        self._singletons["application_repository"] = application_repository
        self._singletons["notification_service"] = notification_service
        self._singletons["interview_service"] = interview_service

    def get(self, service_name: str) -> Any:
        """Get a service by name."""
        if service_name in self._singletons:
            return self._singletons[service_name]
        raise ValueError(f"Service '{service_name}' not found in container")

    def get_database(self) -> AsyncIOMotorDatabase:
        """Get the database instance."""
        if not self._database_manager:
            raise RuntimeError("Database not initialized")
        return self._database_manager.database

    @property
    def database_manager(self) -> Optional[DatabaseManager]:
        return self._database_manager


# Global container instance
_container: Optional[Container] = None


async def get_container() -> Container:
    """Get the global container instance."""
    global _container
    if _container is None:
        _container = Container()
        await _container.initialize()
    return _container


async def cleanup_container():
    """Cleanup the global container."""
    global _container
    if _container:
        await _container.cleanup()
        _container = None


# Dependency functions for FastAPI
async def get_interview_service() -> InterviewService:
    """Get InterviewService dependency."""
    container = await get_container()
    return container.get("interview_service")


async def get_notification_service() -> InterviewNotificationService:
    """Get InterviewNotificationService dependency."""
    container = await get_container()
    return container.get("notification_service")
