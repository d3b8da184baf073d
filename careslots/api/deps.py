from careslots.core.config import settings
from careslots.core.db import async_session_maker
from careslots.services.data_access import AvailabilityDataSource
from careslots.services.schedule_repository import SqlAvailabilityRepository


def get_data_source() -> AvailabilityDataSource:
    return SqlAvailabilityRepository(async_session_maker)


def get_timezone() -> str:
    """The configured provider zone. Routes never fall back to the server's zone."""
    return settings.provider_timezone


def get_blocking_statuses() -> frozenset[str]:
    return settings.blocking_status_set
