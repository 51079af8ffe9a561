"""Select the alert state repository for the configured backend."""

from smart_alerts.adapters.repositories.json_file_repository import JsonFileAlertStateRepository
from smart_alerts.adapters.repositories.postgres_repository import PostgresAlertStateRepository
from smart_alerts.domain.interfaces.repositories import AlertStateRepository
from smart_alerts.infrastructure.config import Settings


def build_repository(settings: Settings) -> AlertStateRepository:
    """Create the repository named by ``STORAGE_BACKEND``.

    Raises:
        ValueError: For an unknown backend
    """
    backend = settings.storage_backend.lower()
    if backend == "file":
        return JsonFileAlertStateRepository(settings.state_path, settings.storage_key)
    elif backend == "postgres":
        return PostgresAlertStateRepository(settings.storage_key)
    raise ValueError(f"Unknown storage backend: {settings.storage_backend}")
