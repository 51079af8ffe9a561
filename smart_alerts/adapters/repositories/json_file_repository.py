"""JSON file implementation of AlertStateRepository."""

import asyncio
import json
import os
import tempfile
from pathlib import Path

from smart_alerts.domain.interfaces.repositories import AlertStateRepository
from smart_alerts.domain.models.state import AlertState
from smart_alerts.domain.rules import DEFAULT_STORAGE_KEY


class JsonFileAlertStateRepository(AlertStateRepository):
    """Stores the aggregate as one JSON document in a local file.

    The file holds ``{storage_key: state}``; writes go to a temporary file
    that atomically replaces the old one, so a crash mid-write never
    leaves a truncated document behind.
    """

    def __init__(self, path: str | Path, storage_key: str = DEFAULT_STORAGE_KEY):
        """Initialize the repository.

        Args:
            path: JSON file location (parent directories are created on save)
            storage_key: Key the aggregate is stored under
        """
        self._path = Path(path)
        self._storage_key = storage_key

    @property
    def path(self) -> Path:
        return self._path

    async def load(self) -> AlertState | None:
        """Read the aggregate, or None if the file or key does not exist.

        Raises:
            json.JSONDecodeError: If the file is not valid JSON
            pydantic.ValidationError: If the document does not match the schema
        """
        loop = asyncio.get_running_loop()
        document = await loop.run_in_executor(None, self._read)
        if document is None or self._storage_key not in document:
            return None
        return AlertState.model_validate(document[self._storage_key])

    async def save(self, state: AlertState) -> None:
        """Replace the stored aggregate."""
        document = {self._storage_key: state.model_dump(mode="json")}
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, lambda: self._write(document))

    def _read(self) -> dict | None:
        """Synchronous file read."""
        if not self._path.exists():
            return None
        with self._path.open(encoding="utf-8") as f:
            return json.load(f)

    def _write(self, document: dict) -> None:
        """Synchronous atomic write."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
