"""PostgreSQL implementation of AlertStateRepository."""

from smart_alerts.domain.interfaces.repositories import AlertStateRepository
from smart_alerts.domain.models.state import AlertState
from smart_alerts.domain.rules import DEFAULT_STORAGE_KEY
from smart_alerts.infrastructure.database import execute, fetchrow


class PostgresAlertStateRepository(AlertStateRepository):
    """PostgreSQL implementation of alert state persistence.

    The aggregate is one JSONB document in the ``alert_state`` table,
    keyed by ``storage_key`` and upserted on every save.
    """

    def __init__(self, storage_key: str = DEFAULT_STORAGE_KEY):
        self._storage_key = storage_key

    async def load(self) -> AlertState | None:
        """Load the aggregate stored under this repository's key."""
        row = await fetchrow(
            """
            SELECT state
            FROM alert_state
            WHERE storage_key = $1
            """,
            self._storage_key,
        )
        if row is None:
            return None
        return self._row_to_state(row)

    async def save(self, state: AlertState) -> None:
        """Upsert the aggregate."""
        await execute(
            """
            INSERT INTO alert_state (storage_key, state, updated_at)
            VALUES ($1, $2, NOW())
            ON CONFLICT (storage_key) DO UPDATE SET
                state = EXCLUDED.state,
                updated_at = EXCLUDED.updated_at
            """,
            self._storage_key,
            state.model_dump(mode="json"),
        )

    async def delete(self) -> None:
        """Remove the stored aggregate."""
        await execute(
            "DELETE FROM alert_state WHERE storage_key = $1",
            self._storage_key,
        )

    def _row_to_state(self, row) -> AlertState:
        """Convert a database row to AlertState.

        The pool registers a JSONB codec, so the column normally arrives
        decoded. Text is still accepted for connections opened without it.
        """
        state = row["state"]
        if isinstance(state, str):
            return AlertState.model_validate_json(state)
        return AlertState.model_validate(state)
