from redis.asyncio import Redis
from redis.exceptions import RedisError

from config.app_settings import Settings
from training.exceptions import PlanStoreError, SessionStateError
from training.schemas import SessionSnapshot
from training.utils.validators import validate_or_raise


class RedisSessionStateRepository:
    """Holds at most one resumable session snapshot under a fixed key."""

    def __init__(self, client: Redis, settings: Settings) -> None:
        self._client = client
        self._key = settings.redis_key(settings.SESSION_SNAPSHOT_KEY)

    async def save(self, snapshot: SessionSnapshot) -> None:
        try:
            await self._client.set(self._key, snapshot.model_dump_json())
        except RedisError as exc:
            raise SessionStateError("Failed to save session snapshot", details=str(exc)) from exc

    async def load(self) -> SessionSnapshot | None:
        try:
            payload = await self._client.get(self._key)
        except RedisError as exc:
            raise SessionStateError("Failed to read session snapshot", details=str(exc)) from exc
        if not payload:
            return None
        try:
            return validate_or_raise(payload, SessionSnapshot, context=self._key)
        except PlanStoreError as exc:
            raise SessionStateError("Corrupted session snapshot", details=exc.details) from exc

    async def clear(self) -> None:
        try:
            await self._client.delete(self._key)
        except RedisError as exc:
            raise SessionStateError("Failed to delete session snapshot", details=str(exc)) from exc
