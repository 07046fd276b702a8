from loguru import logger
from redis.asyncio import Redis
from redis.exceptions import RedisError

from config.app_settings import Settings
from training.exceptions import PlanStoreError
from training.schemas import Plan
from training.utils.validators import validate_or_raise


class RedisPlanRepository:
    """Plans stored as JSON documents in one Redis hash, one field per plan id."""

    def __init__(self, client: Redis, settings: Settings) -> None:
        self._client = client
        self._key = settings.redis_key("plans")

    async def get_all(self) -> list[Plan]:
        try:
            raw = await self._client.hgetall(self._key)
        except RedisError as exc:
            raise PlanStoreError("Failed to read plans", details=str(exc)) from exc
        plans: list[Plan] = []
        for plan_id, payload in (raw or {}).items():
            try:
                plans.append(validate_or_raise(payload, Plan, context=f"plan_id={plan_id}"))
            except PlanStoreError:
                logger.warning(f"skip_invalid_plan plan_id={plan_id}")
        plans.sort(key=lambda plan: plan.created_at)
        return plans

    async def get(self, plan_id: str) -> Plan | None:
        try:
            payload = await self._client.hget(self._key, plan_id)
        except RedisError as exc:
            raise PlanStoreError(f"Failed to read plan {plan_id}", details=str(exc)) from exc
        if not payload:
            return None
        return validate_or_raise(payload, Plan, context=f"plan_id={plan_id}")

    async def save(self, plan: Plan) -> None:
        try:
            await self._client.hset(self._key, plan.id, plan.model_dump_json())
        except RedisError as exc:
            raise PlanStoreError(f"Failed to save plan {plan.id}", details=str(exc)) from exc

    async def delete(self, plan_id: str) -> None:
        try:
            await self._client.hdel(self._key, plan_id)
        except RedisError as exc:
            raise PlanStoreError(f"Failed to delete plan {plan_id}", details=str(exc)) from exc
