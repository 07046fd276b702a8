from datetime import date, timedelta
from typing import Any, Callable

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from config.app_settings import Settings
from training.enums import FitnessGoal, MealType, WorkoutType
from training.events import PlanEventBus
from training.infra import RedisPlanRepository, RedisSessionStateRepository
from training.schemas import DailyTask, Meal, Plan, PlanGoal, Workout, WorkoutSet
from training.services.plan_store import PlanStore


class DummyRedis:
    """In-memory subset of the asyncio Redis API used by the repositories."""

    def __init__(self) -> None:
        self.values: dict[str, str] = {}
        self.hashes: dict[str, dict[str, str]] = {}
        self.closed = False

    async def get(self, key: str) -> str | None:
        return self.values.get(key)

    async def set(self, key: str, value: str) -> bool:
        self.values[key] = value
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            removed += int(self.values.pop(key, None) is not None)
            removed += int(self.hashes.pop(key, None) is not None)
        return removed

    async def hget(self, key: str, field: str) -> str | None:
        return self.hashes.get(key, {}).get(field)

    async def hgetall(self, key: str) -> dict[str, str]:
        return dict(self.hashes.get(key, {}))

    async def hset(self, key: str, field: str, value: str) -> int:
        bucket = self.hashes.setdefault(key, {})
        created = field not in bucket
        bucket[field] = value
        return int(created)

    async def hdel(self, key: str, *fields: str) -> int:
        bucket = self.hashes.get(key, {})
        return sum(1 for field in fields if bucket.pop(field, None) is not None)

    async def aclose(self) -> None:
        self.closed = True


class FailingRedis(DummyRedis):
    """Raises a connection error for every command listed in ``failing``."""

    def __init__(self, failing: set[str] | None = None) -> None:
        super().__init__()
        self.failing = failing if failing is not None else {"get", "set", "delete", "hget", "hgetall", "hset", "hdel"}

    def _check(self, command: str) -> None:
        if command in self.failing:
            raise RedisConnectionError(f"{command} unavailable")

    async def get(self, key: str) -> str | None:
        self._check("get")
        return await super().get(key)

    async def set(self, key: str, value: str) -> bool:
        self._check("set")
        return await super().set(key, value)

    async def delete(self, *keys: str) -> int:
        self._check("delete")
        return await super().delete(*keys)

    async def hget(self, key: str, field: str) -> str | None:
        self._check("hget")
        return await super().hget(key, field)

    async def hgetall(self, key: str) -> dict[str, str]:
        self._check("hgetall")
        return await super().hgetall(key)

    async def hset(self, key: str, field: str, value: str) -> int:
        self._check("hset")
        return await super().hset(key, field, value)

    async def hdel(self, key: str, *fields: str) -> int:
        self._check("hdel")
        return await super().hdel(key, *fields)


class ManualTimer:
    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        self.interval = interval
        self.callback = callback
        self.running = False
        self.starts = 0

    @property
    def is_running(self) -> bool:
        return self.running

    def start(self) -> None:
        self.running = True
        self.starts += 1

    def cancel(self) -> None:
        self.running = False

    def fire(self, times: int = 1) -> None:
        for _ in range(times):
            if not self.running:
                return
            self.callback()


class ManualTimerFactory:
    def __init__(self) -> None:
        self.created: list[ManualTimer] = []

    def __call__(self, interval: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(interval, callback)
        self.created.append(timer)
        return timer

    @property
    def running(self) -> list[ManualTimer]:
        return [timer for timer in self.created if timer.running]


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, REDIS_KEY_PREFIX="test", LOG_LEVEL="debug", TIME_ZONE="UTC")


@pytest.fixture
def redis_client() -> DummyRedis:
    return DummyRedis()


@pytest.fixture
def failing_redis_factory() -> Callable[..., FailingRedis]:
    return FailingRedis


@pytest.fixture
def plan_events() -> PlanEventBus:
    return PlanEventBus()


@pytest.fixture
def plan_repository(redis_client: DummyRedis, settings: Settings) -> RedisPlanRepository:
    return RedisPlanRepository(redis_client, settings)  # pyrefly: ignore[bad-argument-type]


@pytest.fixture
def state_repository(redis_client: DummyRedis, settings: Settings) -> RedisSessionStateRepository:
    return RedisSessionStateRepository(redis_client, settings)  # pyrefly: ignore[bad-argument-type]


@pytest.fixture
def store(plan_repository: RedisPlanRepository, plan_events: PlanEventBus) -> PlanStore:
    return PlanStore(plan_repository, plan_events)


@pytest.fixture
def timers() -> ManualTimerFactory:
    return ManualTimerFactory()


@pytest.fixture
def make_goal() -> Callable[..., PlanGoal]:
    def _make(**overrides: Any) -> PlanGoal:
        data: dict[str, Any] = {
            "fitness_goal": FitnessGoal.fat_loss,
            "start_weight": 72.0,
            "target_weight": 68.0,
            "start_date": date(2024, 1, 1),
        }
        data.update(overrides)
        return PlanGoal(**data)

    return _make


@pytest.fixture
def make_task() -> Callable[..., DailyTask]:
    def _make(day: date, workouts: int = 2, meals: int = 1, **overrides: Any) -> DailyTask:
        return DailyTask(
            date=day,
            workouts=[
                Workout(
                    name=f"动作{index + 1}",
                    type=WorkoutType.strength,
                    sets=[WorkoutSet(reps=10) for _ in range(3)],
                    duration_minutes=9,
                    calories_burned=54,
                    date=day,
                )
                for index in range(workouts)
            ],
            meals=[Meal(name="鸡胸肉沙拉", calories=500, meal_type=MealType.lunch) for _ in range(meals)],
            **overrides,
        )

    return _make


@pytest.fixture
def make_plan(make_goal: Callable[..., PlanGoal], make_task: Callable[..., DailyTask]) -> Callable[..., Plan]:
    def _make(start: date = date(2024, 1, 1), duration: int = 28, task_offsets: tuple[int, ...] = (0, 2, 4), **overrides: Any) -> Plan:
        tasks = [make_task(start + timedelta(days=offset)) for offset in task_offsets]
        data: dict[str, Any] = {
            "name": "测试计划",
            "goal": make_goal(start_date=start),
            "start_date": start,
            "duration": duration,
            "daily_tasks": tasks,
        }
        data.update(overrides)
        return Plan(**data)

    return _make
