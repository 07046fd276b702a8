from dependency_injector import containers, providers

from config.app_settings import Settings, settings as default_settings
from training.events import PlanEventBus
from training.exercise_catalog import load_exercise_catalog
from training.infra import (
    InMemoryMetricProvider,
    RedisPlanRepository,
    RedisSessionStateRepository,
    build_redis_client,
)
from training.services.goal_evaluator import GoalProgressEvaluator
from training.services.plan_generator import PlanGenerator
from training.services.plan_store import PlanStore
from training.services.plan_tracker import PlanTracker
from training.session import AsyncioIntervalTimer, WorkoutSession


class App(containers.DeclarativeContainer):
    settings = providers.Object(default_settings)

    redis_client = providers.Singleton(build_redis_client, settings=settings)

    plan_repository = providers.Singleton(RedisPlanRepository, client=redis_client, settings=settings)
    session_state_repository = providers.Singleton(
        RedisSessionStateRepository, client=redis_client, settings=settings
    )
    metric_provider = providers.Singleton(InMemoryMetricProvider)

    catalog = providers.Singleton(load_exercise_catalog, path=settings.provided.EXERCISE_CATALOG_PATH)

    plan_events = providers.Singleton(PlanEventBus)
    plan_store = providers.Singleton(PlanStore, repository=plan_repository, events=plan_events)
    plan_generator = providers.Factory(PlanGenerator, catalog=catalog, settings=settings)
    plan_tracker = providers.Singleton(PlanTracker, store=plan_store, metrics=metric_provider, settings=settings)
    goal_evaluator = providers.Singleton(GoalProgressEvaluator.from_settings, settings=settings)

    timer_factory = providers.Object(AsyncioIntervalTimer)
    workout_session = providers.Factory(
        WorkoutSession,
        store=plan_store,
        state_repository=session_state_repository,
        settings=settings,
        timer_factory=timer_factory,
    )


_container: App | None = None


def create_container(settings: Settings | None = None) -> App:
    container = App()
    if settings is not None:
        container.settings.override(providers.Object(settings))
    return container


def set_container(container: App) -> None:
    global _container
    _container = container


def get_container() -> App:
    if _container is None:
        raise RuntimeError("Container is not initialized")
    return _container
