from loguru import logger

from config.app_settings import Settings
from training.domain import SessionStateRepository
from training.exceptions import SessionStateError
from training.services.plan_store import PlanStore
from training.session.timers import AsyncioIntervalTimer, TimerFactory
from training.session.workout_session import WorkoutSession


async def resume_saved_session(
    store: PlanStore,
    state_repository: SessionStateRepository,
    settings: Settings,
    timer_factory: TimerFactory = AsyncioIntervalTimer,
) -> WorkoutSession | None:
    """Rebuild the interrupted session, if any.

    A snapshot whose task no longer exists is deleted instead of resumed.
    """
    try:
        snapshot = await state_repository.load()
    except SessionStateError as exc:
        logger.error(f"session_resume_failed error={exc}")
        return None
    if snapshot is None:
        return None

    task = await store.find_task(snapshot.task_id)
    if task is None:
        logger.info(f"session_snapshot_discarded task_id={snapshot.task_id} reason=task_missing")
        try:
            await state_repository.clear()
        except SessionStateError as exc:
            logger.warning(f"session_snapshot_discard_failed task_id={snapshot.task_id} error={exc}")
        return None

    session = WorkoutSession(task, store, state_repository, settings, timer_factory=timer_factory)
    session.restore(snapshot)
    return session
