from datetime import date

import pytest
import pytest_asyncio

from training.enums import SessionState, WorkoutType
from training.events import PlanEventBus
from training.infra import RedisPlanRepository, RedisSessionStateRepository
from training.schemas import DailyTask, Workout
from training.services.plan_store import PlanStore
from training.session import WorkoutSession, resume_saved_session

DAY = date(2024, 2, 5)


@pytest_asyncio.fixture
async def active_plan(store, make_plan):
    plan = make_plan(start=DAY)
    assert await store.set_active_plan(plan)
    return plan


@pytest.fixture
def session_for(store, state_repository, settings, timers):
    def _build(task: DailyTask) -> WorkoutSession:
        return WorkoutSession(task, store, state_repository, settings, timer_factory=timers)

    return _build


async def _task_with(store, make_plan, workouts: list[Workout]) -> DailyTask:
    plan = make_plan(start=DAY, task_offsets=(0,))
    plan.daily_tasks[0].workouts = workouts
    assert await store.set_active_plan(plan)
    return plan.daily_tasks[0]


@pytest.mark.asyncio
async def test_start_loads_planned_sets_and_ticks(active_plan, session_for, timers) -> None:
    task = active_plan.daily_tasks[0]
    session = session_for(task)
    session.start_workout()

    assert session.state == SessionState.running
    assert session.current_exercise_index == 0
    assert len(session.actual_sets) == 3
    assert session.actual_sets[0] is not task.workouts[0].sets[0]

    master = timers.created[0]
    assert master.is_running
    master.fire(5)
    assert session.elapsed_time == pytest.approx(5.0)


@pytest.mark.asyncio
async def test_default_set_template(store, make_plan, session_for) -> None:
    task = await _task_with(
        store,
        make_plan,
        [
            Workout(name="深蹲", type=WorkoutType.strength, date=DAY),
            Workout(name="快走", type=WorkoutType.cardio, duration_minutes=20, date=DAY),
        ],
    )
    session = session_for(task)
    session.start_workout()
    assert [(s.reps, s.weight, s.is_completed) for s in session.actual_sets] == [(10, 0, False)] * 3

    assert session.next_exercise()
    assert session.actual_sets == []


@pytest.mark.asyncio
async def test_rest_countdown(active_plan, session_for, timers) -> None:
    session = session_for(active_plan.daily_tasks[0])
    session.start_workout()

    assert session.complete_set(0)
    first_rest = timers.created[1]
    assert session.rest_time_remaining == 60
    first_rest.fire(10)
    assert session.rest_time_remaining == 50

    assert session.complete_set(1)
    second_rest = timers.created[2]
    assert not first_rest.is_running
    assert session.rest_time_remaining == 60

    assert not session.complete_set(1)
    assert not second_rest.is_running
    assert session.rest_time_remaining == 0

    session.complete_set(2)
    third_rest = timers.created[3]
    third_rest.fire(60)
    assert session.rest_time_remaining == 0
    assert not third_rest.is_running
    assert timers.created[0].is_running


@pytest.mark.asyncio
async def test_complete_set_out_of_range(active_plan, session_for) -> None:
    session = session_for(active_plan.daily_tasks[0])
    session.start_workout()
    with pytest.raises(IndexError):
        session.complete_set(3)
    with pytest.raises(IndexError):
        session.complete_set(-1)


@pytest.mark.asyncio
async def test_end_writes_back_only_touched_exercises(active_plan, session_for, plan_repository, state_repository) -> None:
    task = active_plan.daily_tasks[0]
    untouched = task.workouts[1].model_copy(deep=True)
    session = session_for(task)
    session.start_workout()
    session.complete_set(0)
    assert session.next_exercise()
    await session.save_state()

    updated = await session.end_workout()

    assert len(updated) == 1
    assert updated[0] is task.workouts[0]
    assert updated[0].is_completed
    assert updated[0].sets[0].is_completed
    assert task.workouts[1] == untouched
    assert not task.is_completed
    assert session.state == SessionState.ended
    assert await state_repository.load() is None

    stored = await plan_repository.get(active_plan.id)
    assert stored.daily_tasks[0].workouts[0].is_completed
    assert not stored.daily_tasks[0].workouts[1].is_completed


@pytest.mark.asyncio
async def test_end_persists_after_store_reload(active_plan, store, session_for, plan_repository) -> None:
    task = await store.find_task(active_plan.daily_tasks[0].id)
    session = session_for(task)
    session.start_workout()
    session.complete_set(0)

    assert await store.load()
    updated = await session.end_workout()

    assert len(updated) == 1
    stored = await plan_repository.get(active_plan.id)
    assert stored.daily_tasks[0].workouts[0].is_completed
    assert stored.daily_tasks[0].workouts[0].sets[0].is_completed


@pytest.mark.asyncio
async def test_next_exercise_never_ends_session(active_plan, session_for, timers) -> None:
    session = session_for(active_plan.daily_tasks[0])
    session.start_workout()
    assert session.next_exercise()
    assert not session.next_exercise()
    assert session.current_exercise_index == 1
    assert session.state == SessionState.running
    assert timers.created[0].is_running
    assert set(session.progress) == {0, 1}


@pytest.mark.asyncio
async def test_finishing_every_exercise_completes_task(active_plan, session_for, timers) -> None:
    task = active_plan.daily_tasks[0]
    session = session_for(task)
    session.start_workout()
    session.complete_set(0)
    session.next_exercise()
    session.complete_set(0)
    session.complete_set(1)

    updated = await session.end_workout()
    assert len(updated) == 2
    assert task.is_completed
    assert [s.is_completed for s in task.workouts[1].sets] == [True, True, False]
    assert timers.running == []


@pytest.mark.asyncio
async def test_cardio_actuals_overwrite_plan(store, make_plan, session_for) -> None:
    task = await _task_with(
        store,
        make_plan,
        [Workout(name="快走", type=WorkoutType.cardio, duration_minutes=20, calories_burned=160, date=DAY)],
    )
    session = session_for(task)
    session.start_workout()
    session.record_distance(3.2)
    session.record_duration(25)
    session.record_notes("  状态不错 ")

    updated = await session.end_workout()
    workout = updated[0]
    assert workout.distance_km == 3.2
    assert workout.duration_minutes == 25
    assert workout.notes == "状态不错"
    assert workout.calories_burned == 160
    assert workout.date == DAY
    assert task.is_completed


@pytest.mark.asyncio
async def test_in_flight_editing(active_plan, session_for) -> None:
    session = session_for(active_plan.daily_tasks[0])
    session.start_workout()
    session.update_set(0, reps=8, weight=22.5)
    assert (session.actual_sets[0].reps, session.actual_sets[0].weight) == (8, 22.5)

    added = session.add_set()
    assert len(session.actual_sets) == 4
    assert added.reps == 10 and not added.is_completed

    with pytest.raises(ValueError):
        session.update_set(0, reps=-1)
    with pytest.raises(ValueError):
        session.record_distance(-0.5)
    with pytest.raises(ValueError):
        session.record_duration(-1)


@pytest.mark.asyncio
async def test_end_failure_keeps_state_for_retry(failing_redis_factory, settings, make_plan, timers) -> None:
    redis = failing_redis_factory(failing=set())
    plan_repository = RedisPlanRepository(redis, settings)  # pyrefly: ignore[bad-argument-type]
    store = PlanStore(plan_repository, PlanEventBus())
    state_repository = RedisSessionStateRepository(redis, settings)  # pyrefly: ignore[bad-argument-type]
    plan = make_plan(start=DAY)
    await store.set_active_plan(plan)
    session = WorkoutSession(plan.daily_tasks[0], store, state_repository, settings, timer_factory=timers)
    session.start_workout()
    session.complete_set(0)
    assert await session.save_state()

    redis.failing = {"hset"}
    assert await session.end_workout() == []
    assert session.state == SessionState.running
    assert session.actual_sets[0].is_completed
    assert await state_repository.load() is not None
    task = plan.daily_tasks[0]
    assert not task.workouts[0].is_completed
    assert not task.workouts[0].sets[0].is_completed
    assert not task.is_completed

    redis.failing = set()
    assert await store.save_task(plan.daily_tasks[1])
    stored = await plan_repository.get(plan.id)
    assert not stored.daily_tasks[0].workouts[0].is_completed

    updated = await session.end_workout()
    assert len(updated) == 1
    assert session.state == SessionState.ended
    assert await state_repository.load() is None


@pytest.mark.asyncio
async def test_save_and_restore_round_trip(active_plan, session_for, timers) -> None:
    task = active_plan.daily_tasks[0]
    session = session_for(task)
    session.start_workout()
    session.complete_set(0)
    session.record_notes("第一组偏轻")
    session.next_exercise()
    session.complete_set(1)
    session.update_set(1, weight=15)
    timers.created[0].fire(42)
    assert await session.save_state()

    snapshot = await session.load_saved_state()
    assert snapshot is not None
    restored = session_for(task)
    restored.restore(snapshot)

    assert restored.state == SessionState.running
    assert restored.current_exercise_index == session.current_exercise_index
    assert restored.elapsed_time == session.elapsed_time == 42
    assert restored.progress == session.progress
    assert restored.actual_sets == session.actual_sets
    assert restored.current_set_index == 0
    assert timers.created[-1].is_running


@pytest.mark.asyncio
async def test_restore_trusts_snapshot_sets(active_plan, session_for) -> None:
    task = active_plan.daily_tasks[0]
    session = session_for(task)
    session.start_workout()
    session.add_set()
    session.complete_set(3)
    snapshot = session.snapshot()

    restored = session_for(task)
    restored.restore(snapshot)
    assert len(restored.actual_sets) == 4
    assert restored.actual_sets[3].is_completed


@pytest.mark.asyncio
async def test_state_repository_failures_are_reported(failing_redis_factory, settings, active_plan, store) -> None:
    state_repository = RedisSessionStateRepository(failing_redis_factory(), settings)  # pyrefly: ignore[bad-argument-type]
    session = WorkoutSession(active_plan.daily_tasks[0], store, state_repository, settings)
    assert not await session.save_state()
    assert await session.load_saved_state() is None
    assert not await session.clear_saved_state()


@pytest.mark.asyncio
async def test_corrupted_snapshot_is_not_loaded(active_plan, session_for, redis_client, settings) -> None:
    redis_client.values[settings.redis_key(settings.SESSION_SNAPSHOT_KEY)] = '{"task_id": 1'
    session = session_for(active_plan.daily_tasks[0])
    assert await session.load_saved_state() is None


@pytest.mark.asyncio
async def test_resume_discards_orphaned_snapshot(store, state_repository, settings, active_plan, session_for, timers) -> None:
    session = session_for(active_plan.daily_tasks[0])
    session.start_workout()
    await session.save_state()
    await store.delete_plan(active_plan.id)

    resumed = await resume_saved_session(store, state_repository, settings, timer_factory=timers)
    assert resumed is None
    assert await state_repository.load() is None


@pytest.mark.asyncio
async def test_resume_restores_existing_task(store, state_repository, settings, active_plan, session_for, timers) -> None:
    task = active_plan.daily_tasks[0]
    session = session_for(task)
    session.start_workout()
    session.complete_set(0)
    session.next_exercise()
    await session.save_state()

    resumed = await resume_saved_session(store, state_repository, settings, timer_factory=timers)
    assert resumed is not None
    assert resumed.task is task
    assert resumed.current_exercise_index == 1
    assert 0 in resumed.progress
    assert resumed.state == SessionState.running


@pytest.mark.asyncio
async def test_resume_without_snapshot(store, state_repository, settings, timers) -> None:
    assert await resume_saved_session(store, state_repository, settings, timer_factory=timers) is None
