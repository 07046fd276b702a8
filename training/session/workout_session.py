from loguru import logger

from config.app_settings import Settings
from training.domain import SessionStateRepository
from training.enums import SessionState, WorkoutType
from training.exceptions import SessionStateError
from training.schemas import DailyTask, ExerciseProgress, SessionSnapshot, Workout, WorkoutSet
from training.services.plan_store import PlanStore
from training.session.timers import AsyncioIntervalTimer, IntervalTimer, TimerFactory


def _copy_sets(sets: list[WorkoutSet]) -> list[WorkoutSet]:
    return [workout_set.model_copy() for workout_set in sets]


class WorkoutSession:
    """Runtime state of one in-progress workout for a daily task.

    The session only touches the task's workouts in :meth:`end_workout`; until
    then everything recorded lives in ``actual_sets``, the ``current_*`` fields
    and the per-exercise ``progress`` map. Callers drive it sequentially from a
    single event loop.
    """

    def __init__(
        self,
        task: DailyTask,
        store: PlanStore,
        state_repository: SessionStateRepository,
        settings: Settings,
        timer_factory: TimerFactory = AsyncioIntervalTimer,
    ) -> None:
        self.task = task
        self._store = store
        self._state_repository = state_repository
        self._settings = settings
        self._timer_factory = timer_factory
        self._timer: IntervalTimer | None = None
        self._rest_timer: IntervalTimer | None = None

        self.state = SessionState.not_started
        self.current_exercise_index = 0
        self.current_set_index = 0
        self.elapsed_time = 0.0
        self.rest_time_remaining = 0.0
        self.actual_sets: list[WorkoutSet] = []
        self.current_distance = 0.0
        self.current_duration = 0.0
        self.current_notes = ""
        self.progress: dict[int, ExerciseProgress] = {}

    @property
    def workouts(self) -> list[Workout]:
        return self.task.workouts

    @property
    def current_workout(self) -> Workout | None:
        if 0 <= self.current_exercise_index < len(self.workouts):
            return self.workouts[self.current_exercise_index]
        return None

    @property
    def is_last_exercise(self) -> bool:
        return self.current_exercise_index >= len(self.workouts) - 1

    @property
    def is_resting(self) -> bool:
        return self.rest_time_remaining > 0

    def start_workout(self) -> None:
        self._stop_timers()
        self.current_exercise_index = 0
        self.current_set_index = 0
        self.elapsed_time = 0.0
        self.rest_time_remaining = 0.0
        self.progress = {}
        self._reset_in_flight()
        self._load_sets()
        self._start_master_timer()
        self.state = SessionState.running
        logger.info(f"workout_session_started task_id={self.task.id} exercises={len(self.workouts)}")

    def tick(self) -> None:
        self.elapsed_time += self._settings.SESSION_TICK_SECONDS

    def complete_set(self, index: int) -> bool:
        """Toggle completion of set ``index`` and return its new state.

        Completing a set (re)starts the rest countdown; un-completing it stops
        the countdown. The countdown never blocks moving on. An index outside
        ``actual_sets`` raises :class:`IndexError` instead of being ignored, so
        a caller working from a stale set list finds out.
        """
        if not 0 <= index < len(self.actual_sets):
            raise IndexError(f"Set index {index} out of range for {len(self.actual_sets)} sets")
        workout_set = self.actual_sets[index]
        workout_set.is_completed = not workout_set.is_completed

        self._cancel_rest_timer()
        if workout_set.is_completed:
            self.current_set_index = min(index + 1, len(self.actual_sets) - 1)
            self.rest_time_remaining = float(self._settings.REST_INTERVAL_SECONDS)
            self._rest_timer = self._timer_factory(self._settings.SESSION_TICK_SECONDS, self._rest_tick)
            self._rest_timer.start()
        else:
            self.current_set_index = index
            self.rest_time_remaining = 0.0
        return workout_set.is_completed

    def _rest_tick(self) -> None:
        self.rest_time_remaining = max(0.0, self.rest_time_remaining - self._settings.SESSION_TICK_SECONDS)
        if self.rest_time_remaining <= 0:
            self._cancel_rest_timer()

    def next_exercise(self) -> bool:
        """Record the open exercise and move on; returns False on the last one."""
        self._capture_current()
        if self.is_last_exercise:
            return False
        self.current_exercise_index += 1
        self._reset_in_flight()
        self._load_sets()
        self._cancel_rest_timer()
        self.rest_time_remaining = 0.0
        logger.debug(f"workout_session_next task_id={self.task.id} index={self.current_exercise_index}")
        return True

    def update_set(self, index: int, reps: int | None = None, weight: float | None = None) -> None:
        workout_set = self.actual_sets[index]
        if reps is not None:
            if reps < 0:
                raise ValueError(f"Reps must not be negative, got {reps}")
            workout_set.reps = reps
        if weight is not None:
            if weight < 0:
                raise ValueError(f"Weight must not be negative, got {weight}")
            workout_set.weight = weight

    def add_set(self) -> WorkoutSet:
        if self.actual_sets:
            last = self.actual_sets[-1]
            workout_set = WorkoutSet(reps=last.reps, weight=last.weight)
        else:
            workout_set = WorkoutSet(reps=self._settings.DEFAULT_SET_REPS, weight=0)
        self.actual_sets.append(workout_set)
        return workout_set

    def record_distance(self, distance_km: float) -> None:
        if distance_km < 0:
            raise ValueError(f"Distance must not be negative, got {distance_km}")
        self.current_distance = distance_km

    def record_duration(self, minutes: float) -> None:
        if minutes < 0:
            raise ValueError(f"Duration must not be negative, got {minutes}")
        self.current_duration = minutes

    def record_notes(self, notes: str) -> None:
        self.current_notes = notes

    async def end_workout(self) -> list[Workout]:
        """Write recorded progress back onto the task and persist it.

        Returns the updated workouts, or an empty list when persisting fails;
        in that case the task is put back as it was and the session keeps its
        state so the call can be retried.
        """
        self._stop_timers()
        if self._has_in_flight_progress():
            self._capture_current()

        original_workouts = list(self.task.workouts)
        original_flags = (self.task.is_completed, self.task.is_skipped)
        workouts = list(original_workouts)
        updated: list[Workout] = []
        for index in sorted(self.progress):
            if index >= len(workouts):
                logger.warning(f"workout_session_progress_dropped task_id={self.task.id} index={index}")
                continue
            captured = self.progress[index]
            workout = workouts[index].model_copy(deep=True)
            workout.is_completed = True
            if captured.sets is not None:
                workout.sets = _copy_sets(captured.sets)
            if captured.distance:
                workout.distance_km = captured.distance
            if captured.duration:
                workout.duration_minutes = captured.duration
            if captured.notes:
                workout.notes = captured.notes
            workouts[index] = workout
            updated.append(workout)

        self.task.workouts = workouts
        if self.task.all_workouts_completed:
            self.task.is_completed = True
            self.task.is_skipped = False

        if not await self._store.save_task(self.task):
            self.task.workouts = original_workouts
            self.task.is_completed, self.task.is_skipped = original_flags
            logger.error(f"workout_session_end_failed task_id={self.task.id} updated={len(updated)}")
            return []

        await self.clear_saved_state()
        self.state = SessionState.ended
        logger.info(
            f"workout_session_ended task_id={self.task.id} updated={len(updated)} "
            f"elapsed={self.elapsed_time:.0f}s task_completed={self.task.is_completed}"
        )
        return updated

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            task_id=self.task.id,
            exercise_index=self.current_exercise_index,
            elapsed_time=self.elapsed_time,
            progress={index: captured.model_copy(deep=True) for index, captured in self.progress.items()},
            current_sets=_copy_sets(self.actual_sets),
            current_distance=self.current_distance,
            current_duration=self.current_duration,
            current_notes=self.current_notes,
        )

    async def save_state(self) -> bool:
        snapshot = self.snapshot()
        try:
            await self._state_repository.save(snapshot)
        except SessionStateError as exc:
            logger.error(f"session_state_save_failed task_id={self.task.id} error={exc}")
            return False
        logger.debug(f"session_state_saved task_id={self.task.id} index={snapshot.exercise_index}")
        return True

    async def load_saved_state(self) -> SessionSnapshot | None:
        try:
            return await self._state_repository.load()
        except SessionStateError as exc:
            logger.error(f"session_state_load_failed error={exc}")
            return None

    def restore(self, snapshot: SessionSnapshot) -> None:
        """Resume from ``snapshot``; the caller has already checked that it belongs to this task."""
        self._stop_timers()
        self.current_exercise_index = snapshot.exercise_index
        self.elapsed_time = snapshot.elapsed_time
        self.progress = {index: captured.model_copy(deep=True) for index, captured in snapshot.progress.items()}
        self.actual_sets = _copy_sets(snapshot.current_sets)
        self.current_set_index = next(
            (index for index, workout_set in enumerate(self.actual_sets) if not workout_set.is_completed), 0
        )
        self.current_distance = snapshot.current_distance
        self.current_duration = snapshot.current_duration
        self.current_notes = snapshot.current_notes
        self.rest_time_remaining = 0.0
        self._start_master_timer()
        self.state = SessionState.running
        logger.info(
            f"workout_session_restored task_id={self.task.id} index={self.current_exercise_index} "
            f"elapsed={self.elapsed_time:.0f}s"
        )

    async def clear_saved_state(self) -> bool:
        try:
            await self._state_repository.clear()
        except SessionStateError as exc:
            logger.error(f"session_state_clear_failed error={exc}")
            return False
        return True

    def _load_sets(self) -> None:
        workout = self.current_workout
        self.current_set_index = 0
        if workout is None:
            self.actual_sets = []
        elif workout.sets:
            self.actual_sets = _copy_sets(workout.sets)
        elif workout.type == WorkoutType.strength:
            self.actual_sets = [
                WorkoutSet(reps=self._settings.DEFAULT_SET_REPS, weight=0)
                for _ in range(self._settings.DEFAULT_SET_COUNT)
            ]
        else:
            self.actual_sets = []

    def _reset_in_flight(self) -> None:
        self.current_distance = 0.0
        self.current_duration = 0.0
        self.current_notes = ""

    def _has_in_flight_progress(self) -> bool:
        return (
            any(workout_set.is_completed for workout_set in self.actual_sets)
            or self.current_distance > 0
            or self.current_duration > 0
            or bool(self.current_notes.strip())
        )

    def _capture_current(self) -> None:
        if self.current_workout is None:
            return
        self.progress[self.current_exercise_index] = ExerciseProgress(
            sets=_copy_sets(self.actual_sets) if self.actual_sets else None,
            distance=self.current_distance or None,
            duration=self.current_duration or None,
            notes=self.current_notes.strip() or None,
        )

    def _start_master_timer(self) -> None:
        self._timer = self._timer_factory(self._settings.SESSION_TICK_SECONDS, self.tick)
        self._timer.start()

    def _cancel_rest_timer(self) -> None:
        if self._rest_timer is not None:
            self._rest_timer.cancel()
            self._rest_timer = None

    def _stop_timers(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._cancel_rest_timer()
        self.rest_time_remaining = 0.0
