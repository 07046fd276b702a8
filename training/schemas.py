from datetime import date, datetime, timedelta
from typing import Iterable
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator, model_validator

from training.enums import (
    Difficulty,
    Equipment,
    ExperienceLevel,
    FitnessGoal,
    GoalStatus,
    HealthCondition,
    InsightAction,
    InsightTone,
    MealType,
    MetricType,
    MuscleGroup,
    PlanStatus,
    WeightGoalDirection,
    WorkoutLocation,
    WorkoutType,
)


def _new_id() -> str:
    return uuid4().hex


class Exercise(BaseModel):
    id: str
    name: str
    description: str = ""
    target_muscles: frozenset[MuscleGroup]
    equipment: frozenset[Equipment] = frozenset({Equipment.none})
    difficulty: Difficulty
    is_high_impact: bool = False
    avoid_for_conditions: frozenset[HealthCondition] = frozenset()
    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("equipment", mode="before")
    @classmethod
    def _default_equipment(cls, value: object) -> object:
        if value is None or value == []:
            return frozenset({Equipment.none})
        return value

    @field_validator("avoid_for_conditions", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return frozenset() if value is None else value

    @property
    def required_equipment(self) -> frozenset[Equipment]:
        return self.equipment - {Equipment.none}

    @property
    def needs_equipment(self) -> bool:
        return bool(self.required_equipment)

    def is_contraindicated(self, conditions: Iterable[HealthCondition]) -> bool:
        return any(condition in self.avoid_for_conditions for condition in conditions)


class UserProfile(BaseModel):
    name: str = "新用户"
    weight: float | None = None
    experience_level: ExperienceLevel = ExperienceLevel.beginner
    workout_location: WorkoutLocation = WorkoutLocation.gym
    available_equipment: set[Equipment] = Field(default_factory=set)
    health_conditions: set[HealthCondition] = Field(default_factory=set)
    model_config = ConfigDict(extra="ignore")


class HealthMetric(BaseModel):
    date: datetime
    value: float
    type: MetricType = MetricType.weight
    model_config = ConfigDict(extra="ignore")


class PlanGoal(BaseModel):
    fitness_goal: FitnessGoal
    start_weight: float
    target_weight: float
    start_date: date
    target_date: date | None = None
    professional_mode: bool = False
    model_config = ConfigDict(extra="ignore")

    def resolved_start_weight(self, metrics: Iterable[HealthMetric]) -> float:
        """Earliest weight recorded on or after the start date, falling back to the declared start weight."""
        tracked = [m for m in metrics if m.type == MetricType.weight and m.date.date() >= self.start_date]
        if not tracked:
            return self.start_weight
        return min(tracked, key=lambda m: m.date).value

    def weight_goal_direction(self, baseline: float, tolerance: float) -> WeightGoalDirection:
        delta = self.target_weight - baseline
        if abs(delta) <= tolerance:
            return WeightGoalDirection.maintain
        return WeightGoalDirection.gain if delta > 0 else WeightGoalDirection.lose

    def weekly_change_rate(self, baseline: float) -> float | None:
        if self.target_date is None or baseline <= 0:
            return None
        weeks = (self.target_date - self.start_date).days / 7
        if weeks <= 0:
            return None
        return abs(self.target_weight - baseline) / weeks / baseline

    def exceeds_safe_rate(self, baseline: float, max_rate: float) -> bool:
        if self.professional_mode:
            return False
        rate = self.weekly_change_rate(baseline)
        return rate is not None and rate > max_rate


class WorkoutSet(BaseModel):
    reps: int
    weight: float | None = None
    is_completed: bool = False
    model_config = ConfigDict(extra="ignore")


class Workout(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    exercise_id: str | None = None
    type: WorkoutType = WorkoutType.other
    sets: list[WorkoutSet] | None = None
    duration_minutes: float = 0
    distance_km: float | None = None
    calories_burned: int = 0
    date: date
    is_completed: bool = False
    notes: str | None = None
    model_config = ConfigDict(extra="ignore")


class Meal(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    calories: int
    meal_type: MealType
    is_completed: bool = False
    model_config = ConfigDict(extra="ignore")


class DailyTask(BaseModel):
    id: str = Field(default_factory=_new_id)
    date: date
    workouts: list[Workout] = Field(default_factory=list)
    meals: list[Meal] = Field(default_factory=list)
    is_completed: bool = False
    is_skipped: bool = False
    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="after")
    def _exclusive_flags(self) -> "DailyTask":
        if self.is_completed and self.is_skipped:
            self.is_skipped = False
        return self

    @property
    def has_workouts(self) -> bool:
        return bool(self.workouts)

    @property
    def completed_workouts_count(self) -> int:
        return sum(1 for workout in self.workouts if workout.is_completed)

    @property
    def all_workouts_completed(self) -> bool:
        return self.has_workouts and all(workout.is_completed for workout in self.workouts)


class Plan(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    goal: PlanGoal
    start_date: date
    duration: PositiveInt
    status: PlanStatus = PlanStatus.active
    daily_tasks: list[DailyTask] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)
    model_config = ConfigDict(extra="ignore")

    @property
    def end_date(self) -> date:
        return self.start_date + timedelta(days=self.duration)

    @property
    def is_active(self) -> bool:
        return self.status == PlanStatus.active

    def find_task(self, task_id: str) -> DailyTask | None:
        return next((task for task in self.daily_tasks if task.id == task_id), None)

    def task_for(self, day: date) -> DailyTask | None:
        return next((task for task in self.daily_tasks if task.date == day), None)


class ExerciseProgress(BaseModel):
    sets: list[WorkoutSet] | None = None
    distance: float | None = None
    duration: float | None = None
    notes: str | None = None
    model_config = ConfigDict(extra="ignore")


class SessionSnapshot(BaseModel):
    task_id: str
    exercise_index: int = Field(ge=0)
    elapsed_time: float = Field(ge=0)
    progress: dict[int, ExerciseProgress] = Field(default_factory=dict)
    current_sets: list[WorkoutSet] = Field(default_factory=list)
    current_distance: float = 0.0
    current_duration: float = 0.0
    current_notes: str = ""
    saved_at: datetime = Field(default_factory=datetime.now)
    model_config = ConfigDict(extra="ignore")


class InsightItem(BaseModel):
    id: str = Field(default_factory=_new_id)
    title: str
    message: str
    tone: InsightTone
    action: InsightAction = InsightAction.none


class WeeklySummary(BaseModel):
    completion_rate: float
    completed_days: int
    pending_days: int
    skipped_days: int
    streak_days: int
    total_days: int


class GoalProgressEvaluation(BaseModel):
    direction: WeightGoalDirection
    status: GoalStatus
    progress: float = Field(ge=0, le=1)
    baseline: float
    current: float | None
    target: float
    tolerance: float

    @property
    def delta_to_target(self) -> float | None:
        return None if self.current is None else self.current - self.target

    @property
    def delta_from_baseline(self) -> float | None:
        return None if self.current is None else self.current - self.baseline

    @property
    def is_completed(self) -> bool:
        if self.direction == WeightGoalDirection.maintain:
            return self.status == GoalStatus.on_track
        return self.progress >= 1.0
