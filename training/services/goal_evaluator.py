import math
from datetime import date, datetime
from typing import Final
from zoneinfo import ZoneInfo

from config.app_settings import Settings
from training.enums import GoalStatus, WeightGoalDirection
from training.schemas import GoalProgressEvaluation, PlanGoal

EPSILON: Final[float] = 1e-4
NOT_STARTED_THRESHOLD: Final[float] = 0.01


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


class GoalProgressEvaluator:
    """Pure evaluation of weight-goal progress.

    ``progress`` is the straight-line position of the current weight between
    baseline and target. With a target date the status compares that position
    to the share of the goal period already elapsed: further along than the
    schedule by ``ahead_band`` is *ahead*, short of it by ``behind_band`` is
    *behind*. Without a target date the status falls back to proximity to the
    target.
    """

    def __init__(
        self,
        tolerance: float = 0.5,
        ahead_band: float = 0.1,
        behind_band: float = 0.1,
        time_zone: str = "Asia/Shanghai",
    ) -> None:
        self.tolerance = tolerance
        self.ahead_band = ahead_band
        self.behind_band = behind_band
        self.time_zone = time_zone

    @classmethod
    def from_settings(cls, settings: Settings) -> "GoalProgressEvaluator":
        return cls(
            tolerance=settings.GOAL_TOLERANCE_KG,
            ahead_band=settings.GOAL_AHEAD_BAND,
            behind_band=settings.GOAL_BEHIND_BAND,
            time_zone=settings.TIME_ZONE,
        )

    def today(self) -> date:
        return datetime.now(ZoneInfo(self.time_zone)).date()

    def evaluate(
        self,
        goal: PlanGoal,
        baseline_weight: float | None,
        current_weight: float | None,
        today: date | None = None,
    ) -> GoalProgressEvaluation:
        baseline = goal.start_weight if baseline_weight is None else baseline_weight
        target = goal.target_weight
        direction = goal.weight_goal_direction(baseline, self.tolerance)

        if current_weight is None:
            return GoalProgressEvaluation(
                direction=direction,
                status=GoalStatus.not_started,
                progress=0.0,
                baseline=baseline,
                current=None,
                target=target,
                tolerance=self.tolerance,
            )

        progress = self.progress(baseline, target, current_weight)
        if direction == WeightGoalDirection.maintain:
            status = self._maintain_status(current_weight, target)
        else:
            expected = self.expected_progress(goal, today or self.today())
            status = self._directional_status(direction, baseline, target, current_weight, progress, expected)

        return GoalProgressEvaluation(
            direction=direction,
            status=status,
            progress=progress,
            baseline=baseline,
            current=current_weight,
            target=target,
            tolerance=self.tolerance,
        )

    @staticmethod
    def progress(baseline: float, target: float, current: float) -> float:
        span = target - baseline
        if abs(span) < EPSILON:
            return 1.0 if math.isclose(current, target, abs_tol=EPSILON) else 0.0
        return _clamp((current - baseline) / span)

    @staticmethod
    def expected_progress(goal: PlanGoal, today: date) -> float | None:
        if goal.target_date is None:
            return None
        total_days = (goal.target_date - goal.start_date).days
        if total_days <= 0:
            return None
        return _clamp((today - goal.start_date).days / total_days)

    def _maintain_status(self, current: float, target: float) -> GoalStatus:
        if abs(current - target) <= self.tolerance:
            return GoalStatus.on_track
        if current < target - self.tolerance:
            return GoalStatus.ahead
        return GoalStatus.behind

    def _directional_status(
        self,
        direction: WeightGoalDirection,
        baseline: float,
        target: float,
        current: float,
        progress: float,
        expected: float | None,
    ) -> GoalStatus:
        sign = 1.0 if direction == WeightGoalDirection.gain else -1.0
        moved = (current - baseline) * sign
        if moved <= -self.tolerance:
            return GoalStatus.behind

        if expected is not None:
            gap = progress - expected
            if gap >= self.ahead_band:
                return GoalStatus.ahead
            if gap <= -self.behind_band:
                return GoalStatus.behind
            return GoalStatus.on_track

        overshoot = (current - target) * sign
        if abs(current - target) <= self.tolerance:
            return GoalStatus.on_track
        if overshoot > self.tolerance:
            return GoalStatus.ahead
        if progress <= NOT_STARTED_THRESHOLD:
            return GoalStatus.not_started
        return GoalStatus.in_progress
