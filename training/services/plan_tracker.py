import asyncio
from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Iterable, Sequence
from zoneinfo import ZoneInfo

from loguru import logger

from config.app_settings import Settings
from training.domain import MetricProvider
from training.enums import InsightAction, InsightTone, MetricType
from training.schemas import DailyTask, HealthMetric, InsightItem, Meal, Plan, WeeklySummary, Workout
from training.services.plan_store import PlanStore

INSIGHT_METRIC_LOOKBACK_DAYS = 30


class PlanTracker:
    def __init__(self, store: PlanStore, metrics: MetricProvider, settings: Settings) -> None:
        self._store = store
        self._metrics = metrics
        self._settings = settings

    def today(self) -> date:
        return datetime.now(ZoneInfo(self._settings.TIME_ZONE)).date()

    async def mark_task(self, task: DailyTask, completed: bool) -> bool:
        task.is_completed = completed
        if completed:
            task.is_skipped = False
        logger.debug(f"task_marked task_id={task.id} completed={completed}")
        return await self._store.save_task(task)

    async def toggle_skip(self, task: DailyTask) -> bool:
        task.is_skipped = not task.is_skipped
        if task.is_skipped:
            task.is_completed = False
            for workout in task.workouts:
                workout.is_completed = False
        logger.debug(f"task_skip_toggled task_id={task.id} skipped={task.is_skipped}")
        return await self._store.save_task(task)

    async def toggle_workout_completion(self, task: DailyTask, workout: Workout) -> bool:
        workout.is_completed = not workout.is_completed
        if not workout.is_completed:
            task.is_completed = False
        elif task.all_workouts_completed:
            task.is_completed = True
            task.is_skipped = False
        logger.debug(
            f"workout_toggled task_id={task.id} workout_id={workout.id} "
            f"completed={workout.is_completed} task_completed={task.is_completed}"
        )
        return await self._store.save_task(task)

    async def toggle_meal_completion(self, task: DailyTask, meal: Meal) -> bool:
        meal.is_completed = not meal.is_completed
        return await self._store.save_task(task)

    async def weekly_summary(
        self, today: date | None = None, tasks: Sequence[DailyTask] | None = None
    ) -> WeeklySummary | None:
        if tasks is None:
            plan = await self._store.get_active_plan()
            tasks = plan.daily_tasks if plan else []
        return summarize_week(tasks, today or self.today())

    async def load_metrics(self, start: datetime, end: datetime) -> dict[MetricType, list[HealthMetric]]:
        metric_types = (MetricType.weight, MetricType.body_fat_percentage)
        results = await asyncio.gather(
            *(self._metrics.fetch(metric_type, start, end) for metric_type in metric_types),
            return_exceptions=True,
        )
        series: dict[MetricType, list[HealthMetric]] = {}
        for metric_type, result in zip(metric_types, results):
            if isinstance(result, BaseException):
                logger.error(f"metric_fetch_failed type={metric_type} error={result}")
                series[metric_type] = []
            else:
                series[metric_type] = sorted(result, key=lambda m: m.date)
        return series

    async def build_insights(
        self, metrics: Iterable[HealthMetric] | None = None, today: date | None = None
    ) -> list[InsightItem]:
        today = today or self.today()
        if metrics is None:
            end = datetime.combine(today, time.max)
            series = await self.load_metrics(end - timedelta(days=INSIGHT_METRIC_LOOKBACK_DAYS), end)
            weights = series[MetricType.weight]
        else:
            weights = [m for m in metrics if m.type == MetricType.weight]

        plan = await self._store.get_active_plan()
        items = plan_insights(plan, today)

        trend = weight_trend_insight(
            weights,
            threshold=self._settings.WEIGHT_TREND_THRESHOLD_KG,
            window_days=self._settings.WEIGHT_TREND_WINDOW_DAYS,
        )
        if trend is not None:
            items.append(trend)

        if plan is not None:
            baseline = plan.goal.resolved_start_weight(weights)
            if plan.goal.exceeds_safe_rate(baseline, self._settings.GOAL_SAFE_WEEKLY_RATE):
                items.append(
                    InsightItem(
                        title="目标节奏偏快",
                        message="当前目标每周体重变化超过安全范围，建议延长目标周期。",
                        tone=InsightTone.warning,
                        action=InsightAction.open_plan,
                    )
                )
        return items


def summarize_week(tasks: Sequence[DailyTask], today: date) -> WeeklySummary | None:
    week_start = today - timedelta(days=today.weekday())
    week_end = week_start + timedelta(days=7)
    week_tasks = [task for task in tasks if week_start <= task.date < week_end]
    if not week_tasks:
        return None

    completed = sum(1 for task in week_tasks if task.is_completed)
    skipped = sum(1 for task in week_tasks if task.is_skipped)
    scored = [task for task in week_tasks if task.has_workouts and (task.is_completed or task.is_skipped)]
    scored_completed = sum(1 for task in scored if task.is_completed)

    return WeeklySummary(
        completion_rate=scored_completed / len(scored) if scored else 0.0,
        completed_days=completed,
        pending_days=max(len(week_tasks) - completed - skipped, 0),
        skipped_days=skipped,
        streak_days=calculate_streak(tasks, today),
        total_days=len(week_tasks),
    )


def calculate_streak(tasks: Iterable[DailyTask], today: date) -> int:
    """Count consecutive completed scheduled days backwards from ``today``.

    Days without a task are rest days and do not break the streak; today's
    task is ignored while it is still open.
    """
    by_day: dict[date, list[DailyTask]] = defaultdict(list)
    for task in tasks:
        if task.date <= today:
            by_day[task.date].append(task)

    streak = 0
    for day in sorted(by_day, reverse=True):
        day_tasks = by_day[day]
        if any(task.is_completed for task in day_tasks):
            streak += 1
            continue
        if day == today and not any(task.is_skipped for task in day_tasks):
            continue
        break
    return streak


def plan_insights(plan: Plan | None, today: date) -> list[InsightItem]:
    if plan is None:
        return [
            InsightItem(
                title="制定专属计划",
                message="系统可以根据体重与目标生成个性化训练安排，马上体验。",
                tone=InsightTone.informational,
                action=InsightAction.open_plan,
            )
        ]

    if not plan.start_date <= today < plan.end_date:
        return [
            InsightItem(
                title="选择一个训练日",
                message="今天不在当前计划周期内，可在计划页查看训练与饮食安排。",
                tone=InsightTone.informational,
                action=InsightAction.open_plan,
            )
        ]

    task = plan.task_for(today)
    if task is None or (not task.has_workouts and not task.is_skipped):
        return [
            InsightItem(
                title="休息日提示",
                message="善用休息日调整状态，保持足够的睡眠与营养摄入。",
                tone=InsightTone.positive,
            )
        ]

    if task.is_skipped:
        return [
            InsightItem(
                title="今日已跳过",
                message="调整好状态，明天继续按计划训练。",
                tone=InsightTone.informational,
            )
        ]

    items: list[InsightItem] = []
    done = task.completed_workouts_count
    total = len(task.workouts)
    if task.is_completed or done == total:
        items.append(
            InsightItem(
                title="今日训练已完成",
                message="做得好！记得拉伸放松并补充水分。",
                tone=InsightTone.positive,
            )
        )
    elif done == 0:
        items.append(
            InsightItem(
                title="今日训练待完成",
                message="保持专注，完成今日计划可以巩固训练习惯。",
                tone=InsightTone.warning,
                action=InsightAction.start_workout,
            )
        )
    else:
        items.append(
            InsightItem(
                title="继续完成训练",
                message=f"今日已完成 {done}/{total} 项训练，再坚持一下。",
                tone=InsightTone.informational,
                action=InsightAction.start_workout,
            )
        )

    remaining_meals = [meal for meal in task.meals if not meal.is_completed]
    if remaining_meals:
        items.append(
            InsightItem(
                title="记录今日饮食",
                message=f"还有 {len(remaining_meals)} 餐未打卡，按计划进食有助于达成目标。",
                tone=InsightTone.informational,
                action=InsightAction.review_meals,
            )
        )
    return items


def weight_trend_insight(
    metrics: Iterable[HealthMetric], threshold: float = 0.3, window_days: int = 7
) -> InsightItem | None:
    ordered = sorted((m for m in metrics if m.type == MetricType.weight), key=lambda m: m.date)
    if not ordered:
        return None
    latest = ordered[-1]
    cutoff = latest.date - timedelta(days=window_days)
    earlier = [m for m in ordered if m.date <= cutoff]
    if not earlier:
        return None

    delta = round(latest.value - earlier[-1].value, 2)
    if delta >= threshold:
        return InsightItem(
            title="体重略有上升",
            message=f"与一周前相比上升了 {delta:.1f} kg，保持饮食节奏并适度增加活动量。",
            tone=InsightTone.warning,
            action=InsightAction.log_weight,
        )
    if delta <= -threshold:
        return InsightItem(
            title="体重在下降",
            message=f"较一周前下降 {abs(delta):.1f} kg，记得补充优质蛋白与充足睡眠。",
            tone=InsightTone.positive,
            action=InsightAction.log_weight,
        )
    return None
