import random
from datetime import date, timedelta
from typing import Final, Sequence

from loguru import logger

from config.app_settings import Settings
from training.enums import ExperienceLevel, FitnessGoal, MealType, WorkoutType
from training.exercise_catalog import eligible_exercises, is_cardio_eligible, is_strength_eligible
from training.schemas import DailyTask, Exercise, Meal, Plan, PlanGoal, UserProfile, Workout, WorkoutSet

MICROCYCLE_DAYS: Final[int] = 7
WORKOUT_DAY_OFFSETS: Final[tuple[int, ...]] = (0, 2, 4)

# strength, cardio exercise counts per workout day
GOAL_COMPOSITION: Final[dict[FitnessGoal, tuple[int, int]]] = {
    FitnessGoal.fat_loss: (3, 2),
    FitnessGoal.muscle_gain: (5, 0),
    FitnessGoal.health_improvement: (3, 1),
}

# sets, min reps, max reps
SET_SCHEMES: Final[dict[ExperienceLevel, tuple[int, int, int]]] = {
    ExperienceLevel.beginner: (3, 12, 15),
    ExperienceLevel.intermediate: (4, 8, 12),
    ExperienceLevel.advanced: (5, 6, 10),
}

MEAL_SPLIT: Final[dict[MealType, float]] = {
    MealType.breakfast: 0.3,
    MealType.lunch: 0.35,
    MealType.dinner: 0.25,
    MealType.snack: 0.1,
}

MEAL_TEMPLATES: Final[dict[FitnessGoal, dict[MealType, tuple[str, ...]]]] = {
    FitnessGoal.fat_loss: {
        MealType.breakfast: ("燕麦片配蓝莓", "全麦吐司配水煮蛋"),
        MealType.lunch: ("鸡胸肉沙拉", "糙米饭配清炒时蔬"),
        MealType.dinner: ("三文鱼和蔬菜", "豆腐蔬菜汤"),
        MealType.snack: ("苹果", "无糖酸奶"),
    },
    FitnessGoal.muscle_gain: {
        MealType.breakfast: ("鸡蛋燕麦碗", "牛奶配全麦面包和花生酱"),
        MealType.lunch: ("牛肉糙米饭", "鸡腿肉配红薯"),
        MealType.dinner: ("三文鱼意面", "虾仁炒饭配西兰花"),
        MealType.snack: ("蛋白棒", "香蕉配坚果"),
    },
    FitnessGoal.health_improvement: {
        MealType.breakfast: ("杂粮粥配鸡蛋", "燕麦片配坚果"),
        MealType.lunch: ("番茄牛肉面", "鸡肉藜麦沙拉"),
        MealType.dinner: ("清蒸鱼配时蔬", "豆腐菌菇汤配米饭"),
        MealType.snack: ("酸奶", "时令水果"),
    },
}

GOAL_CALORIE_ADJUSTMENT: Final[dict[FitnessGoal, int]] = {
    FitnessGoal.fat_loss: -400,
    FitnessGoal.muscle_gain: 300,
    FitnessGoal.health_improvement: 0,
}
KCAL_PER_KG_BODY_WEIGHT: Final[int] = 30


class PlanGenerator:
    """Builds a plan from the exercise catalog for a profile and goal.

    Selection is random; pass a seeded ``random.Random`` for reproducible plans.
    """

    def __init__(self, catalog: Sequence[Exercise], settings: Settings, rng: random.Random | None = None) -> None:
        self._catalog = tuple(catalog)
        self._settings = settings
        self._rng = rng or random.Random()

    def generate(self, profile: UserProfile, goal: PlanGoal, duration: int, start_date: date | None = None) -> Plan:
        if duration <= 0:
            raise ValueError(f"Plan duration must be positive, got {duration}")

        start = start_date or goal.start_date
        pool = eligible_exercises(self._catalog, profile)
        strength_pool = [entry for entry in pool if is_strength_eligible(entry)]
        cardio_pool = [entry for entry in pool if is_cardio_eligible(entry)]
        strength_count, cardio_count = GOAL_COMPOSITION[goal.fitness_goal]

        tasks: list[DailyTask] = []
        for offset in WORKOUT_DAY_OFFSETS:
            if offset >= min(duration, MICROCYCLE_DAYS):
                break
            day = start + timedelta(days=offset)
            workouts = self._build_workouts(
                day,
                profile.experience_level,
                pool=pool,
                strength_pool=strength_pool,
                cardio_pool=cardio_pool,
                strength_count=strength_count,
                cardio_count=cardio_count,
            )
            meals = self._build_meals(profile, goal)
            tasks.append(DailyTask(date=day, workouts=workouts, meals=meals))

        plan = Plan(
            name=f"{profile.name}的{goal.fitness_goal.display_name}计划",
            goal=goal,
            start_date=start,
            duration=duration,
            daily_tasks=tasks,
        )
        logger.info(
            f"plan_generated plan_id={plan.id} goal={goal.fitness_goal} experience={profile.experience_level} "
            f"eligible={len(pool)} strength_pool={len(strength_pool)} cardio_pool={len(cardio_pool)} days={len(tasks)}"
        )
        return plan

    def _sample(self, pool: Sequence[Exercise], count: int) -> list[Exercise]:
        if count <= 0 or not pool:
            return []
        return self._rng.sample(list(pool), min(count, len(pool)))

    def _build_workouts(
        self,
        day: date,
        experience: ExperienceLevel,
        *,
        pool: Sequence[Exercise],
        strength_pool: Sequence[Exercise],
        cardio_pool: Sequence[Exercise],
        strength_count: int,
        cardio_count: int,
    ) -> list[Workout]:
        strength = self._sample(strength_pool, strength_count)
        picked = {entry.id for entry in strength}
        cardio = self._sample([entry for entry in cardio_pool if entry.id not in picked], cardio_count)

        workouts = [self._strength_workout(entry, day, experience) for entry in strength]
        workouts.extend(self._cardio_workout(entry, day, experience) for entry in cardio)

        if not workouts and pool:
            fallback = self._rng.choice(list(pool))
            logger.debug(f"plan_day_fallback day={day.isoformat()} exercise={fallback.id}")
            workouts.append(self._fallback_workout(fallback, day))
        return workouts

    def _strength_workout(self, entry: Exercise, day: date, experience: ExperienceLevel) -> Workout:
        set_count, min_reps, max_reps = SET_SCHEMES[experience]
        reps = (min_reps + max_reps) // 2
        minutes = set_count * self._settings.STRENGTH_MINUTES_PER_SET
        return Workout(
            name=entry.name,
            exercise_id=entry.id,
            type=WorkoutType.strength,
            sets=[WorkoutSet(reps=reps) for _ in range(set_count)],
            duration_minutes=minutes,
            calories_burned=minutes * self._settings.STRENGTH_KCAL_PER_MINUTE,
            date=day,
        )

    def _cardio_workout(self, entry: Exercise, day: date, experience: ExperienceLevel) -> Workout:
        minutes = 20 if experience == ExperienceLevel.beginner else 30
        return Workout(
            name=entry.name,
            exercise_id=entry.id,
            type=WorkoutType.cardio,
            duration_minutes=minutes,
            calories_burned=minutes * self._settings.CARDIO_KCAL_PER_MINUTE,
            date=day,
        )

    def _fallback_workout(self, entry: Exercise, day: date) -> Workout:
        return Workout(
            name=entry.name,
            exercise_id=entry.id,
            type=WorkoutType.cardio if is_cardio_eligible(entry) else WorkoutType.other,
            duration_minutes=self._settings.FALLBACK_WORKOUT_MINUTES,
            calories_burned=self._settings.FALLBACK_WORKOUT_CALORIES,
            date=day,
        )

    def _build_meals(self, profile: UserProfile, goal: PlanGoal) -> list[Meal]:
        body_weight = profile.weight or goal.start_weight
        daily_kcal = body_weight * KCAL_PER_KG_BODY_WEIGHT + GOAL_CALORIE_ADJUSTMENT[goal.fitness_goal]
        templates = MEAL_TEMPLATES[goal.fitness_goal]
        return [
            Meal(
                name=self._rng.choice(templates[meal_type]),
                calories=int(round(daily_kcal * share / 10) * 10),
                meal_type=meal_type,
            )
            for meal_type, share in MEAL_SPLIT.items()
        ]
