from enum import Enum


class MuscleGroup(str, Enum):
    chest = "chest"
    back = "back"
    shoulders = "shoulders"
    biceps = "biceps"
    triceps = "triceps"
    legs = "legs"
    glutes = "glutes"
    core = "core"
    cardio = "cardio"
    full_body = "full_body"

    def __str__(self) -> str:
        return self.value


class Equipment(str, Enum):
    none = "none"
    dumbbells = "dumbbells"
    resistance_bands = "resistance_bands"
    barbell = "barbell"
    machine = "machine"
    cardio_machine = "cardio_machine"
    yoga_mat = "yoga_mat"

    def __str__(self) -> str:
        return self.value


class Difficulty(str, Enum):
    beginner = "beginner"
    intermediate = "intermediate"
    advanced = "advanced"

    @property
    def rank(self) -> int:
        return _DIFFICULTY_RANK[self]

    def __str__(self) -> str:
        return self.value


_DIFFICULTY_RANK = {Difficulty.beginner: 0, Difficulty.intermediate: 1, Difficulty.advanced: 2}


class ExperienceLevel(str, Enum):
    beginner = "beginner"
    intermediate = "intermediate"
    advanced = "advanced"

    @property
    def max_difficulty(self) -> Difficulty:
        return Difficulty(self.value)

    def __str__(self) -> str:
        return self.value


class HealthCondition(str, Enum):
    knee_pain = "knee_pain"
    lower_back_pain = "lower_back_pain"
    shoulder_injury = "shoulder_injury"
    hypertension = "hypertension"
    heart_condition = "heart_condition"
    pregnancy = "pregnancy"

    def __str__(self) -> str:
        return self.value


class WorkoutLocation(str, Enum):
    home = "home"
    gym = "gym"

    def __str__(self) -> str:
        return self.value


class FitnessGoal(str, Enum):
    fat_loss = "fat_loss"
    muscle_gain = "muscle_gain"
    health_improvement = "health_improvement"

    @property
    def display_name(self) -> str:
        return {
            FitnessGoal.fat_loss: "减脂",
            FitnessGoal.muscle_gain: "增肌",
            FitnessGoal.health_improvement: "改善健康",
        }[self]

    def __str__(self) -> str:
        return self.value


class PlanStatus(str, Enum):
    active = "active"
    archived = "archived"

    def __str__(self) -> str:
        return self.value


class WorkoutType(str, Enum):
    strength = "strength"
    cardio = "cardio"
    flexibility = "flexibility"
    other = "other"

    @property
    def display_name(self) -> str:
        return {
            WorkoutType.strength: "力量",
            WorkoutType.cardio: "有氧",
            WorkoutType.flexibility: "柔韧",
            WorkoutType.other: "其他",
        }[self]

    def __str__(self) -> str:
        return self.value


class MealType(str, Enum):
    breakfast = "breakfast"
    lunch = "lunch"
    dinner = "dinner"
    snack = "snack"

    @property
    def display_name(self) -> str:
        return {
            MealType.breakfast: "早餐",
            MealType.lunch: "午餐",
            MealType.dinner: "晚餐",
            MealType.snack: "加餐",
        }[self]

    def __str__(self) -> str:
        return self.value


class MetricType(str, Enum):
    weight = "weight"
    body_fat_percentage = "body_fat_percentage"
    waist = "waist"
    heart_rate = "heart_rate"
    vo2max = "vo2max"

    @property
    def unit(self) -> str:
        return {
            MetricType.weight: "kg",
            MetricType.body_fat_percentage: "%",
            MetricType.waist: "cm",
            MetricType.heart_rate: "bpm",
            MetricType.vo2max: "ml/kg/min",
        }[self]

    def __str__(self) -> str:
        return self.value


class WeightGoalDirection(str, Enum):
    lose = "lose"
    gain = "gain"
    maintain = "maintain"

    def __str__(self) -> str:
        return self.value


class GoalStatus(str, Enum):
    not_started = "not_started"
    in_progress = "in_progress"
    on_track = "on_track"
    ahead = "ahead"
    behind = "behind"

    def __str__(self) -> str:
        return self.value


class SessionState(str, Enum):
    not_started = "not_started"
    running = "running"
    ended = "ended"

    def __str__(self) -> str:
        return self.value


class InsightTone(str, Enum):
    informational = "informational"
    positive = "positive"
    warning = "warning"

    def __str__(self) -> str:
        return self.value


class InsightAction(str, Enum):
    start_workout = "start_workout"
    log_weight = "log_weight"
    review_meals = "review_meals"
    open_plan = "open_plan"
    none = "none"

    def __str__(self) -> str:
        return self.value


class PlanEventType(str, Enum):
    plan_changed = "plan_changed"

    def __str__(self) -> str:
        return self.value
