from training.services.goal_evaluator import GoalProgressEvaluator
from training.services.plan_generator import PlanGenerator
from training.services.plan_store import PlanStore
from training.services.plan_tracker import PlanTracker


__all__ = [
    "GoalProgressEvaluator",
    "PlanGenerator",
    "PlanStore",
    "PlanTracker",
]
