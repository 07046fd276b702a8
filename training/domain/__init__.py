from .metrics import MetricProvider
from .plan_repository import PlanRepository
from .session_state_repository import SessionStateRepository

__all__ = ["MetricProvider", "PlanRepository", "SessionStateRepository"]
