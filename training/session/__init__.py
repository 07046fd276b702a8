from .resume import resume_saved_session
from .timers import AsyncioIntervalTimer, IntervalTimer, TimerFactory
from .workout_session import WorkoutSession

__all__ = [
    "AsyncioIntervalTimer",
    "IntervalTimer",
    "TimerFactory",
    "WorkoutSession",
    "resume_saved_session",
]
