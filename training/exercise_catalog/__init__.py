from .constants import HOME_EQUIPMENT, STRENGTH_MUSCLES
from .filters import (
    difficulties_for,
    eligible_exercises,
    filter_by_conditions,
    filter_by_equipment,
    filter_by_experience,
    filter_by_location,
    is_cardio_eligible,
    is_strength_eligible,
)
from .loader import load_exercise_catalog

__all__ = [
    "HOME_EQUIPMENT",
    "STRENGTH_MUSCLES",
    "difficulties_for",
    "eligible_exercises",
    "filter_by_conditions",
    "filter_by_equipment",
    "filter_by_experience",
    "filter_by_location",
    "is_cardio_eligible",
    "is_strength_eligible",
    "load_exercise_catalog",
]
