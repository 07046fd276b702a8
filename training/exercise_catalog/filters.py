from typing import Iterable

from training.enums import Difficulty, Equipment, ExperienceLevel, HealthCondition, MuscleGroup, WorkoutLocation
from training.schemas import Exercise, UserProfile

from .constants import HOME_EQUIPMENT, STRENGTH_MUSCLES


def filter_by_location(entries: Iterable[Exercise], location: WorkoutLocation) -> list[Exercise]:
    if location == WorkoutLocation.gym:
        return list(entries)
    return [entry for entry in entries if entry.equipment <= HOME_EQUIPMENT]


def filter_by_equipment(entries: Iterable[Exercise], available: Iterable[Equipment] | None) -> list[Exercise]:
    owned = set(available or ())
    if not owned:
        return list(entries)
    return [entry for entry in entries if not entry.needs_equipment or entry.required_equipment <= owned]


def filter_by_conditions(entries: Iterable[Exercise], conditions: Iterable[HealthCondition] | None) -> list[Exercise]:
    """Drop exercises contraindicated for any declared condition.

    High-impact moves are screened with the same avoid-list rule, so a jump
    variation stays available unless one of the user's conditions rules it out.
    """
    declared = set(conditions or ())
    if not declared:
        return list(entries)
    return [entry for entry in entries if not entry.is_contraindicated(declared)]


def filter_by_experience(entries: Iterable[Exercise], experience: ExperienceLevel) -> list[Exercise]:
    ceiling = experience.max_difficulty.rank
    return [entry for entry in entries if entry.difficulty.rank <= ceiling]


def is_strength_eligible(entry: Exercise) -> bool:
    return bool(entry.target_muscles & STRENGTH_MUSCLES)


def is_cardio_eligible(entry: Exercise) -> bool:
    if MuscleGroup.cardio in entry.target_muscles:
        return True
    return MuscleGroup.full_body in entry.target_muscles and entry.is_high_impact


def eligible_exercises(entries: Iterable[Exercise], profile: UserProfile) -> list[Exercise]:
    candidates = filter_by_location(entries, profile.workout_location)
    candidates = filter_by_equipment(candidates, profile.available_equipment)
    candidates = filter_by_conditions(candidates, profile.health_conditions)
    return filter_by_experience(candidates, profile.experience_level)


def difficulties_for(experience: ExperienceLevel) -> set[Difficulty]:
    ceiling = experience.max_difficulty.rank
    return {difficulty for difficulty in Difficulty if difficulty.rank <= ceiling}


__all__ = [
    "difficulties_for",
    "eligible_exercises",
    "filter_by_conditions",
    "filter_by_equipment",
    "filter_by_experience",
    "filter_by_location",
    "is_cardio_eligible",
    "is_strength_eligible",
]
