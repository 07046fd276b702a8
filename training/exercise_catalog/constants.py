from training.enums import Equipment, MuscleGroup

HOME_EQUIPMENT: frozenset[Equipment] = frozenset(
    {
        Equipment.none,
        Equipment.yoga_mat,
        Equipment.resistance_bands,
        Equipment.dumbbells,
    }
)
STRENGTH_MUSCLES: frozenset[MuscleGroup] = frozenset(
    {
        MuscleGroup.chest,
        MuscleGroup.back,
        MuscleGroup.shoulders,
        MuscleGroup.legs,
        MuscleGroup.glutes,
        MuscleGroup.core,
        MuscleGroup.full_body,
    }
)

__all__ = ["HOME_EQUIPMENT", "STRENGTH_MUSCLES"]
