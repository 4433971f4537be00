"""Static registry of canonical data types, units and permission tokens.

Everything here is read-only after import. The tables map canonical
identifiers to native record kinds and platform permission tokens, and
translate native exercise / sleep-stage codes in both directions.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from healthbridge.core.exceptions import ValidationError
from healthbridge.store.records import ExerciseType, RecordKind, SleepStageType

PERMISSION_PREFIX = "android.permission.health."


def read_permission(token_name: str) -> str:
    return f"{PERMISSION_PREFIX}READ_{token_name}"


def write_permission(token_name: str) -> str:
    return f"{PERMISSION_PREFIX}WRITE_{token_name}"


# Native record kind -> permission token suffix
_RECORD_TOKEN_NAMES: dict[RecordKind, str] = {
    RecordKind.STEPS: "STEPS",
    RecordKind.DISTANCE: "DISTANCE",
    RecordKind.ACTIVE_CALORIES_BURNED: "ACTIVE_CALORIES_BURNED",
    RecordKind.TOTAL_CALORIES_BURNED: "TOTAL_CALORIES_BURNED",
    RecordKind.HEART_RATE: "HEART_RATE",
    RecordKind.WEIGHT: "WEIGHT",
    RecordKind.HEIGHT: "HEIGHT",
    RecordKind.EXERCISE_SESSION: "EXERCISE",
    RecordKind.SLEEP_SESSION: "SLEEP",
    RecordKind.HYDRATION: "HYDRATION",
}

RECORD_READ_PERMISSIONS: Mapping[RecordKind, str] = MappingProxyType(
    {kind: read_permission(name) for kind, name in _RECORD_TOKEN_NAMES.items()}
)
RECORD_WRITE_PERMISSIONS: Mapping[RecordKind, str] = MappingProxyType(
    {kind: write_permission(name) for kind, name in _RECORD_TOKEN_NAMES.items()}
)


@dataclass(frozen=True)
class DataTypeDescriptor:
    """One supported metric: identifier, canonical unit and permission tokens."""

    identifier: str
    unit: str
    record_kind: RecordKind
    read_permission: str
    write_permission: str


def _descriptor(identifier: str, unit: str, kind: RecordKind) -> DataTypeDescriptor:
    return DataTypeDescriptor(
        identifier=identifier,
        unit=unit,
        record_kind=kind,
        read_permission=RECORD_READ_PERMISSIONS[kind],
        write_permission=RECORD_WRITE_PERMISSIONS[kind],
    )


DATA_TYPES: Mapping[str, DataTypeDescriptor] = MappingProxyType(
    {
        d.identifier: d
        for d in (
            _descriptor("steps", "count", RecordKind.STEPS),
            _descriptor("distance", "meter", RecordKind.DISTANCE),
            _descriptor("calories", "kilocalorie", RecordKind.ACTIVE_CALORIES_BURNED),
            _descriptor("totalCalories", "kilocalorie", RecordKind.TOTAL_CALORIES_BURNED),
            _descriptor("heartRate", "bpm", RecordKind.HEART_RATE),
            _descriptor("weight", "kilogram", RecordKind.WEIGHT),
            _descriptor("height", "meter", RecordKind.HEIGHT),
        )
    }
)

# Read-only capabilities with no writable counterpart
WORKOUTS = "workouts"
SLEEP = "sleep"
HYDRATION = "hydration"

SPECIAL_READ_KINDS: Mapping[str, RecordKind] = MappingProxyType(
    {
        WORKOUTS: RecordKind.EXERCISE_SESSION,
        SLEEP: RecordKind.SLEEP_SESSION,
        HYDRATION: RecordKind.HYDRATION,
    }
)


def get_data_type(identifier: Optional[str]) -> DataTypeDescriptor:
    """Look up a data type, raising ValidationError for unknown identifiers."""
    if not identifier:
        raise ValidationError("dataType", "dataType is required")
    descriptor = DATA_TYPES.get(identifier)
    if descriptor is None:
        raise ValidationError("dataType", f"Unsupported data type: {identifier}")
    return descriptor


def read_permission_for(capability: str) -> str:
    """Permission token guarding a read capability (data type or special token)."""
    kind = SPECIAL_READ_KINDS.get(capability)
    if kind is not None:
        return RECORD_READ_PERMISSIONS[kind]
    return get_data_type(capability).read_permission


def write_permission_for(capability: str) -> str:
    """Permission token guarding a write capability. Special tokens are read-only."""
    if capability in SPECIAL_READ_KINDS:
        raise ValidationError("write", f"{capability} is read-only and cannot be requested for writing")
    return get_data_type(capability).write_permission


# =============================================================================
# Workout types
# =============================================================================


class WorkoutType(str, Enum):
    """Canonical workout types."""

    RUNNING = "running"
    CYCLING = "cycling"
    WALKING = "walking"
    SWIMMING = "swimming"
    YOGA = "yoga"
    STRENGTH_TRAINING = "strengthTraining"
    HIKING = "hiking"
    TENNIS = "tennis"
    BASKETBALL = "basketball"
    SOCCER = "soccer"
    AMERICAN_FOOTBALL = "americanFootball"
    BASEBALL = "baseball"
    CROSS_TRAINING = "crossTraining"
    ELLIPTICAL = "elliptical"
    ROWING = "rowing"
    STAIR_CLIMBING = "stairClimbing"
    TRADITIONAL_STRENGTH_TRAINING = "traditionalStrengthTraining"
    WATER_FITNESS = "waterFitness"
    WATER_POLO = "waterPolo"
    WATER_SPORTS = "waterSports"
    WRESTLING = "wrestling"
    OTHER = "other"


# Canonical name -> native code used when filtering or writing
WORKOUT_TYPE_TO_NATIVE: Mapping[WorkoutType, ExerciseType] = MappingProxyType(
    {
        WorkoutType.RUNNING: ExerciseType.RUNNING,
        WorkoutType.CYCLING: ExerciseType.BIKING,
        WorkoutType.WALKING: ExerciseType.WALKING,
        WorkoutType.SWIMMING: ExerciseType.SWIMMING_POOL,
        WorkoutType.YOGA: ExerciseType.YOGA,
        WorkoutType.STRENGTH_TRAINING: ExerciseType.STRENGTH_TRAINING,
        WorkoutType.HIKING: ExerciseType.HIKING,
        WorkoutType.TENNIS: ExerciseType.TENNIS,
        WorkoutType.BASKETBALL: ExerciseType.BASKETBALL,
        WorkoutType.SOCCER: ExerciseType.SOCCER,
        WorkoutType.AMERICAN_FOOTBALL: ExerciseType.FOOTBALL_AMERICAN,
        WorkoutType.BASEBALL: ExerciseType.BASEBALL,
        WorkoutType.CROSS_TRAINING: ExerciseType.HIGH_INTENSITY_INTERVAL_TRAINING,
        WorkoutType.ELLIPTICAL: ExerciseType.ELLIPTICAL,
        WorkoutType.ROWING: ExerciseType.ROWING,
        WorkoutType.STAIR_CLIMBING: ExerciseType.STAIR_CLIMBING,
        WorkoutType.TRADITIONAL_STRENGTH_TRAINING: ExerciseType.STRENGTH_TRAINING,
        WorkoutType.WATER_FITNESS: ExerciseType.SWIMMING_POOL,
        WorkoutType.WATER_POLO: ExerciseType.WATER_POLO,
        WorkoutType.WATER_SPORTS: ExerciseType.SWIMMING_OPEN_WATER,
        WorkoutType.WRESTLING: ExerciseType.MARTIAL_ARTS,
        WorkoutType.OTHER: ExerciseType.OTHER_WORKOUT,
    }
)

# Native code -> canonical name reported on output. Several codes collapse
# onto one name; codes missing here report as OTHER.
NATIVE_TO_WORKOUT_TYPE: Mapping[int, WorkoutType] = MappingProxyType(
    {
        ExerciseType.RUNNING: WorkoutType.RUNNING,
        ExerciseType.BIKING: WorkoutType.CYCLING,
        ExerciseType.BIKING_STATIONARY: WorkoutType.CYCLING,
        ExerciseType.WALKING: WorkoutType.WALKING,
        ExerciseType.SWIMMING_POOL: WorkoutType.SWIMMING,
        ExerciseType.SWIMMING_OPEN_WATER: WorkoutType.SWIMMING,
        ExerciseType.YOGA: WorkoutType.YOGA,
        ExerciseType.STRENGTH_TRAINING: WorkoutType.STRENGTH_TRAINING,
        ExerciseType.HIKING: WorkoutType.HIKING,
        ExerciseType.TENNIS: WorkoutType.TENNIS,
        ExerciseType.BASKETBALL: WorkoutType.BASKETBALL,
        ExerciseType.SOCCER: WorkoutType.SOCCER,
        ExerciseType.FOOTBALL_AMERICAN: WorkoutType.AMERICAN_FOOTBALL,
        ExerciseType.BASEBALL: WorkoutType.BASEBALL,
        ExerciseType.HIGH_INTENSITY_INTERVAL_TRAINING: WorkoutType.CROSS_TRAINING,
        ExerciseType.ELLIPTICAL: WorkoutType.ELLIPTICAL,
        ExerciseType.ROWING: WorkoutType.ROWING,
        ExerciseType.ROWING_MACHINE: WorkoutType.ROWING,
        ExerciseType.STAIR_CLIMBING: WorkoutType.STAIR_CLIMBING,
        ExerciseType.STAIR_CLIMBING_MACHINE: WorkoutType.STAIR_CLIMBING,
        ExerciseType.WATER_POLO: WorkoutType.WATER_POLO,
        ExerciseType.MARTIAL_ARTS: WorkoutType.WRESTLING,
        ExerciseType.OTHER_WORKOUT: WorkoutType.OTHER,
    }
)


def workout_type_from_native(exercise_type: int) -> WorkoutType:
    """Canonical name for a native exercise code; unknown codes are OTHER."""
    return NATIVE_TO_WORKOUT_TYPE.get(exercise_type, WorkoutType.OTHER)


def parse_workout_type(name: str) -> WorkoutType:
    try:
        return WorkoutType(name)
    except ValueError:
        raise ValidationError("workoutType", f"Unsupported workout type: {name}") from None


def reported_workout_type(name: str) -> WorkoutType:
    """The canonical name sessions of this type are reported under.

    Alias names (traditionalStrengthTraining, waterFitness, waterSports) are
    never reported on output; they resolve through their native code to the
    name that is.
    """
    return workout_type_from_native(WORKOUT_TYPE_TO_NATIVE[parse_workout_type(name)])


# =============================================================================
# Sleep stages
# =============================================================================


class SleepStage(str, Enum):
    """Canonical sleep stages."""

    UNKNOWN = "unknown"
    AWAKE = "awake"
    SLEEPING = "sleeping"
    OUT_OF_BED = "outOfBed"
    AWAKE_IN_BED = "awakeInBed"
    LIGHT = "light"
    DEEP = "deep"
    REM = "rem"


NATIVE_TO_SLEEP_STAGE: Mapping[int, SleepStage] = MappingProxyType(
    {
        SleepStageType.UNKNOWN: SleepStage.UNKNOWN,
        SleepStageType.AWAKE: SleepStage.AWAKE,
        SleepStageType.SLEEPING: SleepStage.SLEEPING,
        SleepStageType.OUT_OF_BED: SleepStage.OUT_OF_BED,
        SleepStageType.LIGHT: SleepStage.LIGHT,
        SleepStageType.DEEP: SleepStage.DEEP,
        SleepStageType.REM: SleepStage.REM,
        SleepStageType.AWAKE_IN_BED: SleepStage.AWAKE_IN_BED,
    }
)
SLEEP_STAGE_TO_NATIVE: Mapping[SleepStage, SleepStageType] = MappingProxyType(
    {stage: SleepStageType(code) for code, stage in NATIVE_TO_SLEEP_STAGE.items()}
)


def sleep_stage_from_native(stage: int) -> SleepStage:
    return NATIVE_TO_SLEEP_STAGE.get(stage, SleepStage.UNKNOWN)
