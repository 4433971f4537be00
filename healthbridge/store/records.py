"""Native record types held by the permissioned health record store.

These mirror the shapes the platform store reports: interval records with a
start and end time, instantaneous records with a single time, and session
records carrying their own sub-records. Values are stored in the platform's
native units (meters, kilocalories, kilograms, milliliters).
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import ClassVar, Optional, Union


class RecordKind(str, Enum):
    """Native record types the store can page through."""

    STEPS = "Steps"
    DISTANCE = "Distance"
    ACTIVE_CALORIES_BURNED = "ActiveCaloriesBurned"
    TOTAL_CALORIES_BURNED = "TotalCaloriesBurned"
    HEART_RATE = "HeartRate"
    WEIGHT = "Weight"
    HEIGHT = "Height"
    EXERCISE_SESSION = "ExerciseSession"
    SLEEP_SESSION = "SleepSession"
    HYDRATION = "Hydration"


class ExerciseType(IntEnum):
    """Native exercise session codes."""

    OTHER_WORKOUT = 0
    BASEBALL = 4
    BASKETBALL = 5
    BIKING = 8
    BIKING_STATIONARY = 9
    ELLIPTICAL = 25
    FOOTBALL_AMERICAN = 28
    HIGH_INTENSITY_INTERVAL_TRAINING = 36
    HIKING = 37
    MARTIAL_ARTS = 44
    ROWING = 53
    ROWING_MACHINE = 54
    RUNNING = 56
    RUNNING_TREADMILL = 57
    SOCCER = 64
    STAIR_CLIMBING = 68
    STAIR_CLIMBING_MACHINE = 69
    STRENGTH_TRAINING = 70
    SWIMMING_OPEN_WATER = 73
    SWIMMING_POOL = 74
    TENNIS = 76
    WALKING = 79
    WATER_POLO = 80
    YOGA = 83


class SleepStageType(IntEnum):
    """Native sleep stage codes."""

    UNKNOWN = 0
    AWAKE = 1
    SLEEPING = 2
    OUT_OF_BED = 3
    LIGHT = 4
    DEEP = 5
    REM = 6
    AWAKE_IN_BED = 7


@dataclass(frozen=True)
class Device:
    """Device that produced a record, when the origin reports one."""

    manufacturer: Optional[str] = None
    model: Optional[str] = None


@dataclass(frozen=True)
class RecordMetadata:
    """Provenance and client bookkeeping attached to every native record."""

    data_origin: str  # package / bundle identifier of the writing app
    device: Optional[Device] = None
    id: Optional[str] = None
    client_record_id: Optional[str] = None
    client_record_version: int = 0
    extras: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class StepsRecord:
    kind: ClassVar[RecordKind] = RecordKind.STEPS

    start_time: datetime
    end_time: datetime
    count: int
    metadata: RecordMetadata


@dataclass(frozen=True)
class DistanceRecord:
    kind: ClassVar[RecordKind] = RecordKind.DISTANCE

    start_time: datetime
    end_time: datetime
    distance_meters: float
    metadata: RecordMetadata


@dataclass(frozen=True)
class ActiveCaloriesBurnedRecord:
    kind: ClassVar[RecordKind] = RecordKind.ACTIVE_CALORIES_BURNED

    start_time: datetime
    end_time: datetime
    energy_kilocalories: float
    metadata: RecordMetadata


@dataclass(frozen=True)
class TotalCaloriesBurnedRecord:
    kind: ClassVar[RecordKind] = RecordKind.TOTAL_CALORIES_BURNED

    start_time: datetime
    end_time: datetime
    energy_kilocalories: float
    metadata: RecordMetadata


@dataclass(frozen=True)
class HeartRateSample:
    time: datetime
    beats_per_minute: int


@dataclass(frozen=True)
class HeartRateRecord:
    """A series record: one record carries many beat-rate readings."""

    kind: ClassVar[RecordKind] = RecordKind.HEART_RATE

    start_time: datetime
    end_time: datetime
    samples: tuple[HeartRateSample, ...]
    metadata: RecordMetadata


@dataclass(frozen=True)
class WeightRecord:
    kind: ClassVar[RecordKind] = RecordKind.WEIGHT

    time: datetime
    weight_kilograms: float
    metadata: RecordMetadata

    @property
    def start_time(self) -> datetime:
        return self.time

    @property
    def end_time(self) -> datetime:
        return self.time


@dataclass(frozen=True)
class HeightRecord:
    kind: ClassVar[RecordKind] = RecordKind.HEIGHT

    time: datetime
    height_meters: float
    metadata: RecordMetadata

    @property
    def start_time(self) -> datetime:
        return self.time

    @property
    def end_time(self) -> datetime:
        return self.time


@dataclass(frozen=True)
class ExerciseSessionRecord:
    kind: ClassVar[RecordKind] = RecordKind.EXERCISE_SESSION

    start_time: datetime
    end_time: datetime
    exercise_type: int
    metadata: RecordMetadata
    title: Optional[str] = None


@dataclass(frozen=True)
class SleepStage:
    start_time: datetime
    end_time: datetime
    stage: int


@dataclass(frozen=True)
class SleepSessionRecord:
    kind: ClassVar[RecordKind] = RecordKind.SLEEP_SESSION

    start_time: datetime
    end_time: datetime
    metadata: RecordMetadata
    title: Optional[str] = None
    stages: tuple[SleepStage, ...] = ()


@dataclass(frozen=True)
class HydrationRecord:
    kind: ClassVar[RecordKind] = RecordKind.HYDRATION

    start_time: datetime
    end_time: datetime
    volume_milliliters: float
    metadata: RecordMetadata


NativeRecord = Union[
    StepsRecord,
    DistanceRecord,
    ActiveCaloriesBurnedRecord,
    TotalCaloriesBurnedRecord,
    HeartRateRecord,
    WeightRecord,
    HeightRecord,
    ExerciseSessionRecord,
    SleepSessionRecord,
    HydrationRecord,
]
