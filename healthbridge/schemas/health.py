"""Canonical request and response schemas.

Field names are snake_case in Python and camelCase on the wire. Optional
fields that are absent are dropped from serialized payloads rather than sent
as null.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

from healthbridge.registry import SleepStage, WorkoutType


def format_instant(value: datetime) -> str:
    """ISO-8601 in UTC with a Z suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


IsoDatetime = Annotated[datetime, PlainSerializer(format_instant, return_type=str, when_used="json")]


class CamelModel(BaseModel):
    """Base model serializing with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict as returned to callers."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# Canonical entities
# =============================================================================


class Sample(CamelModel):
    data_type: str
    value: float
    unit: str
    start_date: IsoDatetime
    end_date: IsoDatetime
    source_name: str
    source_id: str


class Workout(CamelModel):
    workout_type: WorkoutType
    duration: int  # seconds
    start_date: IsoDatetime
    end_date: IsoDatetime
    total_energy_burned: Optional[float] = None  # kcal
    total_distance: Optional[float] = None  # meters
    source_name: str
    source_id: str
    metadata: Optional[dict[str, str]] = None


class SleepStageRecord(CamelModel):
    stage: SleepStage
    start_date: IsoDatetime
    end_date: IsoDatetime


class SleepSession(CamelModel):
    title: Optional[str] = None
    duration: int  # seconds
    start_date: IsoDatetime
    end_date: IsoDatetime
    stages: Optional[list[SleepStageRecord]] = None
    source_name: str
    source_id: str
    metadata: Optional[dict[str, str]] = None


class HydrationRecord(CamelModel):
    volume: float  # liters
    start_date: IsoDatetime
    end_date: IsoDatetime
    source_name: str
    source_id: str
    metadata: Optional[dict[str, str]] = None


class AuthorizationStatus(CamelModel):
    read_authorized: list[str] = Field(default_factory=list)
    read_denied: list[str] = Field(default_factory=list)
    write_authorized: list[str] = Field(default_factory=list)
    write_denied: list[str] = Field(default_factory=list)


class AvailabilityResult(CamelModel):
    available: bool
    platform: str
    reason: Optional[str] = None


class VersionResult(CamelModel):
    version: str


# =============================================================================
# Requests
# =============================================================================


class AuthorizationRequest(CamelModel):
    read: list[str] = Field(default_factory=list)
    write: list[str] = Field(default_factory=list)


class QueryOptions(CamelModel):
    """Window, limit and ordering shared by every query."""

    start_date: Optional[str] = None
    end_date: Optional[str] = None
    limit: Optional[int] = None
    ascending: Optional[bool] = None


class ReadSamplesRequest(QueryOptions):
    data_type: Optional[str] = None


class QueryWorkoutsRequest(QueryOptions):
    workout_type: Optional[str] = None


class QuerySleepRequest(QueryOptions):
    pass


class QueryHydrationRequest(QueryOptions):
    pass


class SaveSampleRequest(CamelModel):
    data_type: Optional[str] = None
    value: Optional[float] = None
    unit: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


# =============================================================================
# Results
# =============================================================================


class ReadSamplesResult(CamelModel):
    samples: list[Sample]


class QueryWorkoutsResult(CamelModel):
    workouts: list[Workout]


class QuerySleepResult(CamelModel):
    sleep_sessions: list[SleepSession]


class QueryHydrationResult(CamelModel):
    hydration_records: list[HydrationRecord]
