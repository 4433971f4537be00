"""Secondary aggregation of energy and distance over workout windows.

Totals are summed from the distance and calorie record streams over each
session's exact time window, across every data origin, so a tracker's
distance counts toward a workout another app logged. The session's own
record plays no part in the sums.

Energy policy: active calories first; when that sum is missing or not
positive, total calories; when both are missing or not positive the field
is left out. A session that genuinely burned zero calories is therefore
reported without an energy total.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

from healthbridge.core.logging import get_logger
from healthbridge.schemas.health import Workout
from healthbridge.store.base import AggregateMetric, HealthStore, TimeWindow

logger = get_logger(__name__)


@dataclass(frozen=True)
class WorkoutTotals:
    total_energy_burned: Optional[float] = None
    total_distance: Optional[float] = None


class WorkoutAggregator:
    """Merges two optional aggregate sub-queries into a workout's totals."""

    def __init__(self, store: HealthStore):
        self._store = store

    async def _sum(self, metric: AggregateMetric, window: TimeWindow) -> Optional[float]:
        """One permission-scoped aggregate; None on any failure."""
        try:
            return await self._store.aggregate(metric, window)
        except Exception as e:
            logger.warning(
                "aggregate_unavailable",
                metric=metric.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    async def distance(self, window: TimeWindow) -> Optional[float]:
        return await self._sum(AggregateMetric.DISTANCE_TOTAL, window)

    async def energy(self, window: TimeWindow) -> Optional[float]:
        active = await self._sum(AggregateMetric.ACTIVE_CALORIES_TOTAL, window)
        if active is not None and active > 0:
            return active
        total = await self._sum(AggregateMetric.TOTAL_CALORIES_TOTAL, window)
        if total is not None and total > 0:
            return total
        return None

    async def totals(self, window: TimeWindow) -> WorkoutTotals:
        energy, distance = await asyncio.gather(self.energy(window), self.distance(window))
        return WorkoutTotals(total_energy_burned=energy, total_distance=distance)

    async def with_totals(self, workout: Workout) -> Workout:
        totals = await self.totals(TimeWindow(start=workout.start_date, end=workout.end_date))
        return workout.model_copy(
            update={
                "total_energy_burned": totals.total_energy_burned,
                "total_distance": totals.total_distance,
            }
        )

    async def aggregate(self, workouts: list[Workout]) -> list[Workout]:
        """Attach totals to each workout, preserving order."""
        if not workouts:
            return []
        return list(await asyncio.gather(*(self.with_totals(w) for w in workouts)))
