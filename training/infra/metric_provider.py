from datetime import datetime
from typing import Iterable

from training.enums import MetricType
from training.schemas import HealthMetric


class InMemoryMetricProvider:
    def __init__(self, metrics: Iterable[HealthMetric] = ()) -> None:
        self._metrics: list[HealthMetric] = sorted(metrics, key=lambda m: m.date)

    def add(self, metric: HealthMetric) -> None:
        self._metrics.append(metric)
        self._metrics.sort(key=lambda m: m.date)

    async def fetch(self, metric_type: MetricType, start: datetime, end: datetime) -> list[HealthMetric]:
        return [m for m in self._metrics if m.type == metric_type and start <= m.date <= end]
