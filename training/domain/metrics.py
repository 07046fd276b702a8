from datetime import datetime
from typing import Protocol

from training.enums import MetricType
from training.schemas import HealthMetric


class MetricProvider(Protocol):
    async def fetch(self, metric_type: MetricType, start: datetime, end: datetime) -> list[HealthMetric]: ...
