from .metric_provider import InMemoryMetricProvider
from .plan_repository import RedisPlanRepository
from .redis_client import build_redis_client, close_redis_client
from .session_state_repository import RedisSessionStateRepository

__all__ = [
    "InMemoryMetricProvider",
    "RedisPlanRepository",
    "RedisSessionStateRepository",
    "build_redis_client",
    "close_redis_client",
]
