from redis.asyncio import Redis, from_url

from config.app_settings import Settings


def build_redis_client(settings: Settings) -> Redis:
    return from_url(
        url=settings.REDIS_URL,
        db=settings.REDIS_DB,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
        socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
    )


async def close_redis_client(client: Redis) -> None:
    await client.aclose()
