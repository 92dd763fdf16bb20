import redis.asyncio as redis
from licita.core.logging_config import logger


def create_redis_client(redis_url: str) -> redis.Redis:
    """Создаёт общий для всех инстансов клиент Redis (сессии, blacklist, счётчики)."""
    logger.info(f"Connecting to Redis at {redis_url.split('@')[-1]}")
    return redis.Redis.from_url(
        redis_url,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
    )


async def ping_redis(client: redis.Redis) -> bool:
    try:
        return bool(await client.ping())
    except redis.RedisError as e:
        logger.error(f"Redis health check failed: {str(e)}")
        return False
