from dataclasses import dataclass
import redis.asyncio as redis
from licita.core.errors import RateLimitedError
from licita.core.logging_config import logger


@dataclass
class RateLimitStatus:
    limit: int
    remaining: int
    reset_seconds: int


class RateLimiter:
    """
    Счётчик фиксированного окна в Redis.

    Ключ `rate_limit:<name>:<identifier>` живёт ровно одно окно; счётчики общие
    для всех инстансов приложения.
    """

    def __init__(self, client: redis.Redis, name: str, max_requests: int, window_seconds: int):
        self.client = client
        self.name = name
        self.max_requests = max_requests
        self.window_seconds = window_seconds

    def key_for(self, identifier: str) -> str:
        return f"rate_limit:{self.name}:{identifier}"

    async def _retry_after(self, key: str) -> int:
        ttl = await self.client.ttl(key)
        return ttl if ttl and ttl > 0 else self.window_seconds

    async def check_rate_limit(self, identifier: str) -> RateLimitStatus:
        key = self.key_for(identifier)
        current = int(await self.client.get(key) or 0)

        if current >= self.max_requests:
            retry_after = await self._retry_after(key)
            logger.warning(f"Rate limit '{self.name}' exceeded for {identifier}, retry after {retry_after}s")
            raise RateLimitedError("Too many requests, please try again later", retry_after)

        async with self.client.pipeline(transaction=True) as pipe:
            pipe.incr(key)
            pipe.expire(key, self.window_seconds)
            count, _ = await pipe.execute()

        return RateLimitStatus(
            limit=self.max_requests,
            remaining=max(self.max_requests - count, 0),
            reset_seconds=self.window_seconds,
        )

    async def reset(self, identifier: str) -> None:
        await self.client.delete(self.key_for(identifier))


class LoginFailureTracker:
    """Счётчик подряд идущих неудачных входов с одного IP; сбрасывается успешным входом."""

    def __init__(self, client: redis.Redis, max_failures: int, window_seconds: int):
        self.client = client
        self.max_failures = max_failures
        self.window_seconds = window_seconds

    @staticmethod
    def key_for(ip: str) -> str:
        return f"login_failures:{ip}"

    async def check(self, ip: str) -> None:
        key = self.key_for(ip)
        failures = int(await self.client.get(key) or 0)
        if failures >= self.max_failures:
            ttl = await self.client.ttl(key)
            retry_after = ttl if ttl and ttl > 0 else self.window_seconds
            logger.warning(f"Login blocked for {ip} after {failures} failed attempts")
            raise RateLimitedError("Too many failed login attempts, please try again later", retry_after)

    async def record_failure(self, ip: str) -> int:
        key = self.key_for(ip)
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.incr(key)
            pipe.expire(key, self.window_seconds)
            failures, _ = await pipe.execute()
        logger.info(f"Failed login attempt {failures} from {ip}")
        return failures

    async def clear(self, ip: str) -> None:
        await self.client.delete(self.key_for(ip))
