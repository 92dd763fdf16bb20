import json
import redis.asyncio as redis
from licita.core.logging_config import logger


class SessionStore:
    """Активные сессии и blacklist токенов в Redis, общие для всех инстансов."""

    SESSION_PREFIX = "session:"
    BLACKLIST_PREFIX = "blacklist:"

    def __init__(self, client: redis.Redis, session_ttl_seconds: int = 7 * 24 * 3600):
        self.client = client
        self.session_ttl_seconds = session_ttl_seconds

    async def create_session(self, session_id: str, data: dict, ttl_seconds: int | None = None) -> None:
        ttl = ttl_seconds or self.session_ttl_seconds
        await self.client.setex(f"{self.SESSION_PREFIX}{session_id}", ttl, json.dumps(data, default=str))
        logger.debug(f"Session {session_id} stored for user {data.get('userId')} with TTL {ttl}s")

    async def get_session(self, session_id: str) -> dict | None:
        raw = await self.client.get(f"{self.SESSION_PREFIX}{session_id}")
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Session {session_id} holds malformed data, discarding")
            await self.destroy_session(session_id)
            return None

    async def session_exists(self, session_id: str) -> bool:
        return bool(await self.client.exists(f"{self.SESSION_PREFIX}{session_id}"))

    async def destroy_session(self, session_id: str) -> None:
        await self.client.delete(f"{self.SESSION_PREFIX}{session_id}")
        logger.debug(f"Session {session_id} destroyed")

    async def blacklist_token(self, token: str, ttl_seconds: int) -> None:
        # истёкший токен и так не пройдёт проверку подписи
        if ttl_seconds <= 0:
            return
        await self.client.setex(f"{self.BLACKLIST_PREFIX}{token}", ttl_seconds, "1")

    async def is_blacklisted(self, token: str) -> bool:
        return bool(await self.client.exists(f"{self.BLACKLIST_PREFIX}{token}"))
