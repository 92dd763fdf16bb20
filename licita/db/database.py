from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from licita.core.logging_config import logger


class Database:
    """Пул соединений; создаётся один раз при старте и передаётся в сервисы."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = async_sessionmaker(engine, expire_on_commit=False)

    @classmethod
    def from_url(cls, database_url: str, **engine_kwargs) -> "Database":
        engine = create_async_engine(database_url, pool_pre_ping=True, **engine_kwargs)
        return cls(engine)

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def ping(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {str(e)}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()
