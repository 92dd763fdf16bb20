from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from licita.api.dependencies import get_container
from licita.core.container import Container
from licita.core.redis_client import ping_redis

router = APIRouter()


@router.get("/", summary="Проверка базы данных и Redis")
async def health(container: Container = Depends(get_container)):
    checks = {
        "database": "ok" if await container.database.ping() else "unavailable",
        "redis": "ok" if await ping_redis(container.redis) else "unavailable",
    }
    healthy = all(value == "ok" for value in checks.values())
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={"status": "healthy" if healthy else "unhealthy", "checks": checks},
    )
