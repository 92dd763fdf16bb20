from dataclasses import dataclass
import redis.asyncio as redis
from licita.core.clock import Clock
from licita.core.config import Config
from licita.core.redis_client import create_redis_client
from licita.db.database import Database
from licita.services.auth_service import AuthService
from licita.services.bidding_service import BiddingService
from licita.services.contract_service import ContractService
from licita.services.notifications import NotificationService
from licita.services.permissions import PermissionStore
from licita.services.proposal_service import ProposalService
from licita.services.rate_limiter import LoginFailureTracker, RateLimiter
from licita.services.scheduler import BiddingScheduler
from licita.services.session_store import SessionStore
from licita.services.user_service import UserService


@dataclass
class Container:
    """Все долгоживущие компоненты процесса; собирается один раз в точке входа."""
    settings: Config
    database: Database
    redis: redis.Redis
    clock: Clock
    notifications: NotificationService
    sessions: SessionStore
    permissions: PermissionStore
    login_limiter: RateLimiter
    login_failures: LoginFailureTracker
    auth: AuthService
    users: UserService
    biddings: BiddingService
    proposals: ProposalService
    contracts: ContractService
    scheduler: BiddingScheduler

    def rate_limiter(self, name: str) -> RateLimiter:
        return RateLimiter(
            self.redis,
            name,
            self.settings.RATE_LIMIT_MAX_REQUESTS,
            self.settings.RATE_LIMIT_WINDOW_SECONDS,
        )

    async def close(self) -> None:
        await self.redis.aclose()
        await self.database.dispose()


def build_container(
    settings: Config,
    database: Database | None = None,
    redis_client: redis.Redis | None = None,
    clock: Clock | None = None,
) -> Container:
    database = database or Database.from_url(settings.DATABASE_URL)
    redis_client = redis_client or create_redis_client(settings.REDIS_URL)
    clock = clock or Clock()

    notifications = NotificationService(database, settings.NOTIFICATION_WEBHOOK_URL)
    sessions = SessionStore(redis_client, settings.SESSION_TTL_SECONDS)
    login_limiter = RateLimiter(
        redis_client, "login", settings.LOGIN_RATE_LIMIT_MAX_REQUESTS, settings.LOGIN_RATE_LIMIT_WINDOW_SECONDS
    )
    login_failures = LoginFailureTracker(
        redis_client, settings.LOGIN_FAILURE_MAX_ATTEMPTS, settings.LOGIN_FAILURE_WINDOW_SECONDS
    )
    permissions = PermissionStore(clock)
    biddings = BiddingService(clock, notifications)

    return Container(
        settings=settings,
        database=database,
        redis=redis_client,
        clock=clock,
        notifications=notifications,
        sessions=sessions,
        permissions=permissions,
        login_limiter=login_limiter,
        login_failures=login_failures,
        auth=AuthService(settings, clock, sessions, login_limiter, login_failures),
        users=UserService(permissions),
        biddings=biddings,
        proposals=ProposalService(clock, notifications, biddings),
        contracts=ContractService(clock, notifications),
        scheduler=BiddingScheduler(
            database,
            biddings,
            notifications,
            clock,
            sweep_interval_seconds=settings.SWEEP_INTERVAL_SECONDS,
            retention_days=settings.NOTIFICATION_RETENTION_DAYS,
        ),
    )
