import uuid
from datetime import timedelta
import bcrypt
import jwt
from sqlalchemy.ext.asyncio import AsyncSession
from licita.core.clock import Clock, as_utc
from licita.core.config import Config
from licita.core.errors import AuthenticationError, AuthorizationError
from licita.core.logging_config import logger
from licita.crud import users as users_crud
from licita.models.enums import UserStatus
from licita.models.users import User
from licita.services.actor import Actor
from licita.services.rate_limiter import LoginFailureTracker, RateLimiter
from licita.services.session_store import SessionStore


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


class AuthService:
    """
    Вход, проверка токена, обновление и выход.

    Access-токен действителен, только пока жива сессия в Redis и токен не в
    blacklist; refresh-токен дополнительно сверяется с записью UserSession.
    Сроки действия считаются по инжектируемым часам.
    """

    def __init__(
        self,
        settings: Config,
        clock: Clock,
        sessions: SessionStore,
        login_limiter: RateLimiter,
        login_failures: LoginFailureTracker,
    ):
        self.settings = settings
        self.clock = clock
        self.sessions = sessions
        self.login_limiter = login_limiter
        self.login_failures = login_failures

    def _encode(self, payload: dict, secret: str, lifetime: timedelta) -> str:
        now = self.clock.now()
        body = dict(payload, iat=int(now.timestamp()), exp=int((now + lifetime).timestamp()))
        return jwt.encode(body, secret, algorithm=self.settings.JWT_ALGORITHM)

    def _decode(self, token: str, secret: str) -> dict:
        # срок действия сверяется с инжектируемыми часами, не с системным временем
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.settings.JWT_ALGORITHM],
                options={"verify_exp": False, "verify_iat": False},
            )
        except jwt.PyJWTError as e:
            logger.warning(f"Invalid token presented: {str(e)}")
            raise AuthenticationError("Invalid token")
        if payload.get("exp", 0) <= self.clock.now().timestamp():
            raise AuthenticationError("Token expired")
        return payload

    def issue_access_token(self, user: User, session_id: str) -> str:
        return self._encode(
            {"userId": user.id, "email": user.email, "role": user.role, "sessionId": session_id},
            self.settings.JWT_SECRET,
            timedelta(minutes=self.settings.JWT_EXPIRES_MINUTES),
        )

    def issue_refresh_token(self, user: User, session_id: str) -> str:
        return self._encode(
            {"userId": user.id, "sessionId": session_id},
            self.settings.JWT_REFRESH_SECRET,
            timedelta(days=self.settings.JWT_REFRESH_EXPIRES_DAYS),
        )

    async def login(
        self, db: AsyncSession, email: str, password: str, ip_address: str, user_agent: str | None = None
    ) -> dict:
        await self.login_limiter.check_rate_limit(ip_address)
        await self.login_failures.check(ip_address)

        user = await users_crud.get_user_by_email(db, email)
        if not user or not verify_password(password, user.password_hash):
            await self.login_failures.record_failure(ip_address)
            logger.warning(f"Failed login for {email} from {ip_address}")
            raise AuthenticationError("Invalid credentials")
        if user.status != UserStatus.ACTIVE.value:
            logger.warning(f"Login attempt for inactive user {user.id}")
            raise AuthenticationError("User account is not active")

        await self.login_failures.clear(ip_address)

        now = self.clock.now()
        session_id = str(uuid.uuid4())
        await self.sessions.create_session(
            session_id,
            {
                "userId": user.id,
                "email": user.email,
                "role": user.role,
                "loginAt": now.isoformat(),
                "ipAddress": ip_address,
                "userAgent": user_agent,
            },
        )

        access_token = self.issue_access_token(user, session_id)
        refresh_token = self.issue_refresh_token(user, session_id)
        await users_crud.create_user_session(
            db,
            id=session_id,
            user_id=user.id,
            token=refresh_token,
            ip_address=ip_address,
            user_agent=user_agent,
            expires_at=now + timedelta(days=self.settings.JWT_REFRESH_EXPIRES_DAYS),
        )
        await users_crud.touch_last_login(db, user.id, now)
        await db.commit()

        logger.info(f"User {user.id} logged in from {ip_address}, session {session_id}")
        return {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "expires_in": self.settings.JWT_EXPIRES_MINUTES * 60,
            "user": user,
        }

    async def authenticate(self, db: AsyncSession, token: str) -> Actor:
        if await self.sessions.is_blacklisted(token):
            logger.warning("Blacklisted token presented")
            raise AuthenticationError("Token has been revoked")

        payload = self._decode(token, self.settings.JWT_SECRET)
        session_id = payload.get("sessionId")
        if not session_id or not await self.sessions.session_exists(session_id):
            raise AuthenticationError("Session expired or invalid")

        user = await users_crud.get_user_by_id(db, payload.get("userId"))
        if not user:
            raise AuthenticationError("User not found")
        if user.status != UserStatus.ACTIVE.value:
            raise AuthorizationError("User account is not active")

        entity = await users_crud.get_public_entity_by_user(db, user.id)
        supplier = await users_crud.get_supplier_by_user(db, user.id)
        return Actor(
            user_id=user.id,
            role=user.role,
            email=user.email,
            session_id=session_id,
            public_entity_id=entity.id if entity else None,
            supplier_id=supplier.id if supplier else None,
        )

    async def refresh(self, db: AsyncSession, refresh_token: str) -> dict:
        payload = self._decode(refresh_token, self.settings.JWT_REFRESH_SECRET)
        session_id = payload.get("sessionId")

        record = await users_crud.get_user_session(db, session_id) if session_id else None
        if (
            not record
            or not record.is_active
            or record.token != refresh_token
            or as_utc(record.expires_at) <= self.clock.now()
        ):
            raise AuthenticationError("Invalid refresh token")
        if not await self.sessions.session_exists(session_id):
            raise AuthenticationError("Session expired or invalid")

        user = await users_crud.get_user_by_id(db, record.user_id)
        if not user or user.status != UserStatus.ACTIVE.value:
            raise AuthenticationError("User not found or inactive")

        logger.info(f"Access token refreshed for user {user.id}, session {session_id}")
        return {
            "access_token": self.issue_access_token(user, session_id),
            "expires_in": self.settings.JWT_EXPIRES_MINUTES * 60,
        }

    async def logout(self, db: AsyncSession, token: str, actor: Actor) -> None:
        payload = self._decode(token, self.settings.JWT_SECRET)
        remaining = int(payload["exp"] - self.clock.now().timestamp())
        await self.sessions.blacklist_token(token, remaining)
        if actor.session_id:
            await self.sessions.destroy_session(actor.session_id)
            await users_crud.deactivate_user_session(db, actor.session_id)
            await db.commit()
        logger.info(f"User {actor.user_id} logged out, session {actor.session_id}")
