import pytest

from licita.core.errors import AuthenticationError, RateLimitedError
from licita.crud.users import get_user_by_id, get_user_session
from licita.models.users import User
from licita.services.auth_service import hash_password

IP = "203.0.113.7"
PASSWORD = "correct-horse-battery"


async def login(container, db, email="supplier@licita.test", password=PASSWORD, ip=IP):
    return await container.auth.login(db, email, password, ip, "pytest")


async def test_login_issues_tokens_and_session(container, db, seed, clock):
    result = await login(container, db)

    assert result["user"].id == seed.supplier.user_id
    assert result["expires_in"] == container.settings.JWT_EXPIRES_MINUTES * 60
    actor = await container.auth.authenticate(db, result["access_token"])
    assert actor.user_id == seed.supplier.user_id
    assert actor.supplier_id == seed.supplier.supplier_id
    assert actor.public_entity_id is None

    record = await get_user_session(db, actor.session_id)
    assert record.is_active
    assert record.token == result["refresh_token"]
    assert await container.sessions.session_exists(actor.session_id)
    assert (await get_user_by_id(db, seed.supplier.user_id)).last_login_at is not None


async def test_login_email_is_case_insensitive(container, db, seed):
    result = await login(container, db, email="Owner@Licita.TEST")

    actor = await container.auth.authenticate(db, result["access_token"])
    assert actor.public_entity_id == seed.owner.public_entity_id


async def test_wrong_password_is_rejected(container, db, seed):
    with pytest.raises(AuthenticationError, match="Invalid credentials"):
        await login(container, db, password="wrong")
    with pytest.raises(AuthenticationError, match="Invalid credentials"):
        await login(container, db, email="nobody@licita.test")


async def test_repeated_failures_block_ip(container, db, seed):
    for _ in range(container.settings.LOGIN_FAILURE_MAX_ATTEMPTS):
        with pytest.raises(AuthenticationError):
            await login(container, db, password="wrong")

    with pytest.raises(RateLimitedError):
        await login(container, db)
    await login(container, db, ip="198.51.100.1")


async def test_successful_login_clears_failures(container, db, seed, redis_client):
    with pytest.raises(AuthenticationError):
        await login(container, db, password="wrong")

    await login(container, db)

    assert not await redis_client.exists(container.login_failures.key_for(IP))


async def test_login_attempts_are_rate_limited(container, db, seed):
    container.login_limiter.max_requests = 1
    await login(container, db)

    with pytest.raises(RateLimitedError) as excinfo:
        await login(container, db)
    assert excinfo.value.retry_after > 0


async def test_inactive_user_cannot_login(container, db, seed):
    db.add(
        User(email="blocked@licita.test", password_hash=hash_password(PASSWORD), role="SUPPLIER", status="SUSPENDED")
    )
    await db.commit()

    with pytest.raises(AuthenticationError, match="not active"):
        await login(container, db, email="blocked@licita.test")


async def test_access_token_expires_by_clock(container, db, seed, clock):
    result = await login(container, db)

    clock.advance(minutes=container.settings.JWT_EXPIRES_MINUTES, seconds=1)

    with pytest.raises(AuthenticationError, match="Token expired"):
        await container.auth.authenticate(db, result["access_token"])


async def test_refresh_issues_new_access_token(container, db, seed, clock):
    result = await login(container, db)
    clock.advance(minutes=5)

    refreshed = await container.auth.refresh(db, result["refresh_token"])

    actor = await container.auth.authenticate(db, refreshed["access_token"])
    assert actor.user_id == seed.supplier.user_id
    with pytest.raises(AuthenticationError):
        await container.auth.refresh(db, result["access_token"])


async def test_garbage_token_is_rejected(container, db, seed):
    with pytest.raises(AuthenticationError, match="Invalid token"):
        await container.auth.authenticate(db, "not-a-jwt")


async def test_logout_revokes_token_and_session(container, db, seed):
    result = await login(container, db)
    actor = await container.auth.authenticate(db, result["access_token"])

    await container.auth.logout(db, result["access_token"], actor)

    with pytest.raises(AuthenticationError, match="revoked"):
        await container.auth.authenticate(db, result["access_token"])
    with pytest.raises(AuthenticationError):
        await container.auth.refresh(db, result["refresh_token"])
    assert not await container.sessions.session_exists(actor.session_id)
    assert not (await get_user_session(db, actor.session_id)).is_active


async def test_destroyed_session_invalidates_token(container, db, seed):
    result = await login(container, db)
    actor = await container.auth.authenticate(db, result["access_token"])

    await container.sessions.destroy_session(actor.session_id)

    with pytest.raises(AuthenticationError, match="Session expired"):
        await container.auth.authenticate(db, result["access_token"])
