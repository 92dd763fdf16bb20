PASSWORD = "correct-horse-battery"


async def test_login_returns_tokens_and_profile(client):
    response = await client.post("/v1/auth/login", json={"email": "owner@licita.test", "password": PASSWORD})

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["role"] == "PUBLIC_ENTITY"
    assert "password_hash" not in body["user"]
    assert body["refresh_token"]


async def test_bad_credentials_use_error_envelope(client):
    response = await client.post("/v1/auth/login", json={"email": "owner@licita.test", "password": "nope"})

    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "error": {"code": "AUTHENTICATION_ERROR", "message": "Invalid credentials"},
    }


async def test_malformed_body_is_a_validation_error(client):
    response = await client.post("/v1/auth/login", json={"email": "owner@licita.test"})

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"][0]["field"] == "body.password"


async def test_me_lists_active_permissions(client, auth_headers):
    headers = await auth_headers("supplier@licita.test")

    response = await client.get("/v1/auth/me", headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["role"] == "SUPPLIER"
    assert "CREATE_PROPOSAL" in body["permissions"]
    assert "CREATE_BIDDING" not in body["permissions"]


async def test_me_requires_token(client):
    response = await client.get("/v1/auth/me")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTHENTICATION_ERROR"


async def test_logout_revokes_access_token(client, auth_headers):
    headers = await auth_headers("citizen@licita.test")

    assert (await client.post("/v1/auth/logout", headers=headers)).status_code == 204

    response = await client.get("/v1/auth/me", headers=headers)
    assert response.status_code == 401


async def test_refresh_returns_working_access_token(client):
    login = await client.post("/v1/auth/login", json={"email": "supplier@licita.test", "password": PASSWORD})

    response = await client.post("/v1/auth/refresh", json={"refresh_token": login.json()["refresh_token"]})

    assert response.status_code == 200
    headers = {"Authorization": f"Bearer {response.json()['access_token']}"}
    assert (await client.get("/v1/auth/me", headers=headers)).status_code == 200


async def test_repeated_login_failures_return_429(client, container):
    for _ in range(container.settings.LOGIN_FAILURE_MAX_ATTEMPTS):
        await client.post("/v1/auth/login", json={"email": "owner@licita.test", "password": "nope"})

    response = await client.post("/v1/auth/login", json={"email": "owner@licita.test", "password": PASSWORD})

    assert response.status_code == 429
    assert int(response.headers["Retry-After"]) > 0
    assert response.json()["error"]["code"] == "RATE_LIMIT_EXCEEDED"


async def test_responses_carry_pipeline_headers(client):
    response = await client.get("/v1/health/", headers={"X-Request-ID": "trace-123"})

    assert response.headers["X-Request-ID"] == "trace-123"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Response-Time"].endswith("ms")


async def test_error_responses_carry_pipeline_headers(client):
    response = await client.get("/v1/auth/me")

    assert response.status_code == 401
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Request-ID"]


async def test_registered_supplier_logs_in_after_approval(client, auth_headers):
    payload = {
        "email": "fornecedor@licita.test",
        "password": PASSWORD,
        "role": "SUPPLIER",
        "company_name": "Construtora Recife",
    }

    registered = await client.post("/v1/auth/register", json=payload)
    assert registered.status_code == 201
    assert registered.json()["status"] == "PENDING"
    assert "password_hash" not in registered.json()
    assert registered.headers["X-RateLimit-Remaining"] == "99"

    pending = await client.post("/v1/auth/login", json={"email": payload["email"], "password": PASSWORD})
    assert pending.status_code == 401

    admin = await auth_headers("admin@licita.test")
    user_id = registered.json()["id"]
    approved = await client.patch(f"/v1/users/{user_id}/status", json={"status": "ACTIVE"}, headers=admin)
    assert approved.json()["status"] == "ACTIVE"

    supplier = await auth_headers(payload["email"])
    me = (await client.get("/v1/auth/me", headers=supplier)).json()
    assert me["supplier_id"] is not None
    assert "SUBMIT_PROPOSAL" in me["permissions"]


async def test_anonymous_registration_is_limited_per_ip(client, container):
    container.settings.RATE_LIMIT_MAX_REQUESTS = 1
    base = {"password": PASSWORD, "role": "CITIZEN"}

    first = await client.post("/v1/auth/register", json=dict(base, email="um@licita.test"))
    second = await client.post("/v1/auth/register", json=dict(base, email="dois@licita.test"))

    assert first.status_code == 201
    assert second.status_code == 429
    assert await container.redis.exists("rate_limit:register:ip:127.0.0.1")


async def test_status_change_requires_admin(client, auth_headers, seed):
    owner = await auth_headers("owner@licita.test")

    response = await client.patch(f"/v1/users/{seed.supplier.user_id}/status", json={"status": "SUSPENDED"}, headers=owner)

    assert response.status_code == 403
