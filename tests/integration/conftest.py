import httpx
import pytest

from licita.main import create_app

PASSWORD = "correct-horse-battery"


@pytest.fixture
def app(container):
    return create_app(container)


@pytest.fixture
async def client(app, seed):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def auth_headers(client):
    """Логин через API; возвращает заголовок Authorization для пользователя."""
    async def login(email):
        response = await client.post("/v1/auth/login", json={"email": email, "password": PASSWORD})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return login
