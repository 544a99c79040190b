"""Fast smoke checks for critical workflows."""

import pytest
from fastapi.testclient import TestClient

from conftest import API, bearer


@pytest.mark.smoke
def test_smoke_health_endpoint(client: TestClient) -> None:
    response = client.get(f"{API}/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.smoke
def test_smoke_register_login_refresh_logout(client: TestClient) -> None:
    registered = client.post(
        f"{API}/auth/register",
        json={"username": "Shopper", "email": "shopper@example.com", "password": "shopperpass"},
    )
    assert registered.status_code == 201

    tokens = client.post(
        f"{API}/auth/login",
        json={"email": "shopper@example.com", "password": "shopperpass"},
    ).json()
    client.cookies.clear()
    assert client.get(f"{API}/auth/profile", headers=bearer(tokens["accessToken"])).status_code == 200

    rotated = client.post(f"{API}/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert rotated.status_code == 200
    client.cookies.clear()

    logout = client.post(f"{API}/auth/logout", json={"refreshToken": rotated.json()["refreshToken"]})
    assert logout.status_code == 200
    again = client.post(f"{API}/auth/refresh", json={"refreshToken": rotated.json()["refreshToken"]})
    assert again.status_code == 401
