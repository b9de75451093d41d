"""Tests for the health and identity endpoints."""

from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import Session

from gigchat.core.auth import issue_token, resolve_token
from gigchat.core.errors import FetchError


def test_health_returns_ok(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert "app" in data


def test_me_requires_token(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    data = response.json()
    assert data["login_url"] == "/login"


def test_me_rejects_unknown_token(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401


def test_me_returns_profile(client, freelancer):
    response = client.get("/api/auth/me", headers=freelancer.headers)
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == freelancer.id
    assert data["name"] == "Fran Lopez"
    assert data["user_type"] == "freelancer"


def test_expired_token_is_rejected(client, freelancer):
    token = issue_token(freelancer.id, ttl=timedelta(seconds=-1))
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_token_store_failure(client, freelancer, monkeypatch):
    def unavailable(*args, **kwargs):
        raise OperationalError("SELECT authtoken", {}, Exception("unable to open database file"))

    monkeypatch.setattr(Session, "get", unavailable)

    with pytest.raises(FetchError):
        resolve_token(freelancer.token)

    response = client.get("/api/auth/me", headers=freelancer.headers)
    assert response.status_code == 502
    assert response.json()["detail"] == "Could not verify token"
