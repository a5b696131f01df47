"""Tests for chat-bot login and account endpoints."""

import json
from urllib.parse import urlencode

import pytest
from sqlalchemy import select

from app.core.config import settings
from app.models.user import User
from app.services.auth import create_access_token, decode_access_token
from app.services.telegram import sign_init_data, validate_init_data

BOT_TOKEN = "123456:TEST-TOKEN"


def make_init_data(user: dict, bot_token: str = BOT_TOKEN) -> str:
    fields = {"auth_date": "1760000000", "query_id": "AAH", "user": json.dumps(user)}
    fields["hash"] = sign_init_data(fields, bot_token)
    return urlencode(fields)


def test_validate_init_data_accepts_signed_payload():
    init_data = make_init_data({"id": 42, "first_name": "Ivan"})
    assert validate_init_data(init_data, BOT_TOKEN) == {"id": 42, "first_name": "Ivan"}


def test_validate_init_data_rejects_tampering():
    init_data = make_init_data({"id": 42, "first_name": "Ivan"})
    assert validate_init_data(init_data.replace("Ivan", "Olga"), BOT_TOKEN) is None
    assert validate_init_data(init_data, "other:token") is None
    assert validate_init_data("user=%7B%22id%22%3A1%7D", BOT_TOKEN) is None
    assert validate_init_data("", BOT_TOKEN) is None


def test_access_token_round_trip():
    token = create_access_token({"sub": "abc"})
    assert decode_access_token(token)["sub"] == "abc"
    assert decode_access_token(token + "x") is None


@pytest.mark.asyncio
async def test_login_registers_client(client, db, monkeypatch):
    monkeypatch.setattr(settings, "BOT_TOKEN", BOT_TOKEN)
    init_data = make_init_data({"id": 42, "first_name": "Ivan", "username": "ivan"})

    resp = await client.post("/api/v1/auth/login", json={"init_data": init_data})

    assert resp.status_code == 200
    data = resp.json()
    assert data["token_type"] == "bearer"
    assert data["user"]["telegram_id"] == "42"
    assert data["user"]["role"] == "client"
    assert data["user"]["master_profile"] is None

    result = await db.execute(select(User).where(User.telegram_id == "42"))
    assert result.scalar_one().first_name == "Ivan"


@pytest.mark.asyncio
async def test_login_refreshes_names(client, db, make_user, monkeypatch):
    monkeypatch.setattr(settings, "BOT_TOKEN", BOT_TOKEN)
    user = await make_user("42", first_name="Old")

    resp = await client.post("/api/v1/auth/login", json={
        "init_data": make_init_data({"id": 42, "first_name": "New"}),
    })

    assert resp.status_code == 200
    assert resp.json()["user"]["id"] == str(user.id)
    assert resp.json()["user"]["first_name"] == "New"


@pytest.mark.asyncio
async def test_login_with_bad_signature(client, monkeypatch):
    monkeypatch.setattr(settings, "BOT_TOKEN", BOT_TOKEN)
    init_data = make_init_data({"id": 42}, bot_token="999:OTHER")

    resp = await client.post("/api/v1/auth/login", json={"init_data": init_data})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_dev_login_outside_production(client, monkeypatch):
    resp = await client.post("/api/v1/auth/login", json={})
    assert resp.status_code == 200
    assert resp.json()["user"]["telegram_id"] == settings.DEV_TELEGRAM_ID

    monkeypatch.setattr(settings, "APP_ENV", "production")
    resp = await client.post("/api/v1/auth/login", json={})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_me_and_become_master(client, make_user, headers):
    user = await make_user("42", first_name="Ivan")

    resp = await client.get("/api/v1/auth/me", headers=headers(user))
    assert resp.status_code == 200
    assert resp.json()["role"] == "client"

    resp = await client.post("/api/v1/auth/become-master", headers=headers(user))
    assert resp.status_code == 200
    profile = resp.json()["master_profile"]
    assert resp.json()["role"] == "master"
    assert profile["display_name"] == "Ivan"
    assert profile["working_dates"] == {}
    assert profile["gap_minutes"] == settings.DEFAULT_GAP_MINUTES

    resp = await client.get("/api/v1/auth/me", headers=headers(user))
    assert resp.json()["master_profile"]["user_id"] == str(user.id)


@pytest.mark.asyncio
async def test_me_requires_token(client):
    resp = await client.get("/api/v1/auth/me")
    assert resp.status_code == 401
