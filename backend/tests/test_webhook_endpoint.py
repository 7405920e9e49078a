import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from elo_webhook import db
from elo_webhook.config import Settings
from elo_webhook.main import app
from elo_webhook.models import MatchRecord, PlayerRecord
from elo_webhook.routers.webhook import get_repository, get_settings

from fakes import InMemoryRepository, open_match

SECRET = "s3cret-value"


@pytest.fixture()
def webhook_client():
    """Yield a factory that wires the app to an in-memory record store."""

    def make(repo, *, secret=None):
        settings = Settings(
            record_store="notion",
            webhook_secret=secret,
            notion_token="token",
            players_db_id="players",
            matches_db_id="matches",
        )

        async def override_repository():
            yield repo

        app.dependency_overrides[get_settings] = lambda: settings
        app.dependency_overrides[get_repository] = override_repository
        return TestClient(app, raise_server_exceptions=False)

    yield make
    app.dependency_overrides.clear()


def _repo(*matches, players=None, **kwargs):
    return InMemoryRepository(
        matches or [open_match()], players or {"p1": 1000, "p2": 1000}, **kwargs
    )


def test_success_returns_old_and_new_ratings(webhook_client):
    repo = _repo()
    client = webhook_client(repo)

    response = client.post("/api/elo", json={"entity": {"id": "m1"}})

    assert response.status_code == 200
    assert response.json() == {
        "message": "ELO updated",
        "pageId": "m1",
        "playerA": {"old": 1000, "new": 1010},
        "playerB": {"old": 1000, "new": 990},
    }
    assert repo.matches["m1"].status == "Gewertet"


def test_replayed_event_is_informational_noop(webhook_client):
    repo = _repo()
    client = webhook_client(repo)
    client.post("/api/elo", json={"page_id": "m1"})
    writes = list(repo.writes)

    response = client.post("/api/elo", json={"page_id": "m1"})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Match not open, nothing to do"
    assert body["status"] == "Gewertet"
    assert "error" not in body
    assert repo.writes == writes
    assert repo.players["p1"].rating == 1010


def test_string_encoded_body_is_accepted(webhook_client):
    client = webhook_client(_repo())
    response = client.post(
        "/api/elo",
        content=json.dumps(json.dumps({"data": {"entity": {"id": "m1"}}})),
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 200


def test_missing_identifier_is_client_error(webhook_client):
    client = webhook_client(_repo())
    response = client.post("/api/elo", json={"data": {"object": "page"}})
    assert response.status_code == 400
    assert response.json()["error"] == "Missing page_id in payload"


def test_invalid_json_is_treated_as_missing_identifier(webhook_client):
    client = webhook_client(_repo())
    response = client.post(
        "/api/elo", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400


def test_wrong_method_is_rejected(webhook_client):
    client = webhook_client(_repo())
    response = client.put("/api/elo", json={"page_id": "m1"})
    assert response.status_code == 405
    assert "error" in response.json()


def test_manual_get_trigger_uses_query_string(webhook_client):
    repo = _repo()
    client = webhook_client(repo)

    response = client.get("/api/elo", params={"page_id": "m1"})

    assert response.status_code == 200
    assert response.json()["playerA"] == {"old": 1000, "new": 1010}


def test_manual_get_without_id_is_client_error(webhook_client):
    client = webhook_client(_repo())
    assert client.get("/api/elo").status_code == 400


def test_secret_is_required_when_configured(webhook_client):
    repo = _repo()
    client = webhook_client(repo, secret=SECRET)

    missing = client.post("/api/elo", json={"page_id": "m1"})
    wrong = client.post("/api/elo", json={"page_id": "m1"}, headers={"X-ELO-SECRET": "nope"})

    assert missing.status_code == 401
    assert wrong.status_code == 401
    assert wrong.json()["error"] == "unauthorized"
    assert repo.reads == []

    ok = client.post("/api/elo", json={"page_id": "m1"}, headers={"X-ELO-SECRET": SECRET})
    assert ok.status_code == 200


def test_missing_configuration_fails_before_processing(monkeypatch):
    app.dependency_overrides.clear()
    client = TestClient(app, raise_server_exceptions=False)

    response = client.post("/api/elo", json={"page_id": "m1"})

    assert response.status_code == 500
    assert response.json() == {
        "error": "Missing NOTION env vars",
        "code": "configuration_error",
    }


def test_invalid_player_links_are_client_error(webhook_client):
    repo = _repo(open_match(player_b_ids=("p2", "p3")))
    client = webhook_client(repo)

    response = client.post("/api/elo", json={"page_id": "m1"})

    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"
    assert repo.writes == []


def test_non_numeric_goals_are_client_error(webhook_client):
    repo = _repo(open_match(goals_a=None))
    client = webhook_client(repo)

    response = client.post("/api/elo", json={"page_id": "m1"})

    assert response.status_code == 400
    assert "must be numbers" in response.json()["error"]


def test_unknown_match_is_upstream_failure(webhook_client):
    client = webhook_client(_repo())
    response = client.post("/api/elo", json={"page_id": "missing"})
    assert response.status_code == 500
    assert response.json()["code"] == "record_not_found"


def test_partial_commit_is_distinguished(webhook_client):
    repo = _repo(fail_writes={"match:m1"})
    client = webhook_client(repo)

    response = client.post("/api/elo", json={"page_id": "m1"})

    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "partial_commit"
    assert sorted(body["committed"]) == ["player:p1", "player:p2"]
    assert body["failed"] == ["match:m1"]


def test_total_write_failure_is_plain_upstream_error(webhook_client):
    repo = _repo(fail_writes={"player:p1", "player:p2"})
    client = webhook_client(repo)

    response = client.post("/api/elo", json={"page_id": "m1"})

    assert response.status_code == 500
    assert response.json()["code"] == "upstream_error"


def test_unexpected_errors_return_generic_500(webhook_client):
    repo = _repo()

    async def explode(match_id):
        raise RuntimeError("boom")

    repo.get_match = explode
    client = webhook_client(repo)

    response = client.post("/api/elo", json={"page_id": "m1"})

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error", "code": "internal_server_error"}


def test_healthz():
    client = TestClient(app)
    assert client.get("/healthz").json() == {"status": "ok"}
    assert client.get("/api/healthz").json() == {"status": "ok"}


def test_sql_store_end_to_end(monkeypatch, tmp_path):
    app.dependency_overrides.clear()
    monkeypatch.setenv("ELO_RECORD_STORE", "sql")
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'elo.db'}")
    monkeypatch.setattr(db, "engine", None)
    monkeypatch.setattr(db, "AsyncSessionLocal", None)

    engine = db.get_engine()
    session_maker = db.get_sessionmaker()

    async def seed():
        async with engine.begin() as conn:
            await conn.run_sync(db.Base.metadata.create_all)
        async with session_maker() as session:
            session.add_all(
                [
                    PlayerRecord(id="p1", rating=1200),
                    PlayerRecord(id="p2", rating=1000),
                    MatchRecord(
                        id="m1",
                        legacy_status="Open",
                        player_a_ids=["p1"],
                        player_b_ids=["p2"],
                        goals_a=1,
                        goals_b=1,
                    ),
                ]
            )
            await session.commit()

    asyncio.run(seed())
    try:
        client = TestClient(app, raise_server_exceptions=False)
        response = client.post("/api/elo", json={"page": {"id": "m1"}})
        replay = client.post("/api/elo", json={"page": {"id": "m1"}})
    finally:
        asyncio.run(engine.dispose())

    assert response.status_code == 200
    assert response.json()["playerA"] == {"old": 1200, "new": 1195}
    assert response.json()["playerB"] == {"old": 1000, "new": 1005}
    assert replay.status_code == 200
    assert replay.json()["message"] == "Match not open, nothing to do"
