import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient

from elo_webhook.exceptions import PartialCommitError
from elo_webhook.main import register_exception_handlers


def _app_raising(exc: Exception) -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/boom")
    def boom():
        raise exc

    return TestClient(app, raise_server_exceptions=False)


def test_unhandled_exception_logs_traceback(caplog):
    client = _app_raising(ValueError("boom"))
    with caplog.at_level(logging.ERROR):
        response = client.get("/boom")

    assert response.status_code == 500
    record = next((r for r in caplog.records if r.message == "Unhandled exception"), None)
    assert record is not None
    assert record.exc_info[0] is ValueError
    assert "ValueError: boom" in caplog.text


def test_partial_commit_is_logged_with_reconciliation_context(caplog):
    exc = PartialCommitError(
        "m1",
        committed=["player:p1", "player:p2"],
        failed=["match:m1"],
        ratings={"playerA": {"old": 1000, "new": 1010}},
    )
    client = _app_raising(exc)
    with caplog.at_level(logging.ERROR):
        response = client.get("/boom")

    assert response.status_code == 500
    assert response.json()["code"] == "partial_commit"
    record = next(r for r in caplog.records if r.message.startswith("Partial commit"))
    assert "match:m1" in record.message
    assert "1010" in record.message
