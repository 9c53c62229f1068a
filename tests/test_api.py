import json

import pytest
from fastapi.testclient import TestClient

from meetscribe import main
from meetscribe.session_store import delete_bot


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("TRANSCRIPT_DIR", str(tmp_path))
    monkeypatch.setenv("BOT_LAUNCH_MODE", "docker")
    launched = []

    async def fake_launch(bot_id, meeting_url, path):
        launched.append((bot_id, meeting_url, path))

    monkeypatch.setattr(main, "launch_bot", fake_launch)
    with TestClient(main.app) as c:
        c.launched = launched
        yield c
    for bot_id, _, _ in launched:
        delete_bot(bot_id)


def _write(tmp_path, bot_id, rows, tail=""):
    lines = "".join(json.dumps(r) + "\n" for r in rows)
    (tmp_path / f"{bot_id}.jsonl").write_text(lines + tail, encoding="utf-8")


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_invite_requires_meeting_url(client):
    r = client.post("/api/invite_bot", json={})
    assert r.status_code == 400
    assert client.launched == []


def test_invite_rejects_non_zoom_url(client):
    r = client.post("/api/invite_bot", json={"meeting_url": "https://meet.example.com/abc"})
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid Zoom meeting URL"


def test_invite_returns_bot_id_immediately(client, tmp_path):
    r = client.post("/api/invite_bot", json={"meetingUrl": "https://zoom.us/j/123456789?pwd=x"})
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "bot_invited"
    [(bot_id, url, path)] = client.launched
    assert body["bot_id"] == bot_id
    assert url == "https://zoom.us/j/123456789?pwd=x"
    assert path == str(tmp_path / f"{bot_id}.jsonl")

    status = client.get(f"/api/bots/{bot_id}").json()
    assert status["state"] == "joining"
    assert status["launch_mode"] == "docker"


def test_unknown_bot_status_is_404(client):
    assert client.get("/api/bots/nope").status_code == 404


def test_transcript_without_file_is_empty_list(client):
    r = client.get("/api/transcript/not-started-yet")
    assert r.status_code == 200
    assert r.json() == []


def test_transcript_is_merged_and_tolerates_partial_tail(client, tmp_path):
    _write(
        tmp_path,
        "bot1",
        [
            {"speaker": "Ann", "text": "hello", "time": 10.0},
            {"speaker": "Ann", "text": "there", "time": 11.5},
            {"speaker": "Bob", "text": "hi", "time": 12.0},
            {"speaker": "Ann", "text": "later", "time": 20.0},
        ],
        tail='{"speaker": "Bob", "te',
    )
    r = client.get("/api/transcript/bot1")
    assert r.status_code == 200
    assert r.json() == [
        {"speaker": "Ann", "text": "hello there", "time": 11.5},
        {"speaker": "Bob", "text": "hi", "time": 12.0},
        {"speaker": "Ann", "text": "later", "time": 20.0},
    ]


def test_malformed_transcript_fails_whole_request(client, tmp_path):
    (tmp_path / "bot2.jsonl").write_text('{"speaker": "Ann", "text": "ok", "time": 1}\ngarbage\n', encoding="utf-8")
    r = client.get("/api/transcript/bot2")
    assert r.status_code == 500
    assert r.json()["detail"] == "Failed to read transcript file"


def test_bot_id_with_path_characters_is_rejected(client):
    assert client.get("/api/transcript/bad.id").status_code == 400


def test_failed_launch_still_returns_bot_id(client, monkeypatch):
    async def broken_launch(bot_id, meeting_url, path):
        client.launched.append((bot_id, meeting_url, path))
        raise FileNotFoundError("docker: command not found")

    monkeypatch.setattr(main, "launch_bot", broken_launch)
    r = client.post("/api/invite_bot", json={"meeting_url": "https://zoom.us/j/123456789"})
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "launch_failed"
    [(bot_id, _, _)] = client.launched
    assert body["bot_id"] == bot_id
    assert client.get(f"/api/bots/{bot_id}").json()["state"] == "ended"
    assert client.get(f"/api/transcript/{bot_id}").json() == []
