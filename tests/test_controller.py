import asyncio
import json
import logging

import pytest

from fakes import ENDED, IN_CALL, MORE, SAVE, TOAST, WAITING, FakePage, caption, until
from meetscribe.bot.controller import SessionController
from meetscribe.bot.errors import AdmissionTimeout, JoinFailed
from meetscribe.bot.state import BotState
from meetscribe.bot.ui import enable_captions
from meetscribe.captions.watcher import CAPTIONS_CHANGED_BINDING
from meetscribe.config import Settings

MEETING_URL = "https://us05web.zoom.us/j/8123456789?pwd=abc"


def fast_settings(**overrides):
    values = dict(
        PREJOIN_SETTLE_SEC=0,
        JOIN_DETECT_TIMEOUT_SEC=1.0,
        WAITING_ROOM_TIMEOUT_SEC=1.0,
        CAPTION_POLL_INTERVAL_SEC=3600.0,
        CAPTION_MENU_TIMEOUT_SEC=0.05,
        CAPTION_TOAST_TIMEOUT_SEC=0.05,
        CAPTION_SAVE_TIMEOUT_SEC=0.05,
        TRANSCRIPT_SAVE_ENABLED=True,
        BOT_DISPLAY_NAME="note bot",
    )
    values.update(overrides)
    return Settings(**values)


def _controller(page, tmp_path, states=None, **kwargs):
    settings = kwargs.pop("settings", None) or fast_settings()
    return SessionController(
        MEETING_URL,
        str(tmp_path / "bot.jsonl"),
        bot_id="test-bot",
        settings=settings,
        page_factory=page.factory,
        on_state=states.append if states is not None else None,
        **kwargs,
    )


def _records(tmp_path):
    path = tmp_path / "bot.jsonl"
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


@pytest.mark.asyncio
async def test_admitted_directly_records_captions_until_call_ends(tmp_path):
    page = FakePage()
    page.roster_rows = [{"name": "Jane Doe", "avatar_tag": "DIV", "avatar_src": "", "avatar_text": "JD"}]
    page.fire(IN_CALL, MORE, TOAST)
    states = []
    controller = _controller(page, tmp_path, states)

    task = asyncio.create_task(controller.run())
    await until(lambda: controller.ctx.watcher is not None and controller.ctx.watcher.running)

    changed = page.bindings[CAPTIONS_CHANGED_BINDING]
    page.caption_items = [caption("c1", "hello", icon_text="JD")]
    await changed()
    page.caption_items = [caption("c1", "hello everyone", icon_text="JD")]
    await changed()
    await changed()
    page.caption_items = [caption("c1", "hello everyone", icon_text="JD"), caption("c2", "hi", icon_text="QX")]
    await changed()

    page.fire(ENDED)
    state = await asyncio.wait_for(task, timeout=2)

    assert state is BotState.ENDED
    assert controller.history == [BotState.JOINING, BotState.IN_CALL, BotState.ENDED]
    assert BotState.WAITING_ROOM not in states
    assert controller.failure is None
    assert page.closed
    assert page.visited == ["https://us05web.zoom.us/wc/join/8123456789?pwd=abc&prefer=1&browser=1"]
    assert page.filled["role:textbox:your name"] == "note bot"
    assert page.keyboard.pressed == ["Enter"]
    assert [(r["speaker"], r["text"]) for r in _records(tmp_path)] == [
        ("Jane Doe", "hello"),
        ("Jane Doe", "everyone"),
        ("QX", "hi"),
    ]


@pytest.mark.asyncio
async def test_waiting_room_then_admitted(tmp_path):
    page = FakePage()
    page.fire(WAITING, MORE, TOAST)
    controller = _controller(page, tmp_path)

    task = asyncio.create_task(controller.run())
    await until(lambda: controller.state is BotState.WAITING_ROOM)
    page.fire(IN_CALL)
    await until(lambda: controller.state is BotState.IN_CALL)
    page.fire(ENDED)

    assert await asyncio.wait_for(task, timeout=2) is BotState.ENDED
    assert controller.history == [BotState.JOINING, BotState.WAITING_ROOM, BotState.IN_CALL, BotState.ENDED]


@pytest.mark.asyncio
async def test_waiting_room_deadline_ends_without_admission(tmp_path, caplog):
    page = FakePage()
    page.fire(WAITING)
    controller = _controller(page, tmp_path, waiting_room_timeout=0.05)

    with caplog.at_level(logging.WARNING):
        state = await asyncio.wait_for(controller.run(), timeout=2)

    assert state is BotState.ENDED
    assert BotState.IN_CALL not in controller.history
    assert isinstance(controller.failure, AdmissionTimeout)
    assert "host never admitted" in caplog.text
    assert page.closed


@pytest.mark.asyncio
async def test_no_join_signal_is_a_join_failure(tmp_path):
    page = FakePage()
    controller = _controller(page, tmp_path, settings=fast_settings(JOIN_DETECT_TIMEOUT_SEC=0.05))

    state = await asyncio.wait_for(controller.run(), timeout=2)

    assert state is BotState.ENDED
    assert isinstance(controller.failure, JoinFailed)
    assert controller.history == [BotState.JOINING, BotState.ENDED]


@pytest.mark.asyncio
async def test_caption_enable_failure_does_not_abort_session(tmp_path):
    page = FakePage()
    # no "More" button ever shows up
    page.fire(IN_CALL)
    controller = _controller(page, tmp_path)

    task = asyncio.create_task(controller.run())
    await until(lambda: CAPTIONS_CHANGED_BINDING in page.bindings)
    page.fire(ENDED)

    assert await asyncio.wait_for(task, timeout=2) is BotState.ENDED


@pytest.mark.asyncio
async def test_shutdown_request_ends_long_call_wait(tmp_path):
    page = FakePage()
    page.fire(IN_CALL, MORE, TOAST)
    controller = _controller(page, tmp_path)

    task = asyncio.create_task(controller.run())
    await until(lambda: CAPTIONS_CHANGED_BINDING in page.bindings)
    controller.request_shutdown()

    assert await asyncio.wait_for(task, timeout=2) is BotState.ENDED
    assert controller.failure is None


@pytest.mark.asyncio
async def test_unexpected_error_keeps_last_state_and_releases_browser(tmp_path, caplog):
    page = FakePage()
    page.goto_error = RuntimeError("browser crashed")
    controller = _controller(page, tmp_path)

    with caplog.at_level(logging.ERROR):
        state = await controller.run()

    assert state is BotState.JOINING
    assert controller.history == [BotState.JOINING]
    assert page.closed
    assert "unexpected error" in caplog.text


@pytest.mark.asyncio
async def test_enable_captions_falls_back_to_save_when_no_toast():
    page = FakePage()
    page.fire(MORE, SAVE)

    assert await enable_captions(page, fast_settings()) is True
    assert page.actions == [
        ("dblclick", MORE),
        ("click", "label:Captions"),
        ("click", "label:Captions"),
        ("click", SAVE),
    ]


@pytest.mark.asyncio
async def test_enable_captions_skips_save_when_toast_seen():
    page = FakePage()
    page.fire(MORE, TOAST)

    assert await enable_captions(page, fast_settings()) is True
    assert ("click", SAVE) not in page.actions


@pytest.mark.asyncio
async def test_enable_captions_failure_is_swallowed(caplog):
    page = FakePage()

    with caplog.at_level(logging.WARNING):
        assert await enable_captions(page, fast_settings()) is False
    assert "could not enable captions" in caplog.text
