"""
Start bot sessions for invited meetings.

- inprocess: SessionController runs as an asyncio task in the API process
  (set HEADLESS=false to watch the browser while debugging).
- docker: one container per bot (`<BOT_DOCKER_IMAGE> <meeting_url> <bot_id>`),
  transcripts directory mounted at /app/transcripts. Container output is relayed
  to our log; the state name it prints last is recorded in the bot registry.

Both return immediately; the caller never waits for the call to finish.
"""
from __future__ import annotations

import asyncio
import logging
import os
from typing import Optional

from meetscribe.bot.controller import SessionController
from meetscribe.bot.state import BotState
from meetscribe.config import get_settings
from meetscribe.session_store import update_bot

logger = logging.getLogger(__name__)

CONTAINER_TRANSCRIPT_DIR = "/app/transcripts"
_STATE_NAMES = {s.value for s in BotState}

# bot_id -> running task / controller; strong refs so tasks are not garbage collected
_tasks: dict[str, asyncio.Task] = {}
_controllers: dict[str, SessionController] = {}


def _track(bot_id: str, task: asyncio.Task) -> None:
    _tasks[bot_id] = task

    def _done(t: asyncio.Task) -> None:
        _tasks.pop(bot_id, None)
        _controllers.pop(bot_id, None)

    task.add_done_callback(_done)


def start_inprocess(
    bot_id: str,
    meeting_url: str,
    transcript_path: str,
    headless: Optional[bool] = None,
) -> asyncio.Task:
    controller = SessionController(
        meeting_url,
        transcript_path,
        bot_id=bot_id,
        headless=headless,
        on_state=lambda state: update_bot(bot_id, state=state.value),
    )
    _controllers[bot_id] = controller
    task = asyncio.create_task(controller.run(), name=f"bot-{bot_id}")
    _track(bot_id, task)
    return task


def container_command(bot_id: str, meeting_url: str, transcript_dir: str, image: str) -> list[str]:
    return [
        "docker",
        "run",
        "--rm",
        "--name",
        f"meetscribe-bot-{bot_id}",
        "-v",
        f"{os.path.abspath(transcript_dir)}:{CONTAINER_TRANSCRIPT_DIR}",
        image,
        meeting_url,
        bot_id,
    ]


async def _relay(stream: Optional[asyncio.StreamReader], bot_id: str, name: str, level: int) -> None:
    if stream is None:
        return
    while True:
        raw = await stream.readline()
        if not raw:
            return
        line = raw.decode("utf-8", errors="replace").rstrip()
        if not line:
            continue
        logger.log(level, "[bot:%s] %s: %s", bot_id, name, line)
        if name == "stdout" and line in _STATE_NAMES:
            update_bot(bot_id, state=line)


async def _supervise(proc: asyncio.subprocess.Process, bot_id: str) -> int:
    await asyncio.gather(
        _relay(proc.stdout, bot_id, "stdout", logging.INFO),
        _relay(proc.stderr, bot_id, "stderr", logging.WARNING),
    )
    code = await proc.wait()
    logger.info("[bot:%s] process exited with code %s", bot_id, code)
    update_bot(bot_id, exit_code=code)
    return code


async def start_container(bot_id: str, meeting_url: str, transcript_dir: str, image: str) -> asyncio.Task:
    cmd = container_command(bot_id, meeting_url, transcript_dir, image)
    proc = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    task = asyncio.create_task(_supervise(proc, bot_id), name=f"bot-{bot_id}")
    _track(bot_id, task)
    return task


async def launch_bot(bot_id: str, meeting_url: str, transcript_path: str) -> asyncio.Task:
    """Start a session per BOT_LAUNCH_MODE and return its supervising task."""
    settings = get_settings()
    if settings.BOT_LAUNCH_MODE == "inprocess":
        return start_inprocess(bot_id, meeting_url, transcript_path, headless=settings.HEADLESS)
    return await start_container(
        bot_id, meeting_url, os.path.dirname(transcript_path) or ".", settings.BOT_DOCKER_IMAGE
    )


async def shutdown_all(timeout: float = 30.0) -> None:
    """Ask in-process bots to leave their calls and wait for them; containers keep running."""
    for controller in list(_controllers.values()):
        controller.request_shutdown()
    tasks = [t for bot_id, t in _tasks.items() if bot_id in _controllers]
    if not tasks:
        return
    done, pending = await asyncio.wait(tasks, timeout=timeout)
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)
