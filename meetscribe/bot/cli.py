"""
Session process entry point (one bot per process, e.g. one per container).

    python -m meetscribe.bot <meeting_url> [bot_id] [--headed] [--transcript-dir DIR]

Prints the final state name on stdout as the last line. Exit status 0 when
the call ended normally, 1 otherwise (admission timeout, join failure,
unexpected error).
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from typing import Optional

from meetscribe.bot.browser import is_zoom_meeting_url
from meetscribe.bot.controller import SessionController
from meetscribe.bot.state import BotState
from meetscribe.config import configure_logging, get_settings
from meetscribe.session_store import generate_bot_id
from meetscribe.transcript.writer import transcript_path

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="meetscribe-bot", description="Join a Zoom call and record its captions.")
    parser.add_argument("meeting_url", help="Zoom join URL (https://zoom.us/j/<id>?pwd=...)")
    parser.add_argument("bot_id", nargs="?", default=None, help="session id; names the transcript file")
    parser.add_argument("--headed", action="store_true", help="show the browser window")
    parser.add_argument("--transcript-dir", default=None, help="override TRANSCRIPT_DIR")
    parser.add_argument(
        "--waiting-room-timeout",
        type=float,
        default=None,
        help="seconds to wait for the host to admit the bot (default WAITING_ROOM_TIMEOUT_SEC)",
    )
    return parser


async def _run(controller: SessionController) -> BotState:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, controller.request_shutdown)
        except (NotImplementedError, RuntimeError):
            pass
    return await controller.run()


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()
    settings = get_settings()

    if not is_zoom_meeting_url(args.meeting_url):
        logger.warning("%s does not look like a Zoom meeting URL; trying anyway", args.meeting_url)

    bot_id = args.bot_id or generate_bot_id()
    path = transcript_path(bot_id, args.transcript_dir)
    logger.info("[bot:%s] starting. transcript will be saved to %s", bot_id, path)

    controller = SessionController(
        args.meeting_url,
        path,
        bot_id=bot_id,
        headless=False if args.headed else settings.HEADLESS,
        waiting_room_timeout=args.waiting_room_timeout,
        settings=settings,
    )
    state = asyncio.run(_run(controller))
    print(state.value, flush=True)
    return 0 if state is BotState.ENDED and controller.failure is None else 1


if __name__ == "__main__":
    sys.exit(main())
