"""Application configuration. Loads from env vars."""
from __future__ import annotations

import logging
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings. Override via environment variables."""

    # Transcript storage: one <bot_id>.jsonl per session, append-only.
    TRANSCRIPT_SAVE_ENABLED: bool = True
    TRANSCRIPT_DIR: str = "./transcripts"
    # Reconciler: same-speaker chunks closer than this (sec) merge into one utterance
    MERGE_GAP_SEC: float = 2.0

    # Admission
    WAITING_ROOM_TIMEOUT_SEC: float = 300.0  # 5 minutes
    JOIN_DETECT_TIMEOUT_SEC: float = 15.0  # waiting banner or in-call control must show within this
    PREJOIN_SETTLE_SEC: float = 4.0  # pre-join buttons render late
    BOT_DISPLAY_NAME: str = "🤖FRIENDLY BOT DO NOT BE ALARMED"

    # Captions
    CAPTION_POLL_INTERVAL_SEC: float = 0.5  # backstop for missed/coalesced mutations
    CAPTION_TOAST_TIMEOUT_SEC: float = 3.0
    CAPTION_MENU_TIMEOUT_SEC: float = 15.0
    CAPTION_SAVE_TIMEOUT_SEC: float = 10.0

    # Browser
    HEADLESS: bool = True
    DEBUG_VIDEO_DIR: str = ""  # empty = no recording (headless only)

    # Job submission: run bot inside this process or in its own container
    BOT_LAUNCH_MODE: Literal["inprocess", "docker"] = "docker"
    BOT_DOCKER_IMAGE: str = "meetscribe-bot"

    # Logging: level (DEBUG, INFO, WARNING, ERROR); file path = also log to file (empty = console only).
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    class Config:
        env_file = ".env"
        extra = "ignore"


def get_settings() -> Settings:
    return Settings()


_logging_configured = False


def configure_logging() -> None:
    """Apply LOG_LEVEL / LOG_FILE to the root logger once per process."""
    global _logging_configured
    if _logging_configured:
        return
    settings = get_settings()
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.LOG_FILE:
        handlers.append(logging.FileHandler(settings.LOG_FILE, encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )
    _logging_configured = True
