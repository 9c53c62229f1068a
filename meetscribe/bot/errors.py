"""Expected ways for a bot session to end early. Handled by the controller, never crash the process."""
from __future__ import annotations


class BotError(Exception):
    """Base for known session failures."""


class JoinFailed(BotError):
    """Neither the waiting-room banner nor the in-call controls appeared after joining."""

    def __init__(self, timeout_sec: float) -> None:
        super().__init__(f"no waiting room or in-call signal within {timeout_sec:g}s")
        self.timeout_sec = timeout_sec


class AdmissionTimeout(BotError):
    """Host never admitted the bot from the waiting room before the deadline."""

    def __init__(self, timeout_sec: float) -> None:
        super().__init__(f"not admitted from waiting room within {timeout_sec:g}s")
        self.timeout_sec = timeout_sec
