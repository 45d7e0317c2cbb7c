"""Application-level DTOs for the deficit report."""
from __future__ import annotations

from dataclasses import dataclass

from streamer_deficit.config import DEFAULT_LOG_WINDOW, DEFAULT_TIME_ADVANCE_SECONDS


@dataclass(slots=True, frozen=True)
class ReportRequest:
    block: int | None = None
    simulate: bool = False
    time_advance_seconds: int = DEFAULT_TIME_ADVANCE_SECONDS
    log_window: int = DEFAULT_LOG_WINDOW

    @property
    def historical(self) -> bool:
        return self.block is not None
