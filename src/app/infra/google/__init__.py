"""Integracoes com as APIs de watch do Google."""

from app.infra.google.watch_client import (
    CalendarWatchManager,
    DriveWatchManager,
    GoogleWatchManager,
    SheetsWatchManager,
)

__all__ = [
    "CalendarWatchManager",
    "DriveWatchManager",
    "GoogleWatchManager",
    "SheetsWatchManager",
]
