"""Use case de reconciliacao das Sources (Calendar, Drive, Sheets)."""

from ._results import PassContext, ReconcileResult, StepResult
from .engine import ReconcileSourceUseCase
from .strategies import (
    ProviderStrategy,
    SubscriptionParams,
    build_strategies,
    calendar_params,
    drive_params,
    sheets_params,
)

__all__ = [
    "PassContext",
    "ProviderStrategy",
    "ReconcileResult",
    "ReconcileSourceUseCase",
    "StepResult",
    "SubscriptionParams",
    "build_strategies",
    "calendar_params",
    "drive_params",
    "sheets_params",
]
