"""Formatter JSON compartilhado por controller e adapter."""

from __future__ import annotations

from pythonjsonlogger.json import JsonFormatter

REQUIRED_LOG_FIELDS = frozenset(
    {
        "levelname",
        "name",
        "message",
        "correlation_id",
        "service",
        "provider",
        "source_key",
    }
)

FIELD_RENAME_MAP = {
    "levelname": "level",
    "name": "logger",
}

_FIELD_ORDER = ("levelname", "name", "message", "service", "provider", "source_key")


def create_json_formatter() -> JsonFormatter:
    """Cria o formatter JSON.

    `timestamp` sai em ISO 8601 UTC. Exemplo:
        {"timestamp": "2026-10-17T10:30:00+00:00", "level": "INFO",
         "logger": "app.use_cases.reconcile.engine", "message": "reconcile_completed",
         "service": "gsuite_source_controller", "provider": "calendar",
         "source_key": "default/my-calendar", "correlation_id": "default/my-calendar"}
    """
    ordered = [*_FIELD_ORDER, *sorted(REQUIRED_LOG_FIELDS - set(_FIELD_ORDER))]
    return JsonFormatter(
        " ".join(f"%({field})s" for field in ordered),
        rename_fields=FIELD_RENAME_MAP,
        timestamp=True,
        json_ensure_ascii=False,
    )
