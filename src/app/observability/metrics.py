"""Registro de métricas via structured logging.

As métricas são logs estruturados agregáveis depois (Cloud Logging,
BigQuery). Nenhuma métrica carrega token ou credencial.

Métricas suportadas:
- Latência: tempo de chamadas externas por componente/operação
- Entrega: resultado de cada envio ao sink
- Reconciliação: fase final de cada passe
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def record_latency(
    component: str,
    operation: str,
    latency_ms: float,
    correlation_id: str | None = None,
) -> None:
    """Registra latência de operação.

    Args:
        component: Nome do componente (ex: "google_watch_client")
        operation: Nome da operação (ex: "create_subscription")
        latency_ms: Latência em milissegundos
        correlation_id: ID de correlação para rastreamento
    """
    logger.info(
        "metric_latency",
        extra={
            "metric_type": "latency",
            "component": component,
            "operation": operation,
            "latency_ms": round(latency_ms, 2),
            "correlation_id": correlation_id,
        },
    )


def record_delivery(
    provider: str,
    result: str,
    latency_ms: float,
    correlation_id: str | None = None,
    status_code: int | None = None,
) -> None:
    """Registra resultado de entrega de evento ao sink (ok|failed)."""
    extra: dict[str, object] = {
        "metric_type": "delivery",
        "component": "event_sender",
        "provider": provider,
        "result": result,
        "latency_ms": round(latency_ms, 2),
        "correlation_id": correlation_id,
    }
    if status_code is not None:
        extra["status_code"] = status_code
    logger.info("metric_delivery", extra=extra)


def record_reconcile(
    provider: str,
    phase: str,
    ready: str,
    correlation_id: str | None = None,
) -> None:
    """Registra fase final e readiness de um passe de reconciliação."""
    logger.info(
        "metric_reconcile",
        extra={
            "metric_type": "reconcile",
            "component": "reconciler",
            "provider": provider,
            "phase": phase,
            "ready": ready,
            "correlation_id": correlation_id,
        },
    )
