"""Endpoints de health check do adapter."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Literal

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

router = APIRouter()


class HealthResponse(BaseModel):
    """Resposta do health check."""

    status: str
    service: str
    timestamp: str
    version: str = "1.0.0"


@dataclass(frozen=True, slots=True)
class DependencyCheck:
    """Resultado de checagem de dependência."""

    status: Literal["ok", "degraded", "failed"]
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {"status": self.status, "error": self.error}


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Liveness probe: verifica se o serviço está rodando."""
    return HealthResponse(
        status="healthy",
        service=getattr(request.app.state, "service_name", "gsuite-source"),
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get("/ready")
async def readiness_check(request: Request) -> JSONResponse:
    """Readiness probe: adapter montado e cliente de entrega aberto."""
    adapter_check = _check_adapter(getattr(request.app.state, "webhook_adapter", None))
    client_check = _check_http_client(getattr(request.app.state, "http_client", None))
    ready = adapter_check.status == "ok" and client_check.status == "ok"
    payload = {
        "status": "ready" if ready else "not_ready",
        "checks": {
            "adapter": adapter_check.as_dict(),
            "sink_client": client_check.as_dict(),
        },
        "timestamp": datetime.now(UTC).isoformat(),
    }
    return JSONResponse(content=payload, status_code=200 if ready else 503)


def _check_adapter(adapter: Any | None) -> DependencyCheck:
    if adapter is None:
        return DependencyCheck(status="failed", error="not_configured")
    return DependencyCheck(status="ok")


def _check_http_client(http_client: Any | None) -> DependencyCheck:
    if http_client is None:
        return DependencyCheck(status="failed", error="not_configured")
    if getattr(http_client, "is_closed", False):
        return DependencyCheck(status="failed", error="closed")
    return DependencyCheck(status="ok")
