"""Envio HTTP binario do evento canonico ao sink.

O `httpx.AsyncClient` e criado uma unica vez no startup do adapter e
recebido por referencia; o sender nao gerencia ciclo de vida do cliente.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx

from app.domain.event import SPEC_VERSION
from app.observability import get_correlation_id, record_delivery
from utils.errors import DeliveryError

if TYPE_CHECKING:
    from app.domain.event import CanonicalEvent

logger = logging.getLogger(__name__)

_DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass
class HttpSenderConfig:
    """Configuração do cliente de entrega."""

    timeout_seconds: float = 10.0
    verify_ssl: bool = True
    default_headers: dict[str, str] = field(default_factory=dict)


def create_http_client(config: HttpSenderConfig | None = None) -> httpx.AsyncClient:
    """Constroi o cliente compartilhado (chamado no lifespan)."""
    cfg = config or HttpSenderConfig()
    return httpx.AsyncClient(
        timeout=cfg.timeout_seconds,
        verify=cfg.verify_ssl,
        headers=cfg.default_headers,
    )


def build_binary_headers(event: CanonicalEvent) -> dict[str, str]:
    """Headers `ce-*` do modo binario; atributos vao nos headers, payload no corpo."""
    headers = {
        "ce-specversion": SPEC_VERSION,
        "ce-id": event.id,
        "ce-type": event.type,
        "ce-source": event.source,
        "ce-time": event.time.isoformat().replace("+00:00", "Z"),
        "content-type": event.content_type or _DEFAULT_CONTENT_TYPE,
    }
    if event.subject:
        headers["ce-subject"] = event.subject
    for name, value in event.extensions.items():
        headers[f"ce-{name.lower()}"] = value
    return headers


class HttpEventSender:
    """Entrega eventos canonicos ao sink via HTTP POST."""

    __slots__ = ("_client", "_provider", "_sink_uri")

    def __init__(self, client: httpx.AsyncClient, *, sink_uri: str, provider: str) -> None:
        self._client = client
        self._sink_uri = sink_uri
        self._provider = provider

    @property
    def sink_uri(self) -> str:
        return self._sink_uri

    async def send(self, event: CanonicalEvent) -> None:
        loop = asyncio.get_running_loop()
        started = loop.time()
        status_code: int | None = None
        result = "failed"
        try:
            response = await self._client.post(
                self._sink_uri,
                content=event.data,
                headers=build_binary_headers(event),
            )
            status_code = response.status_code
            if status_code >= 300:
                raise DeliveryError("sink_rejected_event", status_code=status_code)
            result = "ok"
        except httpx.TimeoutException as exc:
            raise DeliveryError("sink_timeout") from exc
        except httpx.HTTPError as exc:
            raise DeliveryError(f"sink_unreachable: {type(exc).__name__}") from exc
        finally:
            record_delivery(
                provider=self._provider,
                result=result,
                latency_ms=(loop.time() - started) * 1000,
                correlation_id=get_correlation_id(),
                status_code=status_code,
            )
