"""Helpers internos de parsing para respostas das APIs de watch do Google."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from app.domain.subscription import WebhookSubscription

if TYPE_CHECKING:
    from googleapiclient.errors import HttpError


def http_status(exc: HttpError) -> int | None:
    response = getattr(exc, "resp", None)
    return int(response.status) if response and getattr(response, "status", None) else None


def parse_expiration_ms(value: Any) -> datetime | None:
    """Converte `expiration` (ms desde epoch, string ou int) para datetime UTC."""
    if value is None or value == "":
        return None
    try:
        millis = int(value)
    except (TypeError, ValueError):
        return None
    if millis <= 0:
        return None
    return datetime.fromtimestamp(millis / 1000, tz=UTC)


def map_channel(payload: dict[str, Any], *, token: str, address: str) -> WebhookSubscription:
    """Mapeia o recurso `Channel` retornado pelo watch."""
    channel_id = str(payload.get("id") or "")
    if not channel_id:
        # Sem id nao ha como cancelar o canal depois
        raise ValueError("missing_channel_id")
    resource_id = payload.get("resourceId")
    return WebhookSubscription(
        id=channel_id,
        token=token,
        address=address,
        resource_id=str(resource_id) if resource_id else None,
        expiration=parse_expiration_ms(payload.get("expiration")),
    )


def channel_body(
    *,
    channel_id: str,
    token: str,
    address: str,
    ttl_seconds: int | None,
    use_params_ttl: bool,
) -> dict[str, Any]:
    """Monta o body do `Channel` para as chamadas de watch.

    Calendar aceita `params.ttl` em segundos; Drive aceita `expiration` em ms.
    """
    body: dict[str, Any] = {
        "id": channel_id,
        "type": "web_hook",
        "address": address,
        "token": token,
    }
    if ttl_seconds:
        if use_params_ttl:
            body["params"] = {"ttl": str(ttl_seconds)}
        else:
            now_ms = int(datetime.now(UTC).timestamp() * 1000)
            body["expiration"] = str(now_ms + ttl_seconds * 1000)
    return body
