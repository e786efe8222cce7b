"""Endpoint de recebimento das notificações push do Google.

Endpoints:
- POST /: notificação do watch channel (headers X-Goog-*)

Qualquer outro método cai na mesma validação e recebe 405. Uma
notificação válida sempre recebe 200, mesmo se a entrega ao sink falhar,
para o provider não desativar o canal.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Request, Response

from api.connectors.google.webhook import SyncMessageError, WebhookRequestError
from app.observability import get_correlation_id, reset_correlation_id, set_correlation_id

if TYPE_CHECKING:
    from api.routes.webhook.runtime_tasks import DeliveryTaskPool
    from app.coordinators.adapter import WebhookAdapter

logger = logging.getLogger(__name__)

router = APIRouter()

_ACCEPTED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def _get_adapter(request: Request) -> WebhookAdapter:
    return request.app.state.webhook_adapter


def _get_delivery_pool(request: Request) -> DeliveryTaskPool:
    return request.app.state.delivery_tasks


@router.api_route("/", methods=_ACCEPTED_METHODS, response_model=None)
async def receive_notification(request: Request) -> Response | dict[str, Any]:
    """Valida, normaliza e entrega a notificação.

    Returns:
        Confirmação de recebimento ou Response de erro.
    """
    token = set_correlation_id(request.headers.get("x-correlation-id"))
    try:
        adapter = _get_adapter(request)
        # Corpo sempre consumido por inteiro, inclusive em requests rejeitados
        raw_body = await request.body()
        try:
            notification = await adapter.parse_request(
                request.method,
                dict(request.headers),
                raw_body,
            )
        except SyncMessageError:
            return {"status": "sync", "correlation_id": get_correlation_id()}
        except WebhookRequestError as exc:
            return Response(
                content=str(exc.reason),
                media_type="text/plain",
                status_code=exc.status_code,
            )

        if request.app.state.processing_mode == "async":
            _get_delivery_pool(request).schedule(
                adapter.handle_event(notification),
                correlation_id=get_correlation_id(),
                channel_id=notification.channel_id,
                resource_state=notification.resource_state,
            )
            return {"status": "accepted", "correlation_id": get_correlation_id()}

        delivered = await adapter.handle_event(notification)
        return {
            "status": "delivered" if delivered else "received",
            "correlation_id": get_correlation_id(),
        }
    finally:
        reset_correlation_id(token)

