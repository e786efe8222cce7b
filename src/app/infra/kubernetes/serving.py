"""Provisionador do Knative Service que hospeda o adapter."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from kubernetes.client import ApiException

from app.infra.kubernetes.client import TRANSPORT_ERRORS
from app.infra.kubernetes.resources import (
    ADAPTER_LABEL,
    SERVING_GROUP,
    SERVING_PLURAL,
    SERVING_VERSION,
    is_controlled_by,
)
from app.observability import get_correlation_id
from utils.errors import ExternalAPIError

if TYPE_CHECKING:
    from kubernetes.client import CustomObjectsApi

logger = logging.getLogger(__name__)

_COMPONENT = "knative_serving_client"


class KnativeServingClient:
    """Lista e cria Knative Services via CustomObjectsApi."""

    __slots__ = ("_api", "_timeout")

    def __init__(self, api: CustomObjectsApi, *, timeout_seconds: float = 15.0) -> None:
        self._api = api
        self._timeout = timeout_seconds

    async def list_owned(self, namespace: str, owner_uid: str) -> list[dict[str, Any]]:
        try:
            response = await asyncio.to_thread(self._list_sync, namespace)
        except ApiException as exc:
            self._log_error(action="list", namespace=namespace, exc=exc)
            raise ExternalAPIError(f"falha ao listar services: {exc.reason}") from exc
        except TRANSPORT_ERRORS as exc:
            self._log_unreachable(action="list", namespace=namespace, exc=exc)
            raise ExternalAPIError("api indisponivel ao listar services") from exc
        items = response.get("items") or []
        return [item for item in items if is_controlled_by(item, owner_uid)]

    async def create(self, namespace: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            return await asyncio.to_thread(self._create_sync, namespace, body)
        except ApiException as exc:
            self._log_error(action="create", namespace=namespace, exc=exc)
            raise ExternalAPIError(f"falha ao criar service: {exc.reason}") from exc
        except TRANSPORT_ERRORS as exc:
            self._log_unreachable(action="create", namespace=namespace, exc=exc)
            raise ExternalAPIError("api indisponivel ao criar service") from exc

    def _list_sync(self, namespace: str) -> dict[str, Any]:
        return self._api.list_namespaced_custom_object(
            group=SERVING_GROUP,
            version=SERVING_VERSION,
            namespace=namespace,
            plural=SERVING_PLURAL,
            label_selector=ADAPTER_LABEL,
            _request_timeout=self._timeout,
        )

    def _create_sync(self, namespace: str, body: dict[str, Any]) -> dict[str, Any]:
        return self._api.create_namespaced_custom_object(
            group=SERVING_GROUP,
            version=SERVING_VERSION,
            namespace=namespace,
            plural=SERVING_PLURAL,
            body=body,
            _request_timeout=self._timeout,
        )

    def _log_error(self, *, action: str, namespace: str, exc: ApiException) -> None:
        logger.error(
            "knative_service_api_error",
            extra={
                "component": _COMPONENT,
                "action": action,
                "namespace": namespace,
                "status_code": exc.status,
                "correlation_id": get_correlation_id(),
            },
        )

    def _log_unreachable(self, *, action: str, namespace: str, exc: Exception) -> None:
        logger.error(
            "knative_service_api_unreachable",
            extra={
                "component": _COMPONENT,
                "action": action,
                "namespace": namespace,
                "error_type": type(exc).__name__,
                "correlation_id": get_correlation_id(),
            },
        )
