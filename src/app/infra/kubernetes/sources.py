"""Acesso ao custom object da Source (status, finalizers, leitura)."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from kubernetes.client import ApiException

from app.domain.source import API_GROUP, API_VERSION, ProviderKind
from app.infra.kubernetes.client import TRANSPORT_ERRORS
from app.observability import get_correlation_id
from utils.errors import ExternalAPIError

if TYPE_CHECKING:
    from kubernetes.client import CustomObjectsApi

    from app.domain.source import Source, SourceStatus

logger = logging.getLogger(__name__)

_COMPONENT = "kubernetes_source_store"


class KubernetesSourceStore:
    """Persistencia do status e dos finalizers via merge patch."""

    __slots__ = ("_api", "_timeout")

    def __init__(self, api: CustomObjectsApi, *, timeout_seconds: float = 15.0) -> None:
        self._api = api
        self._timeout = timeout_seconds

    async def patch_finalizers(self, source: Source, finalizers: list[str]) -> None:
        body = {"metadata": {"finalizers": finalizers}}
        await self._patch(source, body, subresource=False, action="patch_finalizers")

    async def patch_status(self, source: Source, status: SourceStatus) -> None:
        body = {"status": status.to_k8s()}
        await self._patch(source, body, subresource=True, action="patch_status")

    async def get(
        self,
        provider: ProviderKind,
        namespace: str,
        name: str,
    ) -> dict[str, Any] | None:
        try:
            return await asyncio.to_thread(self._get_sync, provider.plural, namespace, name)
        except ApiException as exc:
            if exc.status == 404:
                return None
            self._log_error(action="get", namespace=namespace, name=name, exc=exc)
            raise ExternalAPIError(f"falha ao ler source {namespace}/{name}") from exc
        except TRANSPORT_ERRORS as exc:
            self._log_unreachable(action="get", namespace=namespace, name=name, exc=exc)
            raise ExternalAPIError(f"api indisponivel ao ler source {namespace}/{name}") from exc

    async def _patch(
        self,
        source: Source,
        body: dict[str, Any],
        *,
        subresource: bool,
        action: str,
    ) -> None:
        namespace = source.metadata.namespace
        name = source.metadata.name
        try:
            await asyncio.to_thread(
                self._patch_sync,
                source.provider.plural,
                namespace,
                name,
                body,
                subresource,
            )
        except ApiException as exc:
            if exc.status == 404 and not subresource:
                # Recurso ja coletado
                return
            self._log_error(action=action, namespace=namespace, name=name, exc=exc)
            raise ExternalAPIError(f"falha em {action} de {source.key}: {exc.reason}") from exc
        except TRANSPORT_ERRORS as exc:
            self._log_unreachable(action=action, namespace=namespace, name=name, exc=exc)
            raise ExternalAPIError(f"api indisponivel em {action} de {source.key}") from exc

    def _patch_sync(
        self,
        plural: str,
        namespace: str,
        name: str,
        body: dict[str, Any],
        subresource: bool,
    ) -> dict[str, Any]:
        patch = (
            self._api.patch_namespaced_custom_object_status
            if subresource
            else self._api.patch_namespaced_custom_object
        )
        return patch(
            group=API_GROUP,
            version=API_VERSION,
            namespace=namespace,
            plural=plural,
            name=name,
            body=body,
            _request_timeout=self._timeout,
        )

    def _get_sync(self, plural: str, namespace: str, name: str) -> dict[str, Any]:
        return self._api.get_namespaced_custom_object(
            group=API_GROUP,
            version=API_VERSION,
            namespace=namespace,
            plural=plural,
            name=name,
            _request_timeout=self._timeout,
        )

    def _log_error(self, *, action: str, namespace: str, name: str, exc: ApiException) -> None:
        logger.error(
            "kubernetes_source_api_error",
            extra={
                "component": _COMPONENT,
                "action": action,
                "namespace": namespace,
                "source_name": name,
                "status_code": exc.status,
                "correlation_id": get_correlation_id(),
            },
        )

    def _log_unreachable(self, *, action: str, namespace: str, name: str, exc: Exception) -> None:
        logger.error(
            "kubernetes_source_api_unreachable",
            extra={
                "component": _COMPONENT,
                "action": action,
                "namespace": namespace,
                "source_name": name,
                "error_type": type(exc).__name__,
                "correlation_id": get_correlation_id(),
            },
        )
