"""Sink Resolver: referencia logica -> URI de entrega."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from kubernetes.client import ApiException

from app.infra.kubernetes.client import TRANSPORT_ERRORS
from app.observability import get_correlation_id
from utils.errors import ConfigurationError, ExternalAPIError

if TYPE_CHECKING:
    from kubernetes.client import CoreV1Api, CustomObjectsApi

    from app.domain.source import SinkReference

logger = logging.getLogger(__name__)

_COMPONENT = "kubernetes_sink_resolver"


def kind_to_plural(kind: str) -> str:
    lowered = kind.lower()
    if lowered.endswith("y") and lowered[-2:-1] not in ("a", "e", "i", "o", "u"):
        return f"{lowered[:-1]}ies"
    if lowered.endswith("s"):
        return f"{lowered}es"
    return f"{lowered}s"


def address_from_status(obj: dict[str, Any]) -> str:
    """Extrai o endereco publicado por um objeto Addressable."""
    status = obj.get("status") if isinstance(obj, dict) else None
    if not isinstance(status, dict):
        return ""
    address = status.get("address")
    if isinstance(address, dict):
        url = address.get("url") or address.get("hostname")
        if url:
            return url if "://" in url else f"http://{url}/"
    url = status.get("url")
    return str(url) if url else ""


class KubernetesSinkResolver:
    """Resolve sinks: URI direta, Service core ou objeto Addressable."""

    __slots__ = ("_core", "_custom", "_timeout")

    def __init__(
        self,
        custom_api: CustomObjectsApi,
        core_api: CoreV1Api | None = None,
        *,
        timeout_seconds: float = 15.0,
    ) -> None:
        self._custom = custom_api
        self._core = core_api
        self._timeout = timeout_seconds

    async def resolve_uri(self, namespace: str, reference: SinkReference) -> str:
        if reference.uri:
            return reference.uri
        if not reference.name or not reference.kind:
            raise ConfigurationError("sink sem uri nem referencia", reason="SinkNotFound")

        target_namespace = reference.namespace or namespace
        if reference.api_version == "v1" and reference.kind == "Service":
            await self._ensure_core_service(target_namespace, reference.name)
            return f"http://{reference.name}.{target_namespace}.svc.cluster.local/"

        group, _, version = reference.api_version.rpartition("/")
        try:
            obj = await asyncio.to_thread(
                self._get_object_sync,
                group,
                version,
                target_namespace,
                kind_to_plural(reference.kind),
                reference.name,
            )
        except ApiException as exc:
            raise self._map_error(exc, reference, target_namespace) from exc
        except TRANSPORT_ERRORS as exc:
            raise _unreachable(exc, reference.kind, f"{target_namespace}/{reference.name}") from exc
        return address_from_status(obj)

    async def _ensure_core_service(self, namespace: str, name: str) -> None:
        if self._core is None:
            return
        reference_name = f"{namespace}/{name}"
        try:
            await asyncio.to_thread(
                self._core.read_namespaced_service,
                name=name,
                namespace=namespace,
                _request_timeout=self._timeout,
            )
        except ApiException as exc:
            if exc.status == 404:
                raise ConfigurationError(
                    f"service {reference_name} nao encontrado",
                    reason="SinkNotFound",
                ) from exc
            raise ExternalAPIError(f"falha ao ler service {reference_name}") from exc
        except TRANSPORT_ERRORS as exc:
            raise _unreachable(exc, "Service", reference_name) from exc

    def _map_error(
        self,
        exc: ApiException,
        reference: SinkReference,
        namespace: str,
    ) -> Exception:
        if exc.status == 404:
            return ConfigurationError(
                f"sink {reference.kind} {namespace}/{reference.name} nao encontrado",
                reason="SinkNotFound",
            )
        logger.error(
            "kubernetes_sink_read_error",
            extra={
                "component": _COMPONENT,
                "namespace": namespace,
                "sink_kind": reference.kind,
                "status_code": exc.status,
                "correlation_id": get_correlation_id(),
            },
        )
        return ExternalAPIError(f"falha ao resolver sink {reference.name}: {exc.reason}")

    def _get_object_sync(
        self,
        group: str,
        version: str,
        namespace: str,
        plural: str,
        name: str,
    ) -> dict[str, Any]:
        return self._custom.get_namespaced_custom_object(
            group=group,
            version=version,
            namespace=namespace,
            plural=plural,
            name=name,
            _request_timeout=self._timeout,
        )


def _unreachable(exc: Exception, kind: str, reference_name: str) -> ExternalAPIError:
    logger.error(
        "kubernetes_sink_unreachable",
        extra={
            "component": _COMPONENT,
            "sink_kind": kind,
            "sink_name": reference_name,
            "error_type": type(exc).__name__,
            "correlation_id": get_correlation_id(),
        },
    )
    return ExternalAPIError(f"api indisponivel ao resolver sink {reference_name}")
