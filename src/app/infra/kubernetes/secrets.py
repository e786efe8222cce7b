"""Secret Resolver baseado em Secrets do Kubernetes."""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from typing import TYPE_CHECKING

from kubernetes.client import ApiException

from app.infra.kubernetes.client import TRANSPORT_ERRORS
from app.observability import get_correlation_id
from utils.errors import SecretKeyNotFoundError, SecretNotFoundError, SecretStoreError

if TYPE_CHECKING:
    from kubernetes.client import CoreV1Api, V1Secret

    from app.domain.source import SecretKeySelector

logger = logging.getLogger(__name__)

_COMPONENT = "kubernetes_secret_store"


class KubernetesSecretStore:
    """Le a chave referenciada de um Secret no namespace da Source."""

    __slots__ = ("_api", "_timeout")

    def __init__(self, api: CoreV1Api, *, timeout_seconds: float = 15.0) -> None:
        self._api = api
        self._timeout = timeout_seconds

    async def get_secret_value(self, namespace: str, selector: SecretKeySelector) -> str:
        try:
            secret = await asyncio.to_thread(self._read_secret_sync, namespace, selector.name)
        except ApiException as exc:
            if exc.status == 404:
                raise SecretNotFoundError(
                    f"secret {namespace}/{selector.name} nao encontrado"
                ) from exc
            logger.error(
                "kubernetes_secret_read_error",
                extra={
                    "component": _COMPONENT,
                    "namespace": namespace,
                    "secret_name": selector.name,
                    "status_code": exc.status,
                    "correlation_id": get_correlation_id(),
                },
            )
            raise SecretStoreError(f"falha ao ler secret {selector.name}: {exc.reason}") from exc
        except TRANSPORT_ERRORS as exc:
            logger.error(
                "kubernetes_secret_read_unreachable",
                extra={
                    "component": _COMPONENT,
                    "namespace": namespace,
                    "secret_name": selector.name,
                    "error_type": type(exc).__name__,
                    "correlation_id": get_correlation_id(),
                },
            )
            raise SecretStoreError(f"api indisponivel ao ler secret {selector.name}") from exc

        data = secret.data or {}
        if selector.key not in data:
            raise SecretKeyNotFoundError(
                f"chave {selector.key!r} nao encontrada no secret {selector.name!r}"
            )
        try:
            return base64.b64decode(data[selector.key]).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise SecretKeyNotFoundError(
                f"chave {selector.key!r} do secret {selector.name!r} nao e texto valido"
            ) from exc

    def _read_secret_sync(self, namespace: str, name: str) -> V1Secret:
        return self._api.read_namespaced_secret(
            name=name,
            namespace=namespace,
            _request_timeout=self._timeout,
        )
