"""Fakes in-memory dos colaboradores Kubernetes do engine."""

from __future__ import annotations

from typing import Any

from app.domain.source import ProviderKind, Source, SourceStatus
from app.infra.kubernetes.resources import is_controlled_by
from utils.errors import (
    ConfigurationError,
    ExternalAPIError,
    SecretKeyNotFoundError,
    SecretNotFoundError,
)

SERVICE_ACCOUNT_JSON = '{"type": "service_account", "client_email": "sa@example.iam"}'


class FakeSecretStore:
    """Secrets por (namespace, nome) -> {chave: valor}."""

    def __init__(self, secrets: dict[tuple[str, str], dict[str, str]] | None = None) -> None:
        self.secrets = secrets if secrets is not None else {}
        self.calls = 0
        self.error: Exception | None = None

    async def get_secret_value(self, namespace: str, selector: Any) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        data = self.secrets.get((namespace, selector.name))
        if data is None:
            raise SecretNotFoundError(f"secret {namespace}/{selector.name} nao encontrado")
        if selector.key not in data:
            raise SecretKeyNotFoundError(f"chave {selector.key} ausente")
        return data[selector.key]


class FakeSinkResolver:
    """Resolve sempre para a URI configurada (vazia simula sink sem endereço)."""

    def __init__(self, uri: str = "http://sink.default.svc.cluster.local/") -> None:
        self.uri = uri
        self.error: Exception | None = None

    async def resolve_uri(self, namespace: str, reference: Any) -> str:
        if self.error is not None:
            raise self.error
        if reference.uri:
            return reference.uri
        if not reference.name:
            raise ConfigurationError("sink sem referencia", reason="SinkNotFound")
        return self.uri


class FakeServingClient:
    """Services em memória; `route_ready` controla o status publicado."""

    def __init__(self, *, route_ready: bool = True, domain: str = "adapter.example.com") -> None:
        self.route_ready = route_ready
        self.domain = domain
        self.services: list[dict[str, Any]] = []
        self.create_calls = 0
        self.create_error: Exception | None = None

    async def list_owned(self, namespace: str, owner_uid: str) -> list[dict[str, Any]]:
        return [
            self._with_status(svc)
            for svc in self.services
            if svc["metadata"].get("namespace") == namespace and is_controlled_by(svc, owner_uid)
        ]

    async def create(self, namespace: str, body: dict[str, Any]) -> dict[str, Any]:
        self.create_calls += 1
        if self.create_error is not None:
            raise self.create_error
        created = {**body, "metadata": {**body["metadata"]}}
        created["metadata"]["name"] = f"{body['metadata']['generateName']}{self.create_calls:05d}"
        created["metadata"]["namespace"] = namespace
        self.services.append(created)
        return self._with_status(created)

    def _with_status(self, service: dict[str, Any]) -> dict[str, Any]:
        if not self.route_ready:
            return {**service, "status": {"conditions": []}}
        return {
            **service,
            "status": {
                "url": f"https://{self.domain}",
                "conditions": [{"type": "RoutesReady", "status": "True"}],
            },
        }


class FakeSourceStore:
    """Registra patches de status e finalizers; `get` devolve bodies cadastrados."""

    def __init__(self) -> None:
        self.status_patches: list[SourceStatus] = []
        self.finalizer_patches: list[list[str]] = []
        self.bodies: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.get_calls = 0
        self.status_error: Exception | None = None
        self.finalizer_error: Exception | None = None
        self.get_error: Exception | None = None

    async def patch_finalizers(self, source: Source, finalizers: list[str]) -> None:
        if self.finalizer_error is not None:
            raise self.finalizer_error
        self.finalizer_patches.append(list(finalizers))

    async def patch_status(self, source: Source, status: SourceStatus) -> None:
        if self.status_error is not None:
            raise self.status_error
        self.status_patches.append(status)

    async def get(self, provider: ProviderKind, namespace: str, name: str) -> dict[str, Any] | None:
        self.get_calls += 1
        if self.get_error is not None:
            raise self.get_error
        return self.bodies.get((provider.plural, namespace, name))


def api_failure(message: str = "api indisponivel") -> ExternalAPIError:
    return ExternalAPIError(message, status_code=500)
