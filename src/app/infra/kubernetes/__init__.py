"""Adaptadores finos sobre a API do Kubernetes."""

from app.infra.kubernetes.client import core_api, custom_objects_api, load_kubernetes_config
from app.infra.kubernetes.secrets import KubernetesSecretStore
from app.infra.kubernetes.serving import KnativeServingClient
from app.infra.kubernetes.sinks import KubernetesSinkResolver
from app.infra.kubernetes.sources import KubernetesSourceStore
from app.infra.kubernetes.tokens import SourceStatusTokenSource, StaticTokenSource

__all__ = [
    "KnativeServingClient",
    "KubernetesSecretStore",
    "KubernetesSinkResolver",
    "KubernetesSourceStore",
    "SourceStatusTokenSource",
    "StaticTokenSource",
    "core_api",
    "custom_objects_api",
    "load_kubernetes_config",
]
