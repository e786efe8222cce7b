"""Templates dos recursos gerenciados pelo controller."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from app.domain.source import Source

SERVING_GROUP = "serving.knative.dev"
SERVING_VERSION = "v1"
SERVING_PLURAL = "services"

ADAPTER_LABEL = "receive-adapter"


def make_service(source: Source, *, image: str, sink_uri: str) -> dict[str, Any]:
    """Gera (sem criar) o Knative Service do adapter da Source."""
    env = [
        {"name": "SINK_URI", "value": sink_uri},
        {"name": "PROVIDER", "value": source.provider.value},
        {"name": "SOURCE_NAME", "value": source.metadata.name},
        {"name": "SOURCE_NAMESPACE", "value": source.metadata.namespace},
        {"name": "SOURCE_KIND", "value": source.kind},
    ]
    pod_spec: dict[str, Any] = {"containers": [{"image": image, "env": env}]}
    if source.spec.service_account_name:
        pod_spec["serviceAccountName"] = source.spec.service_account_name

    return {
        "apiVersion": f"{SERVING_GROUP}/{SERVING_VERSION}",
        "kind": "Service",
        "metadata": {
            "generateName": f"{source.metadata.name}-",
            "namespace": source.metadata.namespace,
            "labels": {ADAPTER_LABEL: source.provider.value},
            "ownerReferences": [source.owner_reference()],
        },
        "spec": {"template": {"spec": pod_spec}},
    }


def is_controlled_by(obj: dict[str, Any], owner_uid: str) -> bool:
    """True se `obj` tem owner reference de controller para `owner_uid`."""
    references = (obj.get("metadata") or {}).get("ownerReferences") or []
    return any(
        ref.get("controller") is True and ref.get("uid") == owner_uid
        for ref in references
        if isinstance(ref, dict)
    )


def domain_from_service(service: dict[str, Any]) -> str:
    """Dominio da rota pronta, ou string vazia se a rota nao esta pronta."""
    status = service.get("status") or {}
    conditions = status.get("conditions") or []
    routes_ready = any(
        cond.get("type") == "RoutesReady" and cond.get("status") == "True"
        for cond in conditions
        if isinstance(cond, dict)
    )
    if not routes_ready:
        return ""
    url = status.get("url") or ""
    if url:
        return url.split("://", 1)[-1].rstrip("/")
    return str(status.get("domain") or "")
