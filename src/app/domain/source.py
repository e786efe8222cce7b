"""Modelos de dominio da Source declarada (CalendarSource/DriveSource/SheetsSource).

Os modelos espelham o formato do custom object no Kubernetes (camelCase)
e sao construidos a partir do body cru recebido do API server.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime  # noqa: TC003 - usado em runtime pelo schema do Pydantic
from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.domain.conditions import Condition, ConditionStatus, ConditionType

API_GROUP = "sources.gsuite.dev"
API_VERSION = "v1alpha1"
EVENT_TYPE_PREFIX = "dev.knative.source.gsuite"


class ProviderKind(StrEnum):
    """Providers suportados; cada um tem sua estrategia de reconciliacao."""

    CALENDAR = "calendar"
    DRIVE = "drive"
    SHEETS = "sheets"

    @property
    def kind(self) -> str:
        return f"{self.value.capitalize()}Source"

    @property
    def plural(self) -> str:
        return f"{self.value}sources"

    @property
    def event_type(self) -> str:
        """Tipo fixo dos eventos canonicos emitidos por este provider."""
        return f"{EVENT_TYPE_PREFIX}.{self.value}"

    @classmethod
    def from_kind(cls, kind: str) -> ProviderKind:
        for provider in cls:
            if provider.kind.lower() == kind.lower():
                return provider
        raise ValueError(f"Kind de Source desconhecido: {kind}")


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class SecretKeySelector(_CamelModel):
    """Referencia a uma chave dentro de um Secret do namespace da Source."""

    name: str = Field(..., min_length=1, description="Nome do Secret.")
    key: str = Field(..., min_length=1, description="Chave dentro do Secret.")


class SinkReference(_CamelModel):
    """Referencia logica ao sink (objeto Addressable) ou URI direta."""

    api_version: str = Field(default="", description="apiVersion do objeto sink.")
    kind: str = Field(default="", description="Kind do objeto sink.")
    name: str = Field(default="", description="Nome do objeto sink.")
    namespace: str | None = Field(default=None, description="Namespace (default: o da Source).")
    uri: str | None = Field(default=None, description="URI direta, dispensa resolucao.")


class SourceSpec(_CamelModel):
    """Configuracao declarada de uma integracao com provider."""

    credentials: SecretKeySelector = Field(
        ...,
        validation_alias=AliasChoices("credentials", "gcpCredsSecret"),
        description="Secret com o JSON da service account.",
    )
    sink: SinkReference = Field(..., description="Destino dos eventos canonicos.")
    service_account_name: str = Field(default="", description="ServiceAccount do adapter.")
    calendar_id: str = Field(default="primary", description="Calendario observado.")
    email_address: str = Field(
        default="",
        description="Identidade impersonada via delegacao de dominio.",
    )
    spreadsheet_id: str = Field(default="", description="Planilha observada (Sheets).")


class SourceMetadata(_CamelModel):
    """Subconjunto de ObjectMeta usado pelo controller."""

    name: str = Field(..., min_length=1)
    namespace: str = Field(default="default")
    uid: str = Field(default="")
    generation: int = Field(default=0)
    finalizers: tuple[str, ...] = Field(default=())
    deletion_timestamp: datetime | None = Field(default=None)


class SourceStatus(_CamelModel):
    """Status observado; um snapshot novo e produzido a cada passe."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    conditions: tuple[Condition, ...] = Field(default=())
    sink_uri: str = Field(default="")
    webhook_id: str = Field(default="")
    webhook_resource_id: str = Field(default="")
    webhook_token: str = Field(default="")
    webhook_expiration: datetime | None = Field(default=None)
    observed_generation: int = Field(default=0)

    @field_validator(
        "sink_uri",
        "webhook_id",
        "webhook_resource_id",
        "webhook_token",
        mode="before",
    )
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    def get_condition(self, kind: ConditionType | str) -> Condition | None:
        return next((c for c in self.conditions if c.type == str(kind)), None)

    @property
    def is_ready(self) -> bool:
        ready = self.get_condition(ConditionType.READY)
        return ready is not None and ready.status == ConditionStatus.TRUE

    @property
    def has_webhook(self) -> bool:
        return bool(self.webhook_id)

    def to_k8s(self) -> dict[str, Any]:
        """Serializa no formato do subresource status (camelCase)."""
        payload = self.model_dump(by_alias=True, mode="json", exclude_none=True)
        # Campos vazios sao enviados como None para limpar valores antigos no merge patch
        for key in ("sinkUri", "webhookId", "webhookResourceId", "webhookToken"):
            if payload.get(key) == "":
                payload[key] = None
        payload.setdefault("webhookExpiration", None)
        return payload


class Source(_CamelModel):
    """Source declarada: spec do declarante + status do controller."""

    api_version: str = Field(default=f"{API_GROUP}/{API_VERSION}")
    kind: str = Field(...)
    metadata: SourceMetadata
    spec: SourceSpec
    status: SourceStatus = Field(default_factory=SourceStatus)

    @classmethod
    def from_k8s(cls, body: Mapping[str, Any]) -> Source:
        """Constroi a Source a partir do body cru do custom object."""
        return cls.model_validate(
            {
                "apiVersion": body.get("apiVersion", f"{API_GROUP}/{API_VERSION}"),
                "kind": body.get("kind", ""),
                "metadata": dict(body.get("metadata") or {}),
                "spec": dict(body.get("spec") or {}),
                "status": dict(body.get("status") or {}),
            }
        )

    @property
    def provider(self) -> ProviderKind:
        return ProviderKind.from_kind(self.kind)

    @property
    def key(self) -> str:
        return f"{self.metadata.namespace}/{self.metadata.name}"

    @property
    def is_deleting(self) -> bool:
        return self.metadata.deletion_timestamp is not None

    def owner_reference(self) -> dict[str, Any]:
        """Owner reference de controller para os recursos gerenciados."""
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "name": self.metadata.name,
            "uid": self.metadata.uid,
            "controller": True,
            "blockOwnerDeletion": True,
        }
