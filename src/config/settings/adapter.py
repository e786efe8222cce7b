"""Settings do receive adapter (processo que recebe os pushes do Google).

O controller injeta essas variáveis no serviço gerenciado; em
desenvolvimento local podem vir direto do shell.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ProcessingMode = Literal["inline", "async"]


class AdapterSettings(BaseModel):
    """Configuracoes do adapter de webhook."""

    model_config = ConfigDict(extra="ignore")

    sink_uri: str = Field(default="", description="URI do sink que recebe os eventos.")
    port: int = Field(default=8080, ge=1, le=65535, description="Porta HTTP do listener.")
    provider: str = Field(
        default="calendar",
        description="Provider do canal (calendar|drive|sheets).",
    )
    webhook_token: str | None = Field(
        default=None,
        description="Token fixo do canal; se ausente, lido do status da Source.",
    )
    source_name: str = Field(default="", description="Nome da Source dona deste adapter.")
    source_namespace: str = Field(default="default", description="Namespace da Source.")
    source_kind: str = Field(default="", description="Kind da Source (ex.: CalendarSource).")
    token_cache_ttl_seconds: float = Field(
        default=30.0,
        ge=0,
        description="Tempo de cache do token lido do status da Source.",
    )
    token_refresh_interval_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Intervalo minimo entre releituras disparadas por token divergente.",
    )
    tls_cert_file: str | None = Field(default=None, description="Certificado TLS opcional.")
    tls_key_file: str | None = Field(default=None, description="Chave TLS opcional.")
    delivery_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout de envio ao sink.",
    )
    processing_mode: ProcessingMode = Field(
        default="async",
        description="inline aguarda o envio; async agenda task e responde logo.",
    )
    max_concurrent_deliveries: int = Field(
        default=100,
        ge=1,
        description="Entregas simultaneas ao sink no modo async.",
    )
    shutdown_drain_seconds: float = Field(
        default=30.0,
        ge=0,
        description="Prazo para entregas pendentes terminarem no shutdown.",
    )

    @property
    def source_key(self) -> str:
        """Chave `namespace/name` da Source dona do adapter (vazia sem SOURCE_NAME)."""
        if not self.source_name:
            return ""
        return f"{self.source_namespace}/{self.source_name}"

    def validate_settings(self) -> list[str]:
        """Valida configurações mínimas do adapter."""
        errors: list[str] = []
        if not self.sink_uri:
            errors.append("SINK_URI não configurado")
        if self.provider not in {"calendar", "drive", "sheets"}:
            errors.append(f"PROVIDER inválido: {self.provider}")
        if not self.webhook_token and not self.source_name:
            errors.append("WEBHOOK_TOKEN ou SOURCE_NAME deve ser configurado")
        if bool(self.tls_cert_file) != bool(self.tls_key_file):
            errors.append("TLS_CERT_FILE e TLS_KEY_FILE devem ser definidos juntos")
        return errors


def _read_optional_env(key: str) -> str | None:
    """Retorna valor opcional da env sem propagar string vazia."""
    raw_value = os.getenv(key)
    if raw_value is None:
        return None
    stripped_value = raw_value.strip()
    return stripped_value or None


def _load_adapter_from_env() -> AdapterSettings:
    """Carrega AdapterSettings a partir de variaveis de ambiente."""
    mode = os.getenv("PROCESSING_MODE", "async").strip().lower()
    return AdapterSettings(
        sink_uri=os.getenv("SINK_URI", os.getenv("SINK", "")),
        port=int(os.getenv("PORT", "8080")),
        provider=os.getenv("PROVIDER", "calendar").strip().lower(),
        webhook_token=_read_optional_env("WEBHOOK_TOKEN"),
        source_name=os.getenv("SOURCE_NAME", ""),
        source_namespace=os.getenv("SOURCE_NAMESPACE", "default"),
        source_kind=os.getenv("SOURCE_KIND", ""),
        token_cache_ttl_seconds=float(os.getenv("TOKEN_CACHE_TTL_SECONDS", "30")),
        token_refresh_interval_seconds=float(os.getenv("TOKEN_REFRESH_INTERVAL_SECONDS", "1")),
        tls_cert_file=_read_optional_env("TLS_CERT_FILE"),
        tls_key_file=_read_optional_env("TLS_KEY_FILE"),
        delivery_timeout_seconds=float(os.getenv("DELIVERY_TIMEOUT_SECONDS", "10")),
        processing_mode="inline" if mode == "inline" else "async",
        max_concurrent_deliveries=int(os.getenv("MAX_CONCURRENT_DELIVERIES", "100")),
        shutdown_drain_seconds=float(os.getenv("SHUTDOWN_DRAIN_SECONDS", "30")),
    )


@lru_cache(maxsize=1)
def get_adapter_settings() -> AdapterSettings:
    """Retorna instancia cacheada de AdapterSettings."""
    return _load_adapter_from_env()


__all__ = ["AdapterSettings", "ProcessingMode", "get_adapter_settings"]
