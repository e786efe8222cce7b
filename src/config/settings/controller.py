"""Settings do controller (reconciliação das Sources).

Centralizar a leitura de env aqui evita espalhar parse de configuracao
pelos handlers do operator.
"""

from __future__ import annotations

import os
from datetime import timedelta
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field

FINALIZER_NAME = "gsuite-source-controller"


class ControllerSettings(BaseModel):
    """Configuracoes usadas pelo engine de reconciliacao."""

    model_config = ConfigDict(extra="ignore")

    calendar_adapter_image: str = Field(default="", description="Imagem do adapter de Calendar.")
    drive_adapter_image: str = Field(default="", description="Imagem do adapter de Drive.")
    sheets_adapter_image: str = Field(default="", description="Imagem do adapter de Sheets.")
    finalizer_name: str = Field(default=FINALIZER_NAME, description="Finalizer de limpeza.")
    channel_ttl_seconds: int = Field(
        default=86400,
        ge=60,
        description="TTL solicitado ao provider para cada canal de push.",
    )
    renewal_lead_seconds: int = Field(
        default=3600,
        ge=0,
        description="Antecedencia da renovacao do canal antes da expiracao.",
    )
    resync_interval_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Intervalo do resync periodico (dispara renovacao).",
    )
    google_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout das chamadas a API do Google.",
    )
    kubernetes_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        description="Timeout das chamadas ao API server.",
    )
    retry_delay_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Delay do retry quando o passe falha.",
    )

    @property
    def renewal_lead(self) -> timedelta:
        return timedelta(seconds=self.renewal_lead_seconds)

    def image_for(self, provider: str) -> str:
        """Retorna a imagem do adapter configurada para o provider."""
        return {
            "calendar": self.calendar_adapter_image,
            "drive": self.drive_adapter_image,
            "sheets": self.sheets_adapter_image,
        }.get(provider, "")

    def validate_settings(self) -> list[str]:
        """Valida configurações mínimas do controller."""
        errors: list[str] = []
        for provider in ("calendar", "drive", "sheets"):
            if not self.image_for(provider):
                errors.append(f"{provider.upper()}_RA_IMAGE não configurado")
        if self.renewal_lead_seconds >= self.channel_ttl_seconds:
            errors.append("RENEWAL_LEAD_SECONDS deve ser menor que CHANNEL_TTL_SECONDS")
        return errors


def _load_controller_from_env() -> ControllerSettings:
    """Carrega ControllerSettings a partir de variaveis de ambiente."""
    return ControllerSettings(
        calendar_adapter_image=os.getenv("CALENDAR_RA_IMAGE", ""),
        drive_adapter_image=os.getenv("DRIVE_RA_IMAGE", ""),
        sheets_adapter_image=os.getenv("SHEETS_RA_IMAGE", ""),
        finalizer_name=os.getenv("FINALIZER_NAME", FINALIZER_NAME),
        channel_ttl_seconds=int(os.getenv("CHANNEL_TTL_SECONDS", "86400")),
        renewal_lead_seconds=int(os.getenv("RENEWAL_LEAD_SECONDS", "3600")),
        resync_interval_seconds=float(os.getenv("RESYNC_INTERVAL_SECONDS", "300")),
        google_timeout_seconds=float(os.getenv("GOOGLE_TIMEOUT_SECONDS", "30")),
        kubernetes_timeout_seconds=float(os.getenv("KUBERNETES_TIMEOUT_SECONDS", "15")),
        retry_delay_seconds=float(os.getenv("RETRY_DELAY_SECONDS", "30")),
    )


@lru_cache(maxsize=1)
def get_controller_settings() -> ControllerSettings:
    """Retorna instancia cacheada de ControllerSettings."""
    return _load_controller_from_env()


__all__ = ["FINALIZER_NAME", "ControllerSettings", "get_controller_settings"]
