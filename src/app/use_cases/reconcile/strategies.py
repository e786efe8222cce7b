"""Estrategias por provider para o esqueleto de reconciliacao.

Cada provider e uma variante marcada: o engine recebe a estrategia pronta
e nao conhece detalhes de Calendar, Drive ou Sheets.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from app.domain.source import ProviderKind
from utils.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from app.domain.source import SourceSpec
    from app.protocols import SubscriptionManagerProtocol
    from config.settings import ControllerSettings

PARAMS_INVALID_REASON = "WebHookParamsInvalid"


@dataclass(frozen=True, slots=True)
class SubscriptionParams:
    """Parametros do canal derivados do spec."""

    target: str | None = None
    subject: str | None = None


def calendar_params(spec: SourceSpec) -> SubscriptionParams:
    return SubscriptionParams(
        target=spec.calendar_id or "primary",
        subject=spec.email_address or None,
    )


def drive_params(spec: SourceSpec) -> SubscriptionParams:
    # O change feed e por usuario; sem impersonacao observaria o drive da service account
    if not spec.email_address:
        raise ConfigurationError(
            "emailAddress obrigatorio para DriveSource",
            reason=PARAMS_INVALID_REASON,
        )
    return SubscriptionParams(subject=spec.email_address)


def sheets_params(spec: SourceSpec) -> SubscriptionParams:
    if not spec.spreadsheet_id:
        raise ConfigurationError(
            "spreadsheetId obrigatorio para SheetsSource",
            reason=PARAMS_INVALID_REASON,
        )
    return SubscriptionParams(target=spec.spreadsheet_id, subject=spec.email_address or None)


@dataclass(frozen=True, slots=True)
class ProviderStrategy:
    """Capacidades de um provider passadas ao engine.

    Attributes:
        kind: Provider da variante
        event_type: Tipo fixo dos eventos emitidos pelo adapter
        adapter_image: Imagem do adapter provisionado
        subscription_manager: Manager de canais do provider
        params_builder: Deriva os parametros do canal a partir do spec
    """

    kind: ProviderKind
    event_type: str
    adapter_image: str
    subscription_manager: SubscriptionManagerProtocol
    params_builder: Callable[[SourceSpec], SubscriptionParams]

    def subscription_params(self, spec: SourceSpec) -> SubscriptionParams:
        """Levanta ConfigurationError se o spec nao tem o que o provider exige."""
        return self.params_builder(spec)


_PARAMS_BUILDERS: dict[ProviderKind, Callable[[SourceSpec], SubscriptionParams]] = {
    ProviderKind.CALENDAR: calendar_params,
    ProviderKind.DRIVE: drive_params,
    ProviderKind.SHEETS: sheets_params,
}


def build_strategies(
    settings: ControllerSettings,
    managers: Mapping[ProviderKind, SubscriptionManagerProtocol],
) -> dict[ProviderKind, ProviderStrategy]:
    """Monta uma estrategia para cada provider com manager registrado."""
    return {
        provider: ProviderStrategy(
            kind=provider,
            event_type=provider.event_type,
            adapter_image=settings.image_for(provider.value),
            subscription_manager=manager,
            params_builder=_PARAMS_BUILDERS[provider],
        )
        for provider, manager in managers.items()
    }
