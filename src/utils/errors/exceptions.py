"""Taxonomia de erros do controller e do adapter.

Cada família define como a falha aparece no status da Source:
- ConfigurationError: condition False, retry no próximo trigger
- TransientResolutionError: condition Unknown, retry silencioso
- ExternalAPIError: condition False; tolerado no finalize
- DeliveryError: só log, nunca bloqueia o ack do webhook
"""

from __future__ import annotations


class GSuiteSourceError(RuntimeError):
    """Base de todos os erros do domínio."""

    reason: str = "Error"

    def __init__(self, message: str, *, reason: str | None = None) -> None:
        super().__init__(message)
        if reason is not None:
            self.reason = reason


class ConfigurationError(GSuiteSourceError):
    """Configuração declarada inválida ou incompleta."""

    reason = "ConfigurationInvalid"


class SecretNotFoundError(ConfigurationError):
    """Secret referenciado não existe."""

    reason = "SecretNotFound"


class SecretKeyNotFoundError(ConfigurationError):
    """Secret existe mas não contém a chave referenciada."""

    reason = "KeyNotFound"


class TransientResolutionError(GSuiteSourceError):
    """Dependência ainda não pronta (consistência eventual)."""

    reason = "NotReady"


class ExternalAPIError(GSuiteSourceError):
    """Falha em API externa (Google, Kubernetes)."""

    reason = "ExternalAPIFailed"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        reason: str | None = None,
    ) -> None:
        super().__init__(message, reason=reason)
        self.status_code = status_code


class SecretStoreError(ExternalAPIError):
    """Falha ao consultar o store de secrets."""

    reason = "SecretStoreFailed"


class SubscriptionError(ExternalAPIError):
    """Falha ao criar ou cancelar canal de push no provider."""

    reason = "SubscriptionFailed"


class DeliveryError(GSuiteSourceError):
    """Falha ao entregar evento canônico ao sink."""

    reason = "DeliveryFailed"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        reason: str | None = None,
    ) -> None:
        super().__init__(message, reason=reason)
        self.status_code = status_code
