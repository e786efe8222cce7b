"""Contrato de leitura de material de credencial por referencia."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from app.domain.source import SecretKeySelector


@runtime_checkable
class SecretStoreProtocol(Protocol):
    """Resolve `SecretKeySelector` para o valor da chave.

    Levanta SecretNotFoundError / SecretKeyNotFoundError quando a referencia
    nao existe e SecretStoreError em falha do backend.
    """

    async def get_secret_value(self, namespace: str, selector: SecretKeySelector) -> str: ...
