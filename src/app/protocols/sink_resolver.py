"""Contrato de resolucao de sink."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from app.domain.source import SinkReference


@runtime_checkable
class SinkResolverProtocol(Protocol):
    """Resolve uma referencia logica de sink para URI.

    Retorna string vazia quando o objeto existe mas ainda nao publicou
    endereco; levanta ConfigurationError quando a referencia nao existe.
    """

    async def resolve_uri(self, namespace: str, reference: SinkReference) -> str: ...
