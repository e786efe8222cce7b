"""Contrato de persistencia de status e finalizers da Source."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from app.domain.source import ProviderKind, Source, SourceStatus


@runtime_checkable
class SourceStoreProtocol(Protocol):
    """Escrita no recurso declarado; o store em si e externo."""

    async def patch_finalizers(self, source: Source, finalizers: list[str]) -> None: ...

    async def patch_status(self, source: Source, status: SourceStatus) -> None: ...

    async def get(
        self,
        provider: ProviderKind,
        namespace: str,
        name: str,
    ) -> dict[str, Any] | None:
        """Le o body cru do custom object, ou None se nao existe."""
        ...
