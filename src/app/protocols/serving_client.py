"""Contrato do provisionador do recurso de serving do adapter."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ServingClientProtocol(Protocol):
    """CRUD minimo do servico gerenciado (lista por dono, cria)."""

    async def list_owned(self, namespace: str, owner_uid: str) -> list[dict[str, Any]]:
        """Lista servicos cujo owner reference de controller aponta para `owner_uid`."""
        ...

    async def create(self, namespace: str, body: dict[str, Any]) -> dict[str, Any]: ...
