"""Origens do token esperado em `X-Goog-Channel-Token`.

O token e gerado pelo controller na criacao do canal e publicado no status
da Source; o adapter le de la com cache curto. Em renovacao o token muda:
um token divergente forca releitura, no maximo uma por `refresh_interval`,
e o token substituido segue aceito por um TTL de cache.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from app.observability import get_correlation_id
from utils.errors import ExternalAPIError

if TYPE_CHECKING:
    from collections.abc import Callable

    from app.domain.source import ProviderKind
    from app.protocols import SourceStoreProtocol

logger = logging.getLogger(__name__)


class StaticTokenSource:
    """Token fixo vindo do ambiente."""

    __slots__ = ("_token",)

    def __init__(self, token: str) -> None:
        self._token = token

    async def expected_token(self, *, presented: str | None = None) -> str | None:
        return self._token or None


class SourceStatusTokenSource:
    """Le `status.webhookToken` da Source, com cache por TTL."""

    def __init__(
        self,
        store: SourceStoreProtocol,
        *,
        provider: ProviderKind,
        namespace: str,
        name: str,
        ttl_seconds: float = 30.0,
        refresh_interval_seconds: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._provider = provider
        self._namespace = namespace
        self._name = name
        self._ttl = ttl_seconds
        self._refresh_interval = refresh_interval_seconds
        self._clock = clock
        self._token: str | None = None
        self._previous: str | None = None
        self._previous_until = 0.0
        self._loaded_at: float | None = None
        self._refreshed_on_mismatch_at: float | None = None
        self._lock = asyncio.Lock()

    async def expected_token(self, *, presented: str | None = None) -> str | None:
        async with self._lock:
            now = self._clock()
            if self._is_stale(now):
                await self._refresh(now)
            elif presented is not None and presented != self._token and self._may_refresh(now):
                self._refreshed_on_mismatch_at = now
                await self._refresh(now)
            if presented is not None and self._accepts_previous(presented, now):
                return self._previous
            return self._token

    def _is_stale(self, now: float) -> bool:
        return self._loaded_at is None or now - self._loaded_at >= self._ttl

    def _may_refresh(self, now: float) -> bool:
        last = self._refreshed_on_mismatch_at
        return last is None or now - last >= self._refresh_interval

    def _accepts_previous(self, presented: str, now: float) -> bool:
        return (
            presented != self._token
            and presented == self._previous
            and now < self._previous_until
        )

    async def _refresh(self, now: float) -> None:
        try:
            body = await self._store.get(self._provider, self._namespace, self._name)
        except ExternalAPIError:
            # Mantem o token anterior; proxima janela tenta de novo
            logger.warning(
                "channel_token_refresh_failed",
                extra={
                    "source_namespace": self._namespace,
                    "source_name": self._name,
                    "correlation_id": get_correlation_id(),
                },
            )
            self._loaded_at = now
            return
        status = (body or {}).get("status") or {}
        token = status.get("webhookToken") or None
        if self._token is not None and token != self._token:
            self._previous = self._token
            self._previous_until = now + self._ttl
        self._token = token
        self._loaded_at = now
        logger.debug(
            "channel_token_refreshed",
            extra={
                "source_namespace": self._namespace,
                "source_name": self._name,
                "has_token": self._token is not None,
            },
        )
