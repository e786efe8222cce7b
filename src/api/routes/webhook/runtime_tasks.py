"""Pool de entregas assíncronas do adapter (PROCESSING_MODE=async).

Cada notificação aceita vira uma task que entrega o evento ao sink. O pool
pertence à app: é criado no lifespan com o limite de entregas simultâneas
das settings e drenado no shutdown. Cada task carrega o contexto da Source
e do canal para os logs.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Awaitable

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DeliveryContext:
    """Identifica a entrega nos logs do pool."""

    provider: str
    source_key: str
    channel_id: str
    resource_state: str
    correlation_id: str

    def to_log_dict(self) -> dict[str, str]:
        return {
            "provider": self.provider,
            "source_key": self.source_key,
            "channel_id": self.channel_id,
            "resource_state": self.resource_state,
            "correlation_id": self.correlation_id,
        }


class DeliveryTaskPool:
    """Tasks de entrega em andamento, com limite de concorrência."""

    def __init__(
        self,
        *,
        max_concurrent: int,
        provider: str,
        source_key: str = "",
    ) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent deve ser >= 1")
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._max_concurrent = max_concurrent
        self._provider = provider
        self._source_key = source_key
        self._tasks: dict[asyncio.Task[Any], DeliveryContext] = {}

    @property
    def active_count(self) -> int:
        return len(self._tasks)

    @property
    def max_concurrent(self) -> int:
        return self._max_concurrent

    def schedule(
        self,
        coroutine: Awaitable[Any],
        *,
        correlation_id: str,
        channel_id: str = "",
        resource_state: str = "",
    ) -> int:
        """Agenda a entrega e retorna quantas estão ativas."""
        context = DeliveryContext(
            provider=self._provider,
            source_key=self._source_key,
            channel_id=channel_id,
            resource_state=resource_state,
            correlation_id=correlation_id,
        )
        task = asyncio.create_task(self._run_with_limit(coroutine))
        self._tasks[task] = context
        task.add_done_callback(self._on_task_done)
        logger.info(
            "webhook_delivery_scheduled",
            extra={**context.to_log_dict(), "active_tasks": len(self._tasks)},
        )
        return len(self._tasks)

    async def _run_with_limit(self, coroutine: Awaitable[Any]) -> None:
        async with self._semaphore:
            await coroutine

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        context = self._tasks.pop(task, None)
        with contextlib.suppress(asyncio.CancelledError):
            exc = task.exception()
            if exc is not None:
                extra: dict[str, Any] = context.to_log_dict() if context else {}
                logger.error(
                    "webhook_delivery_task_failed",
                    extra={
                        **extra,
                        "error_type": type(exc).__name__,
                        "active_tasks": len(self._tasks),
                    },
                )

    async def drain(self, timeout_seconds: float = 30.0) -> int:
        """Aguarda as entregas pendentes; cancela o que passar do prazo.

        Returns:
            Quantidade de tasks canceladas.
        """
        if not self._tasks:
            return 0

        pending_now = list(self._tasks)
        logger.info(
            "webhook_delivery_shutdown_wait",
            extra={
                "provider": self._provider,
                "source_key": self._source_key,
                "pending_tasks": len(pending_now),
                "timeout_seconds": timeout_seconds,
            },
        )
        _, pending = await asyncio.wait(pending_now, timeout=timeout_seconds)
        if not pending:
            return 0

        channels = sorted({self._tasks[task].channel_id for task in pending if task in self._tasks})
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        logger.warning(
            "webhook_delivery_shutdown_cancelled",
            extra={
                "provider": self._provider,
                "source_key": self._source_key,
                "cancelled_tasks": len(pending),
                "channel_ids": channels,
            },
        )
        return len(pending)
