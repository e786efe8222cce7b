"""Entrypoint do receive adapter (gsuite-source).

Inicializa o bootstrap e expõe a aplicação ASGI (FastAPI) que recebe as
notificações push do Google e entrega eventos canônicos ao sink.

Uso (produção):
    uvicorn app.app:app --host 0.0.0.0 --port 8080

Uso (desenvolvimento):
    python -m app.app
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from api.routes import create_api_router
from api.routes.webhook import DeliveryTaskPool
from app.bootstrap import initialize_app, validate_runtime_settings
from app.bootstrap.factories import create_webhook_adapter
from app.infra.events import HttpSenderConfig, create_http_client
from config.logging import get_logger
from config.settings import get_adapter_settings, get_base_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    import httpx

    from app.protocols import ChannelTokenSourceProtocol
    from config.settings import AdapterSettings

# Inicializar logging ANTES de qualquer import que use logger
initialize_app("adapter")

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Gerencia ciclo de vida do adapter.

    Startup:
    - Valida configurações
    - Constrói o cliente de entrega uma única vez e monta o adapter

    Shutdown:
    - Drena tasks de entrega pendentes
    - Fecha o cliente HTTP
    """
    settings: AdapterSettings = app.state.settings or get_adapter_settings()
    logger.info(
        "app_starting",
        extra={"provider": settings.provider, "processing_mode": settings.processing_mode},
    )
    validate_runtime_settings("adapter")

    http_client: httpx.AsyncClient = app.state.http_client or create_http_client(
        HttpSenderConfig(timeout_seconds=settings.delivery_timeout_seconds)
    )
    app.state.http_client = http_client
    app.state.processing_mode = settings.processing_mode
    delivery_tasks = DeliveryTaskPool(
        max_concurrent=settings.max_concurrent_deliveries,
        provider=settings.provider,
        source_key=settings.source_key,
    )
    app.state.delivery_tasks = delivery_tasks
    app.state.webhook_adapter = create_webhook_adapter(
        settings,
        http_client,
        token_source=app.state.token_source,
    )

    yield

    logger.info("app_shutting_down", extra={"provider": settings.provider})
    await delivery_tasks.drain(timeout_seconds=settings.shutdown_drain_seconds)
    await http_client.aclose()


def create_app(
    *,
    settings: AdapterSettings | None = None,
    token_source: ChannelTokenSourceProtocol | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Cria e configura a aplicação FastAPI.

    Args:
        settings: Settings explícitas (default: env)
        token_source: Origem do token do canal (default: env/Kubernetes)
        http_client: Cliente de entrega pré-construído (default: criado no startup)

    Returns:
        Aplicação FastAPI configurada.
    """
    fastapi_app = FastAPI(
        title="gsuite-source adapter",
        description="Notificações push do Google Calendar/Drive/Sheets para eventos",
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    fastapi_app.state.settings = settings
    fastapi_app.state.token_source = token_source
    fastapi_app.state.http_client = http_client
    fastapi_app.state.service_name = get_base_settings().service_name

    fastapi_app.include_router(create_api_router())

    logger.info("app_configured", extra={"service": fastapi_app.state.service_name})
    return fastapi_app


# Aplicação ASGI exposta para uvicorn
app = create_app()


def main() -> None:
    """Entrypoint para execução direta (TLS opcional via env)."""
    import uvicorn

    settings = get_adapter_settings()
    logger.info(
        "adapter_listening",
        extra={"port": settings.port, "tls": bool(settings.tls_cert_file)},
    )
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=settings.port,
        ssl_certfile=settings.tls_cert_file,
        ssl_keyfile=settings.tls_key_file,
        log_config=None,
    )


if __name__ == "__main__":
    main()
