"""Agregador de rotas do adapter.

Uso:
    from api.routes import create_api_router

    app = FastAPI()
    app.include_router(create_api_router())
"""

from __future__ import annotations

from fastapi import APIRouter

from api.routes.health.router import router as health_router
from api.routes.webhook.router import router as webhook_router


def create_api_router() -> APIRouter:
    """Cria router principal com todos os sub-routers registrados.

    Returns:
        APIRouter configurado com todos os endpoints.
    """
    api_router = APIRouter()

    # Health checks na raiz (/health e /ready)
    api_router.include_router(health_router, tags=["health"])

    # Notificações push chegam na raiz do serviço (callback https://<dominio>/)
    api_router.include_router(webhook_router, tags=["webhook"])

    return api_router
