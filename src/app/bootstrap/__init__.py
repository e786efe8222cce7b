"""Bootstrap da aplicação: inicialização e wiring.

Este módulo é o composition root: configura logging, valida settings e
conecta implementações concretas aos protocolos, para os dois processos
(controller e adapter).

Uso:
    from app.bootstrap import initialize_app, validate_runtime_settings

    # Na inicialização do processo
    initialize_app()
    validate_runtime_settings("adapter")
"""

from __future__ import annotations

import logging
from typing import Literal

from app.observability import get_correlation_id
from config.logging import configure_logging
from config.settings import (
    get_adapter_settings,
    get_base_settings,
    get_controller_settings,
)

STRICT_VALIDATION_ENVS = {"staging", "production"}

ProcessName = Literal["adapter", "controller"]

logger = logging.getLogger(__name__)


def initialize_app(process: ProcessName | None = None) -> None:
    """Inicializa logging estruturado JSON com correlation_id.

    O adapter atende uma única Source: provider e source_key entram em todo
    record. No controller esses campos vêm do `extra` de cada passe.

    Deve ser chamada uma vez no início do processo.
    """
    settings = get_base_settings()
    provider = source_key = ""
    if process == "adapter":
        adapter = get_adapter_settings()
        provider, source_key = adapter.provider, adapter.source_key
    configure_logging(
        level=settings.log_level,
        service_name=settings.service_name,
        correlation_id_getter=get_correlation_id,
        provider=provider,
        source_key=source_key,
    )


def initialize_test_app() -> None:
    """Inicializa a aplicação para testes (nível DEBUG)."""
    configure_logging(
        level="DEBUG",
        service_name=f"{get_base_settings().service_name}_test",
        correlation_id_getter=get_correlation_id,
    )


def validate_runtime_settings(process: ProcessName) -> None:
    """Valida settings obrigatórias no startup.

    Em `staging`/`production` falha rápido para impedir boot inválido.
    Em `development` mantém alerta sem bloquear execução local.
    """
    base = get_base_settings()
    environment = base.environment
    strict_mode = environment in STRICT_VALIDATION_ENVS
    errors: list[str] = [f"base: {error}" for error in base.validate()]

    if process == "adapter":
        errors.extend(f"adapter: {error}" for error in get_adapter_settings().validate_settings())
    else:
        errors.extend(
            f"controller: {error}" for error in get_controller_settings().validate_settings()
        )

    if not errors:
        logger.info(
            "settings_validated",
            extra={
                "component": "bootstrap",
                "process": process,
                "result": "ok",
                "environment": environment,
            },
        )
        return

    logger.warning(
        "settings_validation_failed",
        extra={
            "component": "bootstrap",
            "process": process,
            "result": "failed",
            "environment": environment,
            "error_count": len(errors),
            "errors": errors,
        },
    )
    if strict_mode:
        details = "\n".join(f"- {error}" for error in errors)
        raise RuntimeError(f"Configuração inválida para {environment}:\n{details}")


__all__ = [
    "STRICT_VALIDATION_ENVS",
    "initialize_app",
    "initialize_test_app",
    "validate_runtime_settings",
]
