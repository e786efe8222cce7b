"""Agregador de settings do gsuite-source.

Re-exporta todas as settings e funções de cada módulo.
Organização por processo (controller/adapter) para isolamento de mudanças.
"""

from __future__ import annotations

from config.settings.adapter import (
    AdapterSettings,
    ProcessingMode,
    get_adapter_settings,
)
from config.settings.base import (
    BaseSettings,
    Environment,
    get_base_settings,
)
from config.settings.controller import (
    FINALIZER_NAME,
    ControllerSettings,
    get_controller_settings,
)

__all__ = [
    "FINALIZER_NAME",
    # Adapter
    "AdapterSettings",
    # Base
    "BaseSettings",
    # Controller
    "ControllerSettings",
    "Environment",
    "ProcessingMode",
    "get_adapter_settings",
    "get_base_settings",
    "get_controller_settings",
]
