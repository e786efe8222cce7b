"""Fabrica dos clientes da API do Kubernetes.

A configuracao e carregada uma unica vez: in-cluster quando disponivel,
kubeconfig local como fallback (dev).
"""

from __future__ import annotations

import logging
from functools import lru_cache

from kubernetes import client, config
from urllib3.exceptions import HTTPError

logger = logging.getLogger(__name__)

# Timeout e falha de conexao do cliente sincrono; nao derivam de ApiException
TRANSPORT_ERRORS: tuple[type[Exception], ...] = (HTTPError, OSError)


@lru_cache(maxsize=1)
def load_kubernetes_config() -> str:
    """Carrega a configuracao do cluster e retorna o modo usado."""
    try:
        config.load_incluster_config()
        mode = "incluster"
    except config.ConfigException:
        config.load_kube_config()
        mode = "kubeconfig"
    logger.info("kubernetes_config_loaded", extra={"mode": mode})
    return mode


def core_api() -> client.CoreV1Api:
    load_kubernetes_config()
    return client.CoreV1Api()


def custom_objects_api() -> client.CustomObjectsApi:
    load_kubernetes_config()
    return client.CustomObjectsApi()
