"""
Fases de um passe de reconciliação de uma Source.

Cada passe começa em PENDING e avança um estágio por vez; a ordem
secrets → sink → service → webhook é garantida pelo grafo de transições.
"""

from enum import StrEnum


class ReconcilePhase(StrEnum):
    """
    Fases canônicas de um passe de reconciliação.

    Fases não-terminais:
        - PENDING: passe iniciado, condições inicializadas
        - SECRETS_RESOLVED: credenciais encontradas
        - SINK_RESOLVED: sink resolvido para URI
        - SERVICE_PROVISIONED: serviço gerenciado existe
        - SERVICE_READY: rota do serviço pronta, domínio conhecido
        - FINALIZING: deleção pedida, limpeza em andamento

    Fases terminais:
        - READY: webhook registrado, Source operacional
        - WAITING: dependência ainda não pronta, aguardando próximo trigger
        - FAILED: passo falhou, retry no próximo trigger
        - FINALIZED: limpeza concluída, finalizer removido
    """

    PENDING = "PENDING"
    SECRETS_RESOLVED = "SECRETS_RESOLVED"
    SINK_RESOLVED = "SINK_RESOLVED"
    SERVICE_PROVISIONED = "SERVICE_PROVISIONED"
    SERVICE_READY = "SERVICE_READY"
    FINALIZING = "FINALIZING"

    READY = "READY"
    WAITING = "WAITING"
    FAILED = "FAILED"
    FINALIZED = "FINALIZED"

    def __str__(self) -> str:
        return self.value


# Uma vez em fase terminal, o passe acabou
TERMINAL_PHASES: frozenset[ReconcilePhase] = frozenset({
    ReconcilePhase.READY,
    ReconcilePhase.WAITING,
    ReconcilePhase.FAILED,
    ReconcilePhase.FINALIZED,
})

DEFAULT_INITIAL_PHASE: ReconcilePhase = ReconcilePhase.PENDING


def is_terminal(phase: ReconcilePhase) -> bool:
    """Verifica se a fase encerra o passe."""
    return phase in TERMINAL_PHASES


def is_valid_phase(phase: object) -> bool:
    """Verifica se o valor é uma fase válida do enum."""
    return isinstance(phase, ReconcilePhase)
