"""App: controller e receive adapter do gsuite-source.

Subpastas:
- bootstrap/: composition root (factories, inicialização, wiring)
- coordinators/: fluxo do adapter (request → evento → sink)
- use_cases/: reconciliação das Sources
- domain/: Source, condições, canais e evento canônico
- infra/: implementações concretas de IO (Kubernetes, Google, HTTP)
- protocols/: contratos/interfaces
- observability/: correlation_id e métricas via logs

Entrypoints: operator.py (controller kopf) e app.py (adapter FastAPI).
"""
