"""API: camada de borda do receive adapter.

Responsabilidades:
- Receber as notificações push do Google (webhook)
- Validar método e token do canal
- Normalizar a notificação para o evento canônico

Subpastas:
- connectors/: parse e validação dos requests por provider
- normalizers/: notificação validada → CanonicalEvent
- routes/: endpoints HTTP (webhook, health)

NÃO PODE conter: reconciliação, acesso ao Kubernetes, orquestração de use cases.
"""
