"""Connectors por provider.

Estrutura:
- google/: notificações push dos watch channels (Calendar, Drive, Sheets)
"""

__all__: list[str] = []
