"""Normalizers: notificação validada para evento canônico.

Estrutura:
- google/: headers X-Goog-* → CanonicalEvent
"""

from .google import GooglePushNormalizer, build_event_id

__all__ = [
    "GooglePushNormalizer",
    "build_event_id",
]
