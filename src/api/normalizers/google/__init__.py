"""Normalizer Google: notificações push de Calendar, Drive e Sheets."""

from .normalizer import RESOURCE_ID_EXTENSION, GooglePushNormalizer, build_event_id

__all__ = ["RESOURCE_ID_EXTENSION", "GooglePushNormalizer", "build_event_id"]
