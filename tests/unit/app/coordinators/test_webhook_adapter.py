"""Testes do coordenador do adapter webhook."""

from __future__ import annotations

import logging

import pytest

from api.connectors.google.webhook import (
    MissingTokenError,
    PushNotification,
    SyncMessageError,
    TokenMismatchError,
)
from api.normalizers.google import GooglePushNormalizer
from app.coordinators.adapter import WebhookAdapter
from app.domain.source import ProviderKind
from app.infra.kubernetes import StaticTokenSource
from tests.fakes.fake_google import FakeEventSender

TOKEN = "channel-secret-token"


class _RecordingTokenSource:
    def __init__(self, token: str | None) -> None:
        self.token = token
        self.presented: list[str | None] = []

    async def expected_token(self, *, presented: str | None = None) -> str | None:
        self.presented.append(presented)
        return self.token


def _adapter(sender: FakeEventSender, token_source: object | None = None) -> WebhookAdapter:
    return WebhookAdapter(
        provider="calendar",
        normalizer=GooglePushNormalizer(ProviderKind.CALENDAR),
        sender=sender,
        token_source=token_source or StaticTokenSource(TOKEN),
    )


def _headers(**overrides: str) -> dict[str, str]:
    headers = {
        "x-goog-channel-token": TOKEN,
        "x-goog-resource-id": "resource-abc",
        "x-goog-resource-state": "exists",
        "x-goog-message-number": "3",
    }
    headers.update(overrides)
    return headers


def _notification() -> PushNotification:
    return PushNotification(
        resource_id="resource-abc",
        resource_uri="https://www.googleapis.com/calendar/v3/calendars/primary/events",
        resource_state="exists",
        message_number="3",
    )


@pytest.mark.asyncio
async def test_parse_request_accepts_valid_notification() -> None:
    adapter = _adapter(FakeEventSender())

    notification = await adapter.parse_request("POST", _headers(), b"")

    assert notification.resource_id == "resource-abc"


@pytest.mark.asyncio
async def test_parse_request_passes_presented_token_to_source() -> None:
    token_source = _RecordingTokenSource(TOKEN)
    adapter = _adapter(FakeEventSender(), token_source)

    await adapter.parse_request("POST", _headers(), b"")

    assert token_source.presented == [TOKEN]


@pytest.mark.asyncio
async def test_parse_request_rejects_when_no_token_is_known() -> None:
    adapter = _adapter(FakeEventSender(), _RecordingTokenSource(None))

    with pytest.raises(TokenMismatchError):
        await adapter.parse_request("POST", _headers(), b"")


@pytest.mark.asyncio
async def test_parse_request_logs_rejection_without_token(
    caplog: pytest.LogCaptureFixture,
) -> None:
    adapter = _adapter(FakeEventSender())
    headers = _headers()
    del headers["x-goog-channel-token"]

    with caplog.at_level(logging.WARNING), pytest.raises(MissingTokenError):
        await adapter.parse_request("POST", headers, b"")

    records = [r for r in caplog.records if r.getMessage() == "webhook_request_rejected"]
    assert records
    assert records[0].reason == "MissingToken"
    assert TOKEN not in caplog.text


@pytest.mark.asyncio
async def test_parse_request_propagates_sync() -> None:
    adapter = _adapter(FakeEventSender())

    with pytest.raises(SyncMessageError):
        await adapter.parse_request("POST", _headers(**{"x-goog-resource-state": "sync"}), b"")


@pytest.mark.asyncio
async def test_handle_event_sends_canonical_event() -> None:
    sender = FakeEventSender()
    adapter = _adapter(sender)

    delivered = await adapter.handle_event(_notification())

    assert delivered is True
    assert len(sender.events) == 1
    event = sender.events[0]
    assert event.id == "resource-abc-3"
    assert event.type == "dev.knative.source.gsuite.calendar"


@pytest.mark.asyncio
async def test_handle_event_swallows_delivery_failure(caplog: pytest.LogCaptureFixture) -> None:
    sender = FakeEventSender(fail_with_status=503)
    adapter = _adapter(sender)

    with caplog.at_level(logging.ERROR):
        delivered = await adapter.handle_event(_notification())

    assert delivered is False
    assert any(r.getMessage() == "webhook_event_delivery_failed" for r in caplog.records)
