"""Testes das origens do token esperado pelo adapter."""

from __future__ import annotations

import pytest

from app.domain.source import ProviderKind
from app.infra.kubernetes import SourceStatusTokenSource, StaticTokenSource
from tests.fakes.fake_kubernetes import FakeSourceStore, api_failure


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _store_with_token(token: str) -> FakeSourceStore:
    store = FakeSourceStore()
    _publish(store, token)
    return store


def _publish(store: FakeSourceStore, token: str) -> None:
    key = ("calendarsources", "default", "team-calendar")
    store.bodies[key] = {"status": {"webhookToken": token}}


def _token_source(store: FakeSourceStore, clock: _Clock) -> SourceStatusTokenSource:
    return SourceStatusTokenSource(
        store,
        provider=ProviderKind.CALENDAR,
        namespace="default",
        name="team-calendar",
        ttl_seconds=30,
        clock=clock,
    )


@pytest.mark.asyncio
async def test_static_token_source() -> None:
    assert await StaticTokenSource("abc").expected_token() == "abc"
    assert await StaticTokenSource("").expected_token(presented="abc") is None


@pytest.mark.asyncio
async def test_token_is_cached_within_ttl() -> None:
    clock = _Clock()
    store = _store_with_token("token-1")
    source = _token_source(store, clock)

    assert await source.expected_token(presented="token-1") == "token-1"
    clock.now += 10
    assert await source.expected_token(presented="token-1") == "token-1"

    assert store.get_calls == 1


@pytest.mark.asyncio
async def test_token_is_reloaded_after_ttl() -> None:
    clock = _Clock()
    store = _store_with_token("token-1")
    source = _token_source(store, clock)
    await source.expected_token()

    _publish(store, "token-2")
    clock.now += 31

    assert await source.expected_token() == "token-2"
    assert store.get_calls == 2


@pytest.mark.asyncio
async def test_mismatch_refresh_is_rate_limited() -> None:
    clock = _Clock()
    store = _store_with_token("token-1")
    source = _token_source(store, clock)
    await source.expected_token()

    _publish(store, "renewed")
    clock.now += 1

    assert await source.expected_token(presented="renewed") == "renewed"
    assert await source.expected_token(presented="forged") == "renewed"
    assert await source.expected_token(presented="forged-again") == "renewed"
    assert store.get_calls == 2


@pytest.mark.asyncio
async def test_renewed_token_accepted_once_status_catches_up() -> None:
    clock = _Clock()
    store = _store_with_token("old")
    source = _token_source(store, clock)
    await source.expected_token()

    # Notificacao do canal novo chega antes do status ser gravado
    clock.now += 1
    assert await source.expected_token(presented="new") == "old"

    _publish(store, "new")
    clock.now += 4

    assert await source.expected_token(presented="new") == "new"
    assert store.get_calls == 3


@pytest.mark.asyncio
async def test_replaced_token_accepted_for_one_ttl() -> None:
    clock = _Clock()
    store = _store_with_token("old")
    source = _token_source(store, clock)
    await source.expected_token()

    _publish(store, "new")
    clock.now += 2
    assert await source.expected_token(presented="new") == "new"

    clock.now += 5
    assert await source.expected_token(presented="old") == "old"
    assert await source.expected_token(presented="forged") == "new"

    clock.now += 30
    assert await source.expected_token(presented="old") == "new"


@pytest.mark.asyncio
async def test_missing_source_yields_no_token() -> None:
    source = _token_source(FakeSourceStore(), _Clock())

    assert await source.expected_token(presented="anything") is None


@pytest.mark.asyncio
async def test_read_failure_keeps_previous_token() -> None:
    clock = _Clock()
    store = _store_with_token("token-1")
    source = _token_source(store, clock)
    await source.expected_token()

    store.get_error = api_failure()
    clock.now += 31

    assert await source.expected_token() == "token-1"
