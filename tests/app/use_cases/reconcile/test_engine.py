"""Testes do engine de reconciliação com colaboradores in-memory."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import MagicMock

import pytest
from urllib3.exceptions import ReadTimeoutError

from app.domain.conditions import ConditionStatus, ConditionType
from app.domain.source import ProviderKind, Source
from app.infra.kubernetes import KubernetesSecretStore
from app.use_cases.reconcile import ReconcileSourceUseCase, build_strategies
from config.settings import FINALIZER_NAME, ControllerSettings
from fsm import ReconcilePhase
from tests.fakes.fake_google import FakeSubscriptionManager, subscription_failure
from tests.fakes.fake_kubernetes import (
    SERVICE_ACCOUNT_JSON,
    FakeSecretStore,
    FakeServingClient,
    FakeSinkResolver,
    FakeSourceStore,
    api_failure,
)

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)


def _settings() -> ControllerSettings:
    return ControllerSettings(
        calendar_adapter_image="registry.local/calendar-adapter:1",
        drive_adapter_image="registry.local/drive-adapter:1",
        sheets_adapter_image="registry.local/sheets-adapter:1",
        channel_ttl_seconds=86400,
        renewal_lead_seconds=3600,
    )


def _source(
    kind: str = "CalendarSource",
    *,
    status: dict[str, Any] | None = None,
    finalizers: tuple[str, ...] = (),
    deleting: bool = False,
    spec: dict[str, Any] | None = None,
) -> Source:
    body = {
        "apiVersion": "sources.gsuite.dev/v1alpha1",
        "kind": kind,
        "metadata": {
            "name": "team-calendar",
            "namespace": "default",
            "uid": "uid-123",
            "generation": 2,
            "finalizers": list(finalizers),
            "deletionTimestamp": "2026-01-15T11:59:00Z" if deleting else None,
        },
        "spec": {
            "credentials": {"name": "gcp-creds", "key": "key.json"},
            "sink": {"apiVersion": "eventing.knative.dev/v1", "kind": "Broker", "name": "default"},
            **(spec or {}),
        },
        "status": status or {},
    }
    return Source.from_k8s(body)


class _Harness:
    def __init__(self, secret_store: Any = None) -> None:
        credentials = {"key.json": SERVICE_ACCOUNT_JSON}
        self.secrets = FakeSecretStore({("default", "gcp-creds"): credentials})
        self.sinks = FakeSinkResolver()
        self.serving = FakeServingClient()
        self.store = FakeSourceStore()
        self.manager = FakeSubscriptionManager(now=NOW)
        self.settings = _settings()
        self.engine = ReconcileSourceUseCase(
            strategies=build_strategies(
                self.settings,
                {provider: self.manager for provider in ProviderKind},
            ),
            secret_store=secret_store or self.secrets,
            sink_resolver=self.sinks,
            serving=self.serving,
            source_store=self.store,
            settings=self.settings,
            clock=lambda: NOW,
        )


@pytest.fixture
def harness() -> _Harness:
    return _Harness()


def _condition(result: Any, kind: ConditionType) -> Any:
    condition = result.status.get_condition(kind)
    assert condition is not None
    return condition


def _next_source(source: Source, result: Any) -> Source:
    """Source como o API server devolveria depois do passe."""
    body = {
        "apiVersion": source.api_version,
        "kind": source.kind,
        "metadata": {
            **source.metadata.model_dump(by_alias=True, mode="json"),
            "finalizers": list(result.finalizers),
        },
        "spec": source.spec.model_dump(by_alias=True, mode="json"),
        "status": result.status.to_k8s(),
    }
    return Source.from_k8s(body)


class TestReconcileHappyPath:
    @pytest.mark.asyncio
    async def test_calendar_source_becomes_ready_with_registered_webhook(
        self,
        harness: _Harness,
    ) -> None:
        result = await harness.engine.execute(_source())

        assert result.phase == ReconcilePhase.READY
        assert result.status.is_ready
        for kind in (
            ConditionType.SECRETS_PROVIDED,
            ConditionType.SINK_PROVIDED,
            ConditionType.SERVICE_PROVIDED,
            ConditionType.WEBHOOK_PROVIDED,
        ):
            assert _condition(result, kind).status == ConditionStatus.TRUE
        assert result.status.webhook_id
        assert result.status.webhook_token
        assert result.status.sink_uri == "http://sink.default.svc.cluster.local/"
        assert result.status.observed_generation == 2
        assert result.requeue is False
        assert result.error is None
        assert result.status_persisted is True
        assert harness.store.status_patches == [result.status]

    @pytest.mark.asyncio
    async def test_subscription_request_uses_resolved_domain_and_fresh_identifiers(
        self,
        harness: _Harness,
    ) -> None:
        result = await harness.engine.execute(_source(spec={"calendarId": "team@example.com"}))

        request = harness.manager.requests[0]
        assert request.callback_url == "https://adapter.example.com/"
        assert request.target == "team@example.com"
        assert request.credentials_json == SERVICE_ACCOUNT_JSON
        assert request.ttl_seconds == 86400
        assert len(request.token) >= 32
        assert result.status.webhook_id == request.channel_id
        assert result.status.webhook_token == request.token

    @pytest.mark.asyncio
    async def test_finalizer_is_persisted_before_subscription(self, harness: _Harness) -> None:
        result = await harness.engine.execute(_source())

        assert harness.store.finalizer_patches == [[FINALIZER_NAME]]
        assert result.finalizers == (FINALIZER_NAME,)

    @pytest.mark.asyncio
    async def test_created_service_is_owned_and_carries_adapter_env(
        self,
        harness: _Harness,
    ) -> None:
        await harness.engine.execute(_source())

        service = harness.serving.services[0]
        owner = service["metadata"]["ownerReferences"][0]
        assert owner["uid"] == "uid-123"
        assert owner["controller"] is True
        container = service["spec"]["template"]["spec"]["containers"][0]
        assert container["image"] == "registry.local/calendar-adapter:1"
        env = {item["name"]: item["value"] for item in container["env"]}
        assert env["SINK_URI"] == "http://sink.default.svc.cluster.local/"
        assert env["PROVIDER"] == "calendar"
        assert env["SOURCE_NAME"] == "team-calendar"


class TestReconcileIdempotency:
    @pytest.mark.asyncio
    async def test_second_pass_reuses_service_and_webhook(self, harness: _Harness) -> None:
        source = _source()
        first = await harness.engine.execute(source)

        second = await harness.engine.execute(_next_source(source, first))

        assert harness.serving.create_calls == 1
        assert len(harness.manager.requests) == 1
        assert second.phase == ReconcilePhase.READY
        assert second.status.webhook_id == first.status.webhook_id

    @pytest.mark.asyncio
    async def test_identical_status_is_not_persisted_again(self, harness: _Harness) -> None:
        source = _source()
        first = await harness.engine.execute(source)

        second = await harness.engine.execute(_next_source(source, first))

        assert second.status == first.status
        assert second.status_persisted is False
        assert len(harness.store.status_patches) == 1
        assert len(harness.store.finalizer_patches) == 1

    @pytest.mark.asyncio
    async def test_last_transition_time_kept_when_status_does_not_change(
        self,
        harness: _Harness,
    ) -> None:
        source = _source()
        first = await harness.engine.execute(source)
        later = NOW + timedelta(minutes=10)
        harness.engine._clock = lambda: later

        second = await harness.engine.execute(_next_source(source, first))

        before = _condition(first, ConditionType.READY).last_transition_time
        after = _condition(second, ConditionType.READY).last_transition_time
        assert before == after == NOW


class TestReconcileRenewal:
    @pytest.mark.asyncio
    async def test_expiring_subscription_is_renewed_and_old_cancelled(
        self,
        harness: _Harness,
    ) -> None:
        source = _source(
            finalizers=(FINALIZER_NAME,),
            status={
                "webhookId": "old-channel",
                "webhookResourceId": "old-resource",
                "webhookToken": "old-token",
                "webhookExpiration": (NOW + timedelta(minutes=30)).isoformat(),
            },
        )

        result = await harness.engine.execute(source)

        assert len(harness.manager.requests) == 1
        new_request = harness.manager.requests[0]
        assert result.status.webhook_id == new_request.channel_id
        assert result.status.webhook_id != "old-channel"
        assert result.status.webhook_token != "old-token"
        assert [call.subscription_id for call in harness.manager.cancelled] == ["old-channel"]
        assert harness.manager.cancelled[0].resource_id == "old-resource"
        assert harness.store.finalizer_patches == []

    @pytest.mark.asyncio
    async def test_subscription_far_from_expiration_is_kept(self, harness: _Harness) -> None:
        source = _source(
            finalizers=(FINALIZER_NAME,),
            status={
                "webhookId": "current-channel",
                "webhookToken": "current-token",
                "webhookExpiration": (NOW + timedelta(hours=12)).isoformat(),
            },
        )

        result = await harness.engine.execute(source)

        assert harness.manager.contacted is False
        assert result.status.webhook_id == "current-channel"
        assert result.status.webhook_token == "current-token"

    @pytest.mark.asyncio
    async def test_failed_cancel_of_old_channel_does_not_fail_renewal(
        self,
        harness: _Harness,
    ) -> None:
        harness.manager.cancel_error = subscription_failure(503)
        source = _source(
            finalizers=(FINALIZER_NAME,),
            status={
                "webhookId": "old-channel",
                "webhookToken": "old-token",
                "webhookExpiration": (NOW - timedelta(minutes=1)).isoformat(),
            },
        )

        result = await harness.engine.execute(source)

        assert result.phase == ReconcilePhase.READY
        assert result.status.webhook_id != "old-channel"

    @pytest.mark.asyncio
    async def test_old_channel_cancelled_only_after_new_status_is_persisted(
        self,
        harness: _Harness,
    ) -> None:
        events: list[str] = []
        patch_status = harness.store.patch_status
        cancel = harness.manager.cancel_subscription

        async def _patch_status(source: Source, status: Any) -> None:
            events.append(f"status:{status.webhook_id}")
            await patch_status(source, status)

        async def _cancel(*args: Any, **kwargs: Any) -> None:
            events.append("cancel")
            await cancel(*args, **kwargs)

        harness.store.patch_status = _patch_status  # type: ignore[method-assign]
        harness.manager.cancel_subscription = _cancel  # type: ignore[method-assign]
        source = _source(
            finalizers=(FINALIZER_NAME,),
            status={
                "webhookId": "old-channel",
                "webhookToken": "old-token",
                "webhookExpiration": (NOW + timedelta(minutes=5)).isoformat(),
            },
        )

        result = await harness.engine.execute(source)

        assert events == [f"status:{result.status.webhook_id}", "cancel"]

    @pytest.mark.asyncio
    async def test_old_channel_kept_when_new_status_is_not_persisted(
        self,
        harness: _Harness,
    ) -> None:
        harness.store.status_error = api_failure()
        source = _source(
            finalizers=(FINALIZER_NAME,),
            status={
                "webhookId": "old-channel",
                "webhookToken": "old-token",
                "webhookExpiration": (NOW + timedelta(minutes=5)).isoformat(),
            },
        )

        result = await harness.engine.execute(source)

        assert len(harness.manager.requests) == 1
        assert harness.manager.cancelled == []
        assert result.status_persisted is False
        assert result.requeue is True


class TestReconcileFailures:
    @pytest.mark.asyncio
    async def test_missing_secret_marks_secrets_false_and_stops(self, harness: _Harness) -> None:
        harness.secrets.secrets.clear()

        result = await harness.engine.execute(_source())

        secrets = _condition(result, ConditionType.SECRETS_PROVIDED)
        assert secrets.status == ConditionStatus.FALSE
        assert secrets.reason == "GcpCredsSecretNotFound"
        assert _condition(result, ConditionType.SINK_PROVIDED).status == ConditionStatus.UNKNOWN
        assert _condition(result, ConditionType.READY).status == ConditionStatus.FALSE
        assert result.phase == ReconcilePhase.FAILED
        assert result.error is not None
        assert result.requeue is True
        assert harness.serving.create_calls == 0

    @pytest.mark.asyncio
    async def test_secret_api_timeout_marks_read_failed(self) -> None:
        core_api = MagicMock()
        core_api.read_namespaced_secret.side_effect = ReadTimeoutError(
            None, "/api/v1", "Read timed out."
        )
        harness = _Harness(secret_store=KubernetesSecretStore(core_api, timeout_seconds=1.0))

        result = await harness.engine.execute(_source())

        secrets = _condition(result, ConditionType.SECRETS_PROVIDED)
        assert secrets.status == ConditionStatus.FALSE
        assert secrets.reason == "GcpCredsReadFailed"
        assert result.phase == ReconcilePhase.FAILED
        assert result.requeue is True
        assert result.status_persisted is True
        assert harness.serving.create_calls == 0

    @pytest.mark.asyncio
    async def test_missing_secret_key_uses_key_reason(self, harness: _Harness) -> None:
        harness.secrets.secrets[("default", "gcp-creds")] = {"other.json": "{}"}

        result = await harness.engine.execute(_source())

        secrets = _condition(result, ConditionType.SECRETS_PROVIDED)
        assert secrets.status == ConditionStatus.FALSE
        assert secrets.reason == "GcpCredsKeyNotFound"

    @pytest.mark.asyncio
    async def test_sink_not_found_marks_sink_false(self, harness: _Harness) -> None:
        source = _source(spec={"sink": {"apiVersion": "v1", "kind": "Service", "name": ""}})

        result = await harness.engine.execute(source)

        sink = _condition(result, ConditionType.SINK_PROVIDED)
        assert sink.status == ConditionStatus.FALSE
        assert sink.reason == "SinkNotFound"
        assert result.phase == ReconcilePhase.FAILED

    @pytest.mark.asyncio
    async def test_empty_sink_waits_without_error(self, harness: _Harness) -> None:
        harness.sinks.uri = ""

        result = await harness.engine.execute(_source())

        sink = _condition(result, ConditionType.SINK_PROVIDED)
        assert sink.status == ConditionStatus.UNKNOWN
        assert sink.reason == "SinkEmpty"
        assert result.phase == ReconcilePhase.WAITING
        assert result.error is None
        assert result.requeue is True
        assert harness.serving.create_calls == 0

    @pytest.mark.asyncio
    async def test_service_create_failure_marks_service_false(self, harness: _Harness) -> None:
        harness.serving.create_error = api_failure()

        result = await harness.engine.execute(_source())

        service = _condition(result, ConditionType.SERVICE_PROVIDED)
        assert service.status == ConditionStatus.FALSE
        assert service.reason == "ServiceCreateFailed"
        assert _condition(result, ConditionType.SINK_PROVIDED).status == ConditionStatus.TRUE

    @pytest.mark.asyncio
    async def test_route_not_ready_waits_for_domain(self, harness: _Harness) -> None:
        harness.serving.route_ready = False

        result = await harness.engine.execute(_source())

        service = _condition(result, ConditionType.SERVICE_PROVIDED)
        assert service.status == ConditionStatus.UNKNOWN
        assert service.reason == "ServiceDomainNotFound"
        assert result.phase == ReconcilePhase.WAITING
        assert result.requeue is True
        assert harness.manager.contacted is False

    @pytest.mark.asyncio
    async def test_subscription_failure_marks_webhook_false(self, harness: _Harness) -> None:
        harness.manager.create_error = subscription_failure()

        result = await harness.engine.execute(_source())

        webhook = _condition(result, ConditionType.WEBHOOK_PROVIDED)
        assert webhook.status == ConditionStatus.FALSE
        assert webhook.reason == "WebHookCreateFailed"
        assert _condition(result, ConditionType.SERVICE_PROVIDED).status == ConditionStatus.TRUE
        assert result.status.webhook_id == ""
        assert result.phase == ReconcilePhase.FAILED

    @pytest.mark.asyncio
    async def test_drive_without_email_is_invalid_params(self, harness: _Harness) -> None:
        result = await harness.engine.execute(_source("DriveSource"))

        webhook = _condition(result, ConditionType.WEBHOOK_PROVIDED)
        assert webhook.status == ConditionStatus.FALSE
        assert webhook.reason == "WebHookParamsInvalid"
        assert harness.manager.requests == []
        assert harness.store.finalizer_patches == []

    @pytest.mark.asyncio
    async def test_sheets_subscription_targets_spreadsheet(self, harness: _Harness) -> None:
        source = _source("SheetsSource", spec={"spreadsheetId": "sheet-42"})

        result = await harness.engine.execute(source)

        assert result.phase == ReconcilePhase.READY
        assert harness.manager.requests[0].target == "sheet-42"

    @pytest.mark.asyncio
    async def test_status_patch_failure_requeues(self, harness: _Harness) -> None:
        harness.store.status_error = api_failure()

        result = await harness.engine.execute(_source())

        assert result.status_persisted is False
        assert result.requeue is True
        assert result.error is harness.store.status_error


class TestFinalize:
    @pytest.mark.asyncio
    async def test_finalize_without_webhook_contacts_nothing(self, harness: _Harness) -> None:
        source = _source(deleting=True, finalizers=(FINALIZER_NAME, "other/finalizer"))

        result = await harness.engine.execute(source)

        assert harness.manager.contacted is False
        assert harness.secrets.calls == 0
        assert harness.store.finalizer_patches == [["other/finalizer"]]
        assert result.finalizers == ("other/finalizer",)
        assert result.phase == ReconcilePhase.FINALIZED

    @pytest.mark.asyncio
    async def test_finalize_cancels_registered_webhook(self, harness: _Harness) -> None:
        source = _source(
            deleting=True,
            finalizers=(FINALIZER_NAME,),
            spec={"emailAddress": "owner@example.com"},
            status={"webhookId": "channel-1", "webhookResourceId": "res-1"},
        )

        result = await harness.engine.execute(source)

        assert len(harness.manager.cancelled) == 1
        call = harness.manager.cancelled[0]
        assert (call.subscription_id, call.resource_id) == ("channel-1", "res-1")
        assert call.subject == "owner@example.com"
        assert result.finalizers == ()

    @pytest.mark.asyncio
    async def test_cancel_failure_still_removes_finalizer(self, harness: _Harness) -> None:
        harness.manager.cancel_error = subscription_failure(500)
        source = _source(
            deleting=True,
            finalizers=(FINALIZER_NAME,),
            status={"webhookId": "channel-1"},
        )

        result = await harness.engine.execute(source)

        assert harness.store.finalizer_patches == [[]]
        assert result.phase == ReconcilePhase.FINALIZED
        assert result.requeue is False
        assert result.error is None

    @pytest.mark.asyncio
    async def test_missing_credentials_skips_cancel_and_removes_finalizer(
        self,
        harness: _Harness,
    ) -> None:
        harness.secrets.secrets.clear()
        source = _source(
            deleting=True,
            finalizers=(FINALIZER_NAME,),
            status={"webhookId": "channel-1"},
        )

        result = await harness.engine.execute(source)

        assert harness.manager.cancelled == []
        assert result.finalizers == ()

    @pytest.mark.asyncio
    async def test_secret_api_timeout_skips_cancel_and_removes_finalizer(self) -> None:
        core_api = MagicMock()
        core_api.read_namespaced_secret.side_effect = ReadTimeoutError(
            None, "/api/v1", "Read timed out."
        )
        harness = _Harness(secret_store=KubernetesSecretStore(core_api, timeout_seconds=1.0))
        source = _source(
            deleting=True,
            finalizers=(FINALIZER_NAME,),
            status={"webhookId": "channel-1"},
        )

        result = await harness.engine.execute(source)

        assert harness.manager.cancelled == []
        assert harness.store.finalizer_patches == [[]]
        assert result.phase == ReconcilePhase.FINALIZED
        assert result.error is None

    @pytest.mark.asyncio
    async def test_finalizer_patch_failure_requeues(self, harness: _Harness) -> None:
        harness.store.finalizer_error = api_failure()
        source = _source(deleting=True, finalizers=(FINALIZER_NAME,))

        result = await harness.engine.execute(source)

        assert result.requeue is True
        assert result.phase == ReconcilePhase.FINALIZING
        assert result.finalizers == (FINALIZER_NAME,)

    @pytest.mark.asyncio
    async def test_deleting_source_never_provisions(self, harness: _Harness) -> None:
        await harness.engine.execute(_source(deleting=True))

        assert harness.serving.create_calls == 0
        assert harness.store.status_patches == []
