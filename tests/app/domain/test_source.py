"""Testes do modelo da Source construido a partir do custom object."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from app.domain.conditions import ConditionSet
from app.domain.source import ProviderKind, Source, SourceStatus

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)


def _body() -> dict[str, object]:
    return {
        "apiVersion": "sources.gsuite.dev/v1alpha1",
        "kind": "SheetsSource",
        "metadata": {
            "name": "budget",
            "namespace": "finance",
            "uid": "uid-9",
            "generation": 4,
            "finalizers": ["gsuite-source-controller"],
        },
        "spec": {
            "gcpCredsSecret": {"name": "gcp-creds", "key": "key.json"},
            "sink": {"apiVersion": "eventing.knative.dev/v1", "kind": "Broker", "name": "default"},
            "spreadsheetId": "sheet-42",
            "emailAddress": "owner@example.com",
        },
    }


def test_from_k8s_reads_camel_case_fields() -> None:
    source = Source.from_k8s(_body())

    assert source.provider is ProviderKind.SHEETS
    assert source.key == "finance/budget"
    assert source.metadata.generation == 4
    assert source.metadata.finalizers == ("gsuite-source-controller",)
    assert source.spec.credentials.name == "gcp-creds"
    assert source.spec.sink.kind == "Broker"
    assert source.spec.spreadsheet_id == "sheet-42"
    assert source.spec.calendar_id == "primary"
    assert not source.is_deleting
    assert source.status == SourceStatus()


def test_deletion_timestamp_marks_deleting() -> None:
    body = _body()
    body["metadata"]["deletionTimestamp"] = "2026-01-15T12:00:00Z"  # type: ignore[index]

    assert Source.from_k8s(body).is_deleting


def test_owner_reference_is_controller() -> None:
    reference = Source.from_k8s(_body()).owner_reference()

    assert reference == {
        "apiVersion": "sources.gsuite.dev/v1alpha1",
        "kind": "SheetsSource",
        "name": "budget",
        "uid": "uid-9",
        "controller": True,
        "blockOwnerDeletion": True,
    }


@pytest.mark.parametrize(
    ("kind", "provider"),
    [
        ("CalendarSource", ProviderKind.CALENDAR),
        ("drivesource", ProviderKind.DRIVE),
        ("SheetsSource", ProviderKind.SHEETS),
    ],
)
def test_provider_from_kind(kind: str, provider: ProviderKind) -> None:
    assert ProviderKind.from_kind(kind) is provider


def test_unknown_kind_is_rejected() -> None:
    with pytest.raises(ValueError, match="GmailSource"):
        ProviderKind.from_kind("GmailSource")


def test_provider_names() -> None:
    assert ProviderKind.DRIVE.plural == "drivesources"
    assert ProviderKind.DRIVE.event_type == "dev.knative.source.gsuite.drive"


def test_status_serialization_clears_empty_fields() -> None:
    status = SourceStatus(
        conditions=ConditionSet.initialize(now=NOW).as_tuple(),
        sink_uri="http://sink/",
        observed_generation=2,
    )

    payload = status.to_k8s()

    assert payload["sinkUri"] == "http://sink/"
    assert payload["webhookId"] is None
    assert payload["webhookExpiration"] is None
    assert payload["observedGeneration"] == 2
    assert {c["type"] for c in payload["conditions"]} >= {"Ready", "SinkProvided"}


def test_status_survives_cluster_round_trip() -> None:
    status = SourceStatus(
        conditions=ConditionSet.initialize(now=NOW).as_tuple(),
        webhook_id="channel-1",
        webhook_expiration=NOW,
    )
    body = _body()
    body["status"] = status.to_k8s()

    assert Source.from_k8s(body).status == status
