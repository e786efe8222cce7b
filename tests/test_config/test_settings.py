"""Testes de carga e validacao das settings do controller e do adapter."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from pydantic import ValidationError

from config.settings import (
    FINALIZER_NAME,
    AdapterSettings,
    BaseSettings,
    ControllerSettings,
    get_adapter_settings,
    get_base_settings,
    get_controller_settings,
)


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Iterator[None]:
    get_adapter_settings.cache_clear()
    get_base_settings.cache_clear()
    get_controller_settings.cache_clear()
    yield
    get_adapter_settings.cache_clear()
    get_base_settings.cache_clear()
    get_controller_settings.cache_clear()


def _complete_controller() -> ControllerSettings:
    return ControllerSettings(
        calendar_adapter_image="registry/calendar:1",
        drive_adapter_image="registry/drive:1",
        sheets_adapter_image="registry/sheets:1",
    )


class TestBaseSettings:
    def test_defaults_are_valid(self) -> None:
        assert BaseSettings().validate() == []

    def test_empty_service_name_is_rejected(self) -> None:
        assert BaseSettings(service_name="").validate() == ["SERVICE_NAME não pode ser vazio"]

    def test_environment_aliases(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "prod")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        settings = get_base_settings()

        assert settings.is_production
        assert settings.log_level == "DEBUG"


class TestControllerSettings:
    def test_complete_settings_are_valid(self) -> None:
        assert _complete_controller().validate_settings() == []

    def test_missing_images_are_reported(self) -> None:
        errors = ControllerSettings().validate_settings()

        assert "CALENDAR_RA_IMAGE não configurado" in errors
        assert "DRIVE_RA_IMAGE não configurado" in errors
        assert "SHEETS_RA_IMAGE não configurado" in errors

    def test_renewal_lead_must_be_shorter_than_ttl(self) -> None:
        settings = _complete_controller().model_copy(
            update={"channel_ttl_seconds": 3600, "renewal_lead_seconds": 3600}
        )

        assert settings.validate_settings() == [
            "RENEWAL_LEAD_SECONDS deve ser menor que CHANNEL_TTL_SECONDS"
        ]

    def test_image_for_unknown_provider_is_empty(self) -> None:
        assert _complete_controller().image_for("gmail") == ""

    def test_loads_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CALENDAR_RA_IMAGE", "registry/calendar:2")
        monkeypatch.setenv("RENEWAL_LEAD_SECONDS", "600")
        monkeypatch.setenv("RESYNC_INTERVAL_SECONDS", "60")

        settings = get_controller_settings()

        assert settings.image_for("calendar") == "registry/calendar:2"
        assert settings.renewal_lead.total_seconds() == 600
        assert settings.resync_interval_seconds == 60
        assert settings.finalizer_name == FINALIZER_NAME


class TestAdapterSettings:
    def test_static_token_settings_are_valid(self) -> None:
        settings = AdapterSettings(sink_uri="http://sink/", webhook_token="t")

        assert settings.validate_settings() == []

    def test_token_origin_is_required(self) -> None:
        errors = AdapterSettings(sink_uri="http://sink/").validate_settings()

        assert errors == ["WEBHOOK_TOKEN ou SOURCE_NAME deve ser configurado"]

    def test_invalid_values_are_reported(self) -> None:
        settings = AdapterSettings(provider="gmail", source_name="x", tls_cert_file="cert.pem")

        errors = settings.validate_settings()

        assert "SINK_URI não configurado" in errors
        assert "PROVIDER inválido: gmail" in errors
        assert "TLS_CERT_FILE e TLS_KEY_FILE devem ser definidos juntos" in errors

    def test_loads_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SINK", "http://legacy-sink/")
        monkeypatch.setenv("PROVIDER", " Drive ")
        monkeypatch.setenv("WEBHOOK_TOKEN", "   ")
        monkeypatch.setenv("SOURCE_NAME", "team-drive")
        monkeypatch.setenv("PROCESSING_MODE", "INLINE")

        settings = get_adapter_settings()

        assert settings.sink_uri == "http://legacy-sink/"
        assert settings.provider == "drive"
        assert settings.webhook_token is None
        assert settings.processing_mode == "inline"
        assert settings.validate_settings() == []

    def test_unknown_processing_mode_falls_back_to_async(
        self,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("PROCESSING_MODE", "batch")

        assert get_adapter_settings().processing_mode == "async"

    def test_delivery_and_token_tuning_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TOKEN_REFRESH_INTERVAL_SECONDS", "2.5")
        monkeypatch.setenv("MAX_CONCURRENT_DELIVERIES", "8")
        monkeypatch.setenv("SHUTDOWN_DRAIN_SECONDS", "5")

        settings = get_adapter_settings()

        assert settings.token_refresh_interval_seconds == 2.5
        assert settings.max_concurrent_deliveries == 8
        assert settings.shutdown_drain_seconds == 5.0

    def test_delivery_limit_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            AdapterSettings(max_concurrent_deliveries=0)

    def test_source_key_requires_source_name(self) -> None:
        assert AdapterSettings().source_key == ""
        assert AdapterSettings(source_name="ops", source_namespace="team").source_key == "team/ops"
