"""Gerenciadores de canais de push (watch) das APIs do Google.

Cada provider tem um manager concreto; todos compartilham autenticacao,
timeout e mapeamento de erros. Chamadas da lib oficial sao sincronas e
rodam em `asyncio.to_thread`.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from app.infra.google.parsers import channel_body, http_status, map_channel
from app.observability import get_correlation_id, record_latency
from utils.errors import ConfigurationError, SubscriptionError

if TYPE_CHECKING:
    from collections.abc import Callable

    from app.domain.subscription import SubscriptionRequest, WebhookSubscription

logger = logging.getLogger(__name__)

CALENDAR_SCOPE = "https://www.googleapis.com/auth/calendar.readonly"
DRIVE_SCOPE = "https://www.googleapis.com/auth/drive.readonly"

_GONE_STATUSES = frozenset({404, 410})


class GoogleWatchManager(ABC):
    """Base dos managers de canal; subclasses definem o watch concreto."""

    component = "google_watch_manager"
    api_name = ""
    api_version = ""
    scope = ""
    use_params_ttl = False

    def __init__(
        self,
        *,
        timeout_seconds: float = 30.0,
        default_ttl_seconds: int | None = None,
    ) -> None:
        self._timeout = timeout_seconds
        self._default_ttl = default_ttl_seconds

    async def create_subscription(self, request: SubscriptionRequest) -> WebhookSubscription:
        self._check_request(request)
        ttl = request.ttl_seconds or self._default_ttl
        body = channel_body(
            channel_id=request.channel_id,
            token=request.token,
            address=request.callback_url,
            ttl_seconds=ttl,
            use_params_ttl=self.use_params_ttl,
        )
        payload = await self._call(
            "create_subscription",
            self._create_sync,
            request.credentials_json,
            request.subject,
            request.target,
            body,
        )
        try:
            subscription = map_channel(payload, token=request.token, address=request.callback_url)
        except ValueError as exc:
            raise SubscriptionError(f"{self.api_name}: resposta de watch invalida") from exc
        logger.info(
            "google_watch_channel_created",
            extra={
                "component": self.component,
                "channel_id": subscription.id,
                "resource_id": subscription.resource_id,
                "expiration": (
                    subscription.expiration.isoformat() if subscription.expiration else None
                ),
                "correlation_id": get_correlation_id(),
            },
        )
        return subscription

    async def cancel_subscription(
        self,
        subscription_id: str,
        resource_id: str | None,
        *,
        credentials_json: str,
        subject: str | None = None,
    ) -> None:
        body: dict[str, Any] = {"id": subscription_id}
        if resource_id:
            body["resourceId"] = resource_id
        try:
            await self._call(
                "cancel_subscription",
                self._stop_sync,
                credentials_json,
                subject,
                body,
            )
        except SubscriptionError as exc:
            if exc.status_code in _GONE_STATUSES:
                logger.info(
                    "google_watch_channel_missing",
                    extra={
                        "component": self.component,
                        "channel_id": subscription_id,
                        "result": "not_found",
                        "correlation_id": get_correlation_id(),
                    },
                )
                return
            raise
        logger.info(
            "google_watch_channel_stopped",
            extra={
                "component": self.component,
                "channel_id": subscription_id,
                "correlation_id": get_correlation_id(),
            },
        )

    def _check_request(self, request: SubscriptionRequest) -> None:
        if not request.callback_url.startswith("https://"):
            raise ConfigurationError(
                "callback do canal precisa ser https",
                reason="WebHookParamsInvalid",
            )

    async def _call(
        self,
        action: str,
        func: Callable[..., dict[str, Any]],
        *args: Any,
    ) -> dict[str, Any]:
        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=self._timeout)
        except HttpError as exc:
            status_code = http_status(exc)
            if status_code not in _GONE_STATUSES:
                self._log_error(action=action, exc=exc)
            raise SubscriptionError(
                f"{self.api_name} {action} falhou",
                status_code=status_code,
            ) from exc
        except TimeoutError as exc:
            self._log_error(action=action, error_type="timeout")
            raise SubscriptionError(f"{self.api_name} {action} excedeu {self._timeout}s") from exc
        except (GoogleAuthError, httplib2.HttpLib2Error, ValueError, KeyError, OSError) as exc:
            self._log_error(action=action, error_type=type(exc).__name__)
            error_name = type(exc).__name__
            raise SubscriptionError(f"{self.api_name} {action} falhou: {error_name}") from exc
        finally:
            record_latency(
                component=self.component,
                operation=action,
                latency_ms=(loop.time() - started) * 1000,
                correlation_id=get_correlation_id(),
            )

    def _build_service_sync(self, credentials_json: str, subject: str | None) -> Any:
        credentials = service_account.Credentials.from_service_account_info(
            json.loads(credentials_json),
            scopes=[self.scope],
        )
        if subject:
            credentials = credentials.with_subject(subject)
        return build(
            self.api_name,
            self.api_version,
            credentials=credentials,
            cache_discovery=False,
        )

    def _create_sync(
        self,
        credentials_json: str,
        subject: str | None,
        target: str | None,
        body: dict[str, Any],
    ) -> dict[str, Any]:
        service = self._build_service_sync(credentials_json, subject)
        return self._watch_sync(service, target, body)

    @abstractmethod
    def _watch_sync(self, service: Any, target: str | None, body: dict[str, Any]) -> dict[str, Any]:
        """Abre o canal no recurso observado pelo provider."""

    def _stop_sync(
        self,
        credentials_json: str,
        subject: str | None,
        body: dict[str, Any],
    ) -> dict[str, Any]:
        service = self._build_service_sync(credentials_json, subject)
        return service.channels().stop(body=body).execute() or {}

    def _log_error(
        self,
        *,
        action: str,
        exc: HttpError | None = None,
        error_type: str | None = None,
    ) -> None:
        extra: dict[str, Any] = {
            "component": self.component,
            "action": action,
            "result": "error",
            "correlation_id": get_correlation_id(),
        }
        if exc is not None:
            extra["status_code"] = http_status(exc)
            extra["error_type"] = type(exc).__name__
            logger.error("google_watch_http_error", extra=extra)
            return
        extra["error_type"] = error_type
        logger.error("google_watch_error", extra=extra)


class CalendarWatchManager(GoogleWatchManager):
    """Canal sobre `events.watch` de um calendario."""

    component = "google_calendar_watch"
    api_name = "calendar"
    api_version = "v3"
    scope = CALENDAR_SCOPE
    use_params_ttl = True

    def _watch_sync(self, service: Any, target: str | None, body: dict[str, Any]) -> dict[str, Any]:
        return service.events().watch(calendarId=target or "primary", body=body).execute()


class DriveWatchManager(GoogleWatchManager):
    """Canal sobre o change feed do Drive (`changes.watch`)."""

    component = "google_drive_watch"
    api_name = "drive"
    api_version = "v3"
    scope = DRIVE_SCOPE

    def _watch_sync(self, service: Any, target: str | None, body: dict[str, Any]) -> dict[str, Any]:
        # Cursor buscado a cada (re)assinatura; reaproveitar perderia ou duplicaria mudancas
        start = service.changes().getStartPageToken().execute()
        page_token = start.get("startPageToken")
        if not page_token:
            raise KeyError("startPageToken")
        logger.debug(
            "google_drive_start_page_token",
            extra={"component": self.component, "correlation_id": get_correlation_id()},
        )
        return service.changes().watch(pageToken=page_token, body=body).execute()


class SheetsWatchManager(GoogleWatchManager):
    """Canal sobre a planilha como arquivo do Drive (`files.watch`)."""

    component = "google_sheets_watch"
    api_name = "drive"
    api_version = "v3"
    scope = DRIVE_SCOPE

    def _check_request(self, request: SubscriptionRequest) -> None:
        super()._check_request(request)
        if not request.target:
            raise ConfigurationError("spreadsheetId obrigatorio", reason="WebHookParamsInvalid")

    def _watch_sync(self, service: Any, target: str | None, body: dict[str, Any]) -> dict[str, Any]:
        return service.files().watch(fileId=target, body=body).execute()
