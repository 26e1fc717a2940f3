"""Summary: FastAPI bridge between the browser dashboard and the sync layer.

Importance: Exposes credential, report, and messaging operations to UI clients.
Alternatives: Embed the sync layer in the UI or use a different web framework.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from opsdash.app import AppServices, build_services
from opsdash.config import AppConfig
from opsdash.credentials import ADS, ANALYTICS, MESSAGING, PROVIDERS
from opsdash.errors import (
    AuthError,
    ConfigurationMissingError,
    EmptyResultError,
    IntegrationError,
    NetworkError,
    ProviderError,
)
from opsdash.models import AdsConfig, AnalyticsConfig, MessagingConfig
from opsdash.services import AnalyticsSnapshot, MarketingSnapshot
from opsdash.storage.kv_store import KeyValueStore


ERROR_STATUS: dict[type, int] = {
    ConfigurationMissingError: 409,
    AuthError: 401,
    EmptyResultError: 404,
    ProviderError: 502,
    NetworkError: 503,
}


class AdsConfigRequest(BaseModel):
    """Summary: Request payload for ad account credentials.

    Importance: Keeps credential inputs explicit for API clients.
    Alternatives: Accept credentials as query parameters.
    """

    account_id: str
    access_token: str


class AnalyticsConfigRequest(BaseModel):
    """Summary: Request payload for analytics OAuth credentials."""

    property_id: str
    client_id: str
    client_secret: str
    refresh_token: str


class MessagingConfigRequest(BaseModel):
    """Summary: Request payload for messaging credentials."""

    phone_number_id: str
    access_token: str
    business_account_id: str = ""


class ContactCreateRequest(BaseModel):
    """Summary: Request payload for starting a conversation.

    Importance: Registers a contact before the first message is sent.
    Alternatives: Create contacts implicitly on first send.
    """

    name: str = Field(min_length=1)
    phone: str = Field(min_length=1)


class SendMessageRequest(BaseModel):
    """Summary: Request payload for sending a text message."""

    phone: str = Field(min_length=1)
    text: str = Field(min_length=1)


def create_app(config: AppConfig, store: KeyValueStore | None = None) -> FastAPI:
    """Summary: Create a FastAPI app wired to opsdash services.

    Importance: Ensures the API layer shares the same configuration and storage.
    Alternatives: Instantiate services globally outside the factory.
    """

    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    app = FastAPI(title="opsdash API", version="0.1.0")
    services: AppServices = build_services(config, store)

    @app.exception_handler(IntegrationError)
    async def integration_error(_request: Request, exc: IntegrationError) -> JSONResponse:
        """Summary: Map error kinds to HTTP responses.

        Importance: Lets the UI branch on status and kind instead of message text.
        Alternatives: Return 500 for every adapter failure.
        """

        status = next(
            (code for kind, code in ERROR_STATUS.items() if isinstance(exc, kind)), 500
        )
        return JSONResponse(
            status_code=status,
            content={"kind": type(exc).__name__, "provider": exc.provider, "detail": exc.message},
        )

    def require_api_key(x_api_key: str | None = Header(default=None)) -> None:
        """Summary: Enforce API key authentication when configured.

        Importance: Adds a minimal security layer for local deployments.
        Alternatives: Use OAuth or session-based authentication.
        """

        if not config.api_key:
            return
        if x_api_key != config.api_key:
            raise HTTPException(status_code=401, detail="Invalid API key")

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/connections", dependencies=[Depends(require_api_key)])
    def connection_status() -> dict[str, bool]:
        """Summary: Report which providers are configured.

        Importance: Lets the UI decide between setup forms and live views.
        Alternatives: Probe each provider with a live request.
        """

        return services.connections.status()

    @app.put("/connections/ads", dependencies=[Depends(require_api_key)])
    def save_ads(payload: AdsConfigRequest) -> dict[str, Any]:
        saved = services.connections.save_ads(
            AdsConfig(account_id=payload.account_id, access_token=payload.access_token)
        )
        return {
            "provider": ADS,
            "configured": services.ads.is_configured(),
            "accountId": saved.account_id,
        }

    @app.put("/connections/analytics", dependencies=[Depends(require_api_key)])
    def save_analytics(payload: AnalyticsConfigRequest) -> dict[str, Any]:
        saved = services.connections.save_analytics(
            AnalyticsConfig(
                property_id=payload.property_id,
                client_id=payload.client_id,
                client_secret=payload.client_secret,
                refresh_token=payload.refresh_token,
            )
        )
        return {
            "provider": ANALYTICS,
            "configured": services.analytics.is_configured(),
            "propertyId": saved.property_id,
        }

    @app.put("/connections/messaging", dependencies=[Depends(require_api_key)])
    def save_messaging(payload: MessagingConfigRequest) -> dict[str, Any]:
        saved = services.connections.save_messaging(
            MessagingConfig(
                phone_number_id=payload.phone_number_id,
                access_token=payload.access_token,
                business_account_id=payload.business_account_id,
            )
        )
        return {
            "provider": MESSAGING,
            "configured": services.messaging.is_configured(),
            "phoneNumberId": saved.phone_number_id,
        }

    @app.delete("/connections/{provider}", dependencies=[Depends(require_api_key)])
    def disconnect(provider: str) -> dict[str, Any]:
        """Summary: Clear stored credentials for a provider.

        Importance: Backs the disconnect action on each view.
        Alternatives: Overwrite credentials with blanks.
        """

        if provider not in PROVIDERS:
            raise HTTPException(status_code=404, detail="Unknown provider")
        services.connections.disconnect(provider)
        return {"provider": provider, "configured": False}

    @app.get("/ads/insights", dependencies=[Depends(require_api_key)])
    def ads_insights() -> list[dict[str, Any]]:
        return [insight.to_dict() for insight in services.ads.fetch_insights()]

    @app.get("/marketing", dependencies=[Depends(require_api_key)])
    def marketing() -> dict[str, Any]:
        """Summary: Ad-set metrics with the AI strategy.

        Importance: Single call for the marketing view.
        Alternatives: Let the UI call insights and strategy separately.
        """

        return _marketing_payload(services.marketing.load())

    @app.post("/marketing/connect", dependencies=[Depends(require_api_key)])
    def marketing_connect(payload: AdsConfigRequest) -> dict[str, Any]:
        snapshot = services.marketing.connect(
            AdsConfig(account_id=payload.account_id, access_token=payload.access_token)
        )
        return _marketing_payload(snapshot)

    @app.get("/analytics/report", dependencies=[Depends(require_api_key)])
    def analytics_report() -> list[dict[str, Any]]:
        return [point.to_dict() for point in services.analytics.fetch_time_series()]

    @app.get("/analytics/leads", dependencies=[Depends(require_api_key)])
    def analytics_leads() -> list[dict[str, Any]]:
        return [lead.to_dict() for lead in services.analytics.fetch_lead_details()]

    @app.get("/dashboard", dependencies=[Depends(require_api_key)])
    def dashboard() -> dict[str, Any]:
        """Summary: Analytics reports with AI insights.

        Importance: Single call for the main dashboard view.
        Alternatives: Fetch reports and insights separately.
        """

        return _dashboard_payload(services.dashboard.load())

    @app.get("/messaging/contacts", dependencies=[Depends(require_api_key)])
    def list_contacts() -> list[dict[str, Any]]:
        return [contact.to_dict() for contact in services.messaging.list_contacts()]

    @app.post("/messaging/contacts", dependencies=[Depends(require_api_key)])
    def create_contact(payload: ContactCreateRequest) -> dict[str, Any]:
        contact = services.chat.start_conversation(payload.name, payload.phone)
        return contact.to_dict()

    @app.get("/messaging/contacts/{phone}/history", dependencies=[Depends(require_api_key)])
    def contact_history(phone: str) -> list[dict[str, Any]]:
        return [message.to_dict() for message in services.messaging.get_history(phone)]

    @app.post("/messaging/send", dependencies=[Depends(require_api_key)])
    def send_message(payload: SendMessageRequest) -> dict[str, Any]:
        """Summary: Send a message and record it in the contact's history.

        Importance: Drives the messaging view's composer.
        Alternatives: Let the UI call the provider directly.
        """

        try:
            message = services.chat.send(payload.phone, payload.text)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return message.to_dict()

    return app


def _marketing_payload(snapshot: MarketingSnapshot) -> dict[str, Any]:
    return {
        "adSets": [item.to_dict() for item in snapshot.ad_sets],
        "strategy": snapshot.strategy.to_dict() if snapshot.strategy else None,
        "best": snapshot.best.to_dict() if snapshot.best else None,
        "worst": snapshot.worst.to_dict() if snapshot.worst else None,
    }


def _dashboard_payload(snapshot: AnalyticsSnapshot) -> dict[str, Any]:
    return {
        "timeSeries": [point.to_dict() for point in snapshot.time_series],
        "leads": [lead.to_dict() for lead in snapshot.leads],
        "insights": [insight.to_dict() for insight in snapshot.insights],
    }


def serve() -> None:
    """Summary: Run the API with uvicorn using environment configuration.

    Importance: Provides the local entry point the browser dashboard talks to.
    Alternatives: Run uvicorn from the command line with an app factory.
    """

    import uvicorn

    config = AppConfig.from_env()
    uvicorn.run(create_app(config), host=config.api_host, port=config.api_port, log_level="info")


if __name__ == "__main__":
    serve()
