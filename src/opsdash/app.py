"""Summary: Application factory wiring core services.

Importance: Centralizes dependency creation for the API layer and tests.
Alternatives: Instantiate adapters manually in each entrypoint.
"""

from __future__ import annotations

from dataclasses import dataclass

from opsdash.ads import AdsInsightsAdapter
from opsdash.ai import AiProviderFactory, InsightSummarizer
from opsdash.analytics import AnalyticsReportingAdapter
from opsdash.config import AppConfig
from opsdash.conversations import ConversationStore
from opsdash.credentials import CredentialStore
from opsdash.messaging import MessagingAdapter
from opsdash.services import (
    AnalyticsDashboardService,
    ChatService,
    ConnectionService,
    MarketingService,
)
from opsdash.storage.kv_store import KeyValueStore
from opsdash.storage.sqlite_store import SqliteKeyValueStore, default_store_path


@dataclass(frozen=True)
class AppServices:
    """Summary: Bundle of adapters and services for opsdash.

    Importance: Simplifies passing dependencies to the API layer.
    Alternatives: Use a dependency injection container.
    """

    credentials: CredentialStore
    ads: AdsInsightsAdapter
    analytics: AnalyticsReportingAdapter
    messaging: MessagingAdapter
    connections: ConnectionService
    dashboard: AnalyticsDashboardService
    marketing: MarketingService
    chat: ChatService


def build_services(config: AppConfig, store: KeyValueStore | None = None) -> AppServices:
    """Summary: Build adapters and services from configuration.

    Importance: Provides a single construction path; tests may pass an in-memory store.
    Alternatives: Construct dependencies separately per request.
    """

    if store is None:
        sqlite_store = SqliteKeyValueStore(config.storage_path or default_store_path())
        sqlite_store.initialize()
        store = sqlite_store
    credentials = CredentialStore(store)
    ads = AdsInsightsAdapter(credentials, config.ads_base_url, config.http_timeout)
    analytics = AnalyticsReportingAdapter(
        credentials,
        base_url=config.analytics_base_url,
        token_url=config.analytics_token_url,
        timeout=config.http_timeout,
    )
    messaging = MessagingAdapter(
        credentials,
        ConversationStore(store),
        base_url=config.messaging_base_url,
        timeout=config.http_timeout,
    )
    summarizer = InsightSummarizer(AiProviderFactory(config).build())
    return AppServices(
        credentials=credentials,
        ads=ads,
        analytics=analytics,
        messaging=messaging,
        connections=ConnectionService(ads=ads, analytics=analytics, messaging=messaging),
        dashboard=AnalyticsDashboardService(analytics=analytics, summarizer=summarizer),
        marketing=MarketingService(ads=ads, summarizer=summarizer),
        chat=ChatService(messaging=messaging),
    )
