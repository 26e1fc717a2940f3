"""Summary: Dashboard services for opsdash.

Importance: Orchestrates adapters and the summarizer for each dashboard view.
Alternatives: Call adapters directly from the HTTP layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
from datetime import datetime

from opsdash.ads import AdsInsightsAdapter
from opsdash.ai import InsightSummarizer
from opsdash.analytics import AnalyticsReportingAdapter
from opsdash.conversations import new_contact
from opsdash.credentials import ADS, ANALYTICS, MESSAGING
from opsdash.errors import IntegrationError
from opsdash.messaging import MessagingAdapter
from opsdash.models import (
    SENDER_SELF,
    AdsConfig,
    AdSetInsight,
    AdStrategy,
    AnalyticsConfig,
    AnalyticsDataPoint,
    BusinessInsight,
    ChatMessage,
    Contact,
    LeadDetail,
    MessagingConfig,
)


logger = logging.getLogger(__name__)

LEAD_SUMMARY_SIZE = 5
NO_CONVERSIONS_RANK = 9999.0


@dataclass(frozen=True)
class ConnectionService:
    """Summary: Reports and changes provider connection state.

    Importance: Lets the UI poll readiness uniformly across providers.
    Alternatives: Check each adapter separately in every view.
    """

    ads: AdsInsightsAdapter
    analytics: AnalyticsReportingAdapter
    messaging: MessagingAdapter

    def status(self) -> dict[str, bool]:
        return {
            ADS: self.ads.is_configured(),
            ANALYTICS: self.analytics.is_configured(),
            MESSAGING: self.messaging.is_configured(),
        }

    def save_ads(self, config: AdsConfig) -> AdsConfig:
        return self.ads.save_config(config)

    def save_analytics(self, config: AnalyticsConfig) -> AnalyticsConfig:
        return self.analytics.save_config(config)

    def save_messaging(self, config: MessagingConfig) -> MessagingConfig:
        return self.messaging.save_config(config)

    def disconnect(self, provider: str) -> None:
        """Summary: Clear stored credentials for a provider.

        Importance: Backs the disconnect buttons on each view.
        Alternatives: Keep credentials and mark the provider inactive.
        """

        adapters = {ADS: self.ads, ANALYTICS: self.analytics, MESSAGING: self.messaging}
        if provider not in adapters:
            raise ValueError(f"Unknown provider: {provider}")
        adapters[provider].clear_config()
        logger.info("Disconnected %s.", provider)


@dataclass(frozen=True)
class AnalyticsSnapshot:
    """Summary: Everything the analytics dashboard renders."""

    time_series: list[AnalyticsDataPoint]
    leads: list[LeadDetail]
    insights: list[BusinessInsight] = field(default_factory=list)


@dataclass(frozen=True)
class AnalyticsDashboardService:
    """Summary: Loads analytics reports and summarizes them.

    Importance: Insights are only requested when there is traffic data to analyze.
    Alternatives: Always call the summarizer.
    """

    analytics: AnalyticsReportingAdapter
    summarizer: InsightSummarizer

    def load(self) -> AnalyticsSnapshot:
        time_series = self.analytics.fetch_time_series()
        leads = self.analytics.fetch_lead_details()
        insights: list[BusinessInsight] = []
        if time_series:
            insights = self.summarizer.business_insights(
                {
                    "source": "Analytics monthly data",
                    "metrics": [point.to_dict() for point in time_series],
                    "leadSummary": [lead.to_dict() for lead in leads[:LEAD_SUMMARY_SIZE]],
                }
            )
        logger.info("Loaded analytics dashboard with %s data points.", len(time_series))
        return AnalyticsSnapshot(time_series=time_series, leads=leads, insights=insights)


@dataclass(frozen=True)
class MarketingSnapshot:
    """Summary: Ad-set metrics with the strategy and best and worst performers."""

    ad_sets: list[AdSetInsight]
    strategy: AdStrategy | None
    best: AdSetInsight | None
    worst: AdSetInsight | None


@dataclass(frozen=True)
class MarketingService:
    """Summary: Loads ad insights and asks for a strategy.

    Importance: Powers the marketing view and its first-time connection check.
    Alternatives: Fetch ad data without AI commentary.
    """

    ads: AdsInsightsAdapter
    summarizer: InsightSummarizer

    def load(self) -> MarketingSnapshot:
        ad_sets = self.ads.fetch_insights()
        strategy = self.summarizer.marketing_strategy(ad_sets)
        return MarketingSnapshot(
            ad_sets=ad_sets,
            strategy=strategy,
            best=best_ad_set(ad_sets),
            worst=worst_ad_set(ad_sets),
        )

    def connect(self, config: AdsConfig) -> MarketingSnapshot:
        """Summary: Save credentials and verify them with a live fetch.

        Importance: Credentials that fail verification are not kept.
        Alternatives: Save first and let the next load report the problem.
        """

        self.ads.save_config(config)
        try:
            return self.load()
        except IntegrationError:
            self.ads.clear_config()
            raise


def best_ad_set(ad_sets: list[AdSetInsight]) -> AdSetInsight | None:
    """Summary: Ad set with the lowest cost per conversion.

    Importance: Ad sets without conversions rank last.
    Alternatives: Rank by ROI instead.
    """

    if not ad_sets:
        return None
    return min(ad_sets, key=lambda item: item.cost_per_conversion or NO_CONVERSIONS_RANK)


def worst_ad_set(ad_sets: list[AdSetInsight]) -> AdSetInsight | None:
    if not ad_sets:
        return None
    return max(ad_sets, key=lambda item: item.cost_per_conversion)


@dataclass(frozen=True)
class ChatService:
    """Summary: Conversation workflows on top of the messaging adapter.

    Importance: Only messages the provider accepted are recorded locally.
    Alternatives: Record messages optimistically before sending.
    """

    messaging: MessagingAdapter

    def start_conversation(self, name: str, phone: str) -> Contact:
        if not name or not phone:
            raise ValueError("Contact name and phone are required")
        contact = new_contact(name, phone)
        self.messaging.upsert_contact(contact)
        logger.info("Started conversation %s.", contact.id)
        return contact

    def send(self, phone: str, text: str) -> ChatMessage:
        """Summary: Send a message, then record it and update the contact preview.

        Importance: A failed send leaves history and contacts untouched.
        Alternatives: Store failed messages with a failed status.
        """

        if not text:
            raise ValueError("Message text is required")
        self.messaging.send_message(phone, text)
        now = datetime.now()
        message = ChatMessage(
            id=str(int(now.timestamp() * 1000)),
            sender=SENDER_SELF,
            text=text,
            timestamp=now.strftime("%H:%M"),
            delivery_status="sent",
        )
        self.messaging.append_message(phone, message)
        contact = self._contact_for(phone)
        self.messaging.upsert_contact(replace(contact, last_message_preview=text))
        return message

    def _contact_for(self, phone: str) -> Contact:
        for contact in self.messaging.list_contacts():
            if contact.phone == phone:
                return contact
        return new_contact(phone, phone)
