"""Summary: Domain model dataclasses for opsdash.

Importance: Defines the records shared across adapters, storage, and services.
Alternatives: Use Pydantic models or plain dictionaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


ADS_ACCOUNT_PREFIX = "act_"


def _text(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    return value if isinstance(value, str) else ""


@dataclass(frozen=True)
class AdsConfig:
    """Summary: Credentials for the advertising insights API.

    Importance: Identifies the ad account and authorizes insight reads.
    Alternatives: Store a single combined connection string.
    """

    account_id: str
    access_token: str

    required_fields = ("account_id", "access_token")

    def normalized(self) -> "AdsConfig":
        """Summary: Apply the ad account prefix rule.

        Importance: The graph API only accepts account ids carrying the act_ prefix.
        Alternatives: Ask users to type the prefix themselves.
        """

        account_id = self.account_id.strip()
        if account_id and not account_id.startswith(ADS_ACCOUNT_PREFIX):
            account_id = f"{ADS_ACCOUNT_PREFIX}{account_id}"
        return AdsConfig(account_id=account_id, access_token=self.access_token)

    def to_dict(self) -> dict[str, Any]:
        return {"adAccountId": self.account_id, "accessToken": self.access_token}

    @staticmethod
    def from_dict(payload: dict[str, Any]) -> "AdsConfig":
        return AdsConfig(
            account_id=_text(payload, "adAccountId"),
            access_token=_text(payload, "accessToken"),
        )


@dataclass(frozen=True)
class AnalyticsConfig:
    """Summary: OAuth client and property settings for the analytics API.

    Importance: Holds everything needed to mint access tokens and run reports.
    Alternatives: Store a service-account key file instead.
    """

    property_id: str
    client_id: str
    client_secret: str
    refresh_token: str

    required_fields = ("property_id", "client_id", "client_secret", "refresh_token")

    def normalized(self) -> "AnalyticsConfig":
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "propertyId": self.property_id,
            "clientId": self.client_id,
            "clientSecret": self.client_secret,
            "refreshToken": self.refresh_token,
        }

    @staticmethod
    def from_dict(payload: dict[str, Any]) -> "AnalyticsConfig":
        return AnalyticsConfig(
            property_id=_text(payload, "propertyId"),
            client_id=_text(payload, "clientId"),
            client_secret=_text(payload, "clientSecret"),
            refresh_token=_text(payload, "refreshToken"),
        )


@dataclass(frozen=True)
class MessagingConfig:
    """Summary: Credentials for the messaging cloud API.

    Importance: Identifies the sending phone number and authorizes sends.
    Alternatives: Use per-message credentials.
    """

    phone_number_id: str
    access_token: str
    business_account_id: str = ""

    required_fields = ("phone_number_id", "access_token")

    def normalized(self) -> "MessagingConfig":
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "phoneNumberId": self.phone_number_id,
            "accessToken": self.access_token,
            "businessAccountId": self.business_account_id,
        }

    @staticmethod
    def from_dict(payload: dict[str, Any]) -> "MessagingConfig":
        return MessagingConfig(
            phone_number_id=_text(payload, "phoneNumberId"),
            access_token=_text(payload, "accessToken"),
            business_account_id=_text(payload, "businessAccountId"),
        )


ProviderConfig = AdsConfig | AnalyticsConfig | MessagingConfig


def has_required_fields(config: ProviderConfig) -> bool:
    """Summary: Check that every required field is a non-empty string.

    Importance: Defines what "configured" means for each provider.
    Alternatives: Validate credentials against the provider on save.
    """

    return all(
        isinstance(getattr(config, name), str) and getattr(config, name)
        for name in config.required_fields
    )


@dataclass(frozen=True)
class AdSetInsight:
    """Summary: Derived performance metrics for one ad set.

    Importance: Normalized shape consumed by the marketing view and the strategy summarizer.
    Alternatives: Pass raw insight rows to the UI.
    """

    name: str
    spend: float
    clicks: int
    impressions: int
    conversions: int
    cost_per_conversion: float
    roi: float

    @staticmethod
    def from_counters(
        name: str,
        spend: float,
        clicks: int,
        impressions: int,
        conversions: int,
        conversion_value: float,
    ) -> "AdSetInsight":
        """Summary: Compute cost per conversion and ROI from raw counters.

        Importance: Zero denominators yield 0 instead of a division error.
        Alternatives: Return None for undefined ratios.
        """

        cost_per_conversion = spend / conversions if conversions > 0 else 0.0
        roi = conversion_value / spend if spend > 0 else 0.0
        return AdSetInsight(
            name=name,
            spend=spend,
            clicks=clicks,
            impressions=impressions,
            conversions=conversions,
            cost_per_conversion=cost_per_conversion,
            roi=roi,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "spend": self.spend,
            "clicks": self.clicks,
            "impressions": self.impressions,
            "conversions": self.conversions,
            "costPerConv": self.cost_per_conversion,
            "roi": self.roi,
        }


@dataclass(frozen=True)
class AnalyticsDataPoint:
    """Summary: Daily traffic and conversions for the analytics chart."""

    label: str
    traffic: int
    conversions: int

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.label, "traffic": self.traffic, "conv": self.conversions}


@dataclass(frozen=True)
class LeadDetail:
    """Summary: Session breakdown by date and acquisition channel.

    Importance: Feeds the lead table and the short lead summary sent to the summarizer.
    Alternatives: Aggregate by source only.
    """

    date: str
    source: str
    medium: str
    campaign: str
    sessions: int
    users: int
    conversions: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "source": self.source,
            "medium": self.medium,
            "campaign": self.campaign,
            "sessions": self.sessions,
            "users": self.users,
            "conversions": self.conversions,
        }


@dataclass(frozen=True)
class Contact:
    """Summary: A messaging contact keyed by phone number.

    Importance: Drives the conversation list and message history lookups.
    Alternatives: Key contacts by a generated id only.
    """

    id: str
    name: str
    phone: str
    last_message_preview: str = ""
    unread_count: int = 0
    avatar_url: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "lastMessage": self.last_message_preview,
            "unreadCount": self.unread_count,
            "avatar": self.avatar_url,
        }

    @staticmethod
    def from_dict(payload: dict[str, Any]) -> "Contact":
        unread = payload.get("unreadCount")
        return Contact(
            id=str(payload.get("id", "")),
            name=_text(payload, "name"),
            phone=_text(payload, "phone"),
            last_message_preview=_text(payload, "lastMessage"),
            unread_count=unread if isinstance(unread, int) else 0,
            avatar_url=_text(payload, "avatar"),
        )


SENDER_SELF = "self"
SENDER_COUNTERPARTY = "counterparty"


@dataclass(frozen=True)
class ChatMessage:
    """Summary: A single message in a contact's history."""

    id: str
    sender: str
    text: str
    timestamp: str
    delivery_status: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "sender": self.sender,
            "text": self.text,
            "timestamp": self.timestamp,
            "status": self.delivery_status,
        }

    @staticmethod
    def from_dict(payload: dict[str, Any]) -> "ChatMessage":
        status = payload.get("status")
        return ChatMessage(
            id=str(payload.get("id", "")),
            sender=_text(payload, "sender") or SENDER_SELF,
            text=_text(payload, "text"),
            timestamp=_text(payload, "timestamp"),
            delivery_status=status if isinstance(status, str) else None,
        )


@dataclass(frozen=True)
class BusinessInsight:
    """Summary: An AI-generated observation with a recommendation.

    Importance: Gives the dashboard a readable summary of raw metrics.
    Alternatives: Show only charts without commentary.
    """

    title: str
    description: str
    recommendation: str
    impact: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "recommendation": self.recommendation,
            "impact": self.impact,
        }


@dataclass(frozen=True)
class AdStrategy:
    """Summary: AI-selected winning ad set and next steps."""

    winner: str
    reasoning: str
    tactical_advice: list[str] = field(default_factory=list)
    scaling_potential: str = "low"

    def to_dict(self) -> dict[str, Any]:
        return {
            "winner": self.winner,
            "reasoning": self.reasoning,
            "tacticalAdvice": list(self.tactical_advice),
            "scalingPotential": self.scaling_potential,
        }
