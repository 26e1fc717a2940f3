"""Summary: Tests for the messaging adapter and conversation store.

Importance: Ensures sends are well formed and contacts persist without duplicates.
Alternatives: Send test messages to a real phone.
"""

from __future__ import annotations

from typing import Any

import pytest

from opsdash.conversations import ConversationStore, new_contact
from opsdash.credentials import CredentialStore
from opsdash.errors import ConfigurationMissingError, NetworkError, ProviderError
from opsdash.http import HttpResponse
from opsdash.messaging import MessagingAdapter, normalize_phone
from opsdash.models import ChatMessage, Contact, MessagingConfig
from opsdash.storage.kv_store import MemoryKeyValueStore


def _adapter(configured: bool = True) -> MessagingAdapter:
    store = MemoryKeyValueStore()
    adapter = MessagingAdapter(
        CredentialStore(store), ConversationStore(store), base_url="https://graph.test/v1"
    )
    if configured:
        adapter.save_config(MessagingConfig(phone_number_id="555000", access_token="token"))
    return adapter


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("+1 (555) 123-4567", "15551234567"), ("15551234567", "15551234567"), ("abc", "")],
)
def test_normalize_phone(raw: str, expected: str) -> None:
    assert normalize_phone(raw) == expected


def test_send_message_payload(monkeypatch: pytest.MonkeyPatch) -> None:
    """Summary: Verify the send payload and endpoint.

    Importance: The provider rejects payloads missing the product marker.
    Alternatives: Inspect requests with a local HTTP server.
    """

    seen: dict[str, Any] = {}

    def fake_send(method: str, url: str, **kwargs: Any) -> HttpResponse:
        seen.update({"method": method, "url": url, **kwargs})
        return HttpResponse(200, {"messages": [{"id": "wamid.1"}]})

    monkeypatch.setattr("opsdash.messaging.send_request", fake_send)
    receipt = _adapter().send_message("+1 (555) 123-4567", "Hello")
    assert receipt["messages"][0]["id"] == "wamid.1"
    assert seen["method"] == "POST"
    assert seen["url"] == "https://graph.test/v1/555000/messages"
    assert seen["headers"]["Authorization"] == "Bearer token"
    assert seen["json_body"] == {
        "messaging_product": "whatsapp",
        "recipient_type": "individual",
        "to": "15551234567",
        "type": "text",
        "text": {"body": "Hello"},
    }


def test_send_message_requires_configuration() -> None:
    with pytest.raises(ConfigurationMissingError):
        _adapter(configured=False).send_message("15551234567", "Hello")


def test_send_message_rejects_number_without_digits() -> None:
    with pytest.raises(ValueError):
        _adapter().send_message("no digits", "Hello")


def test_send_message_provider_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "opsdash.messaging.send_request",
        lambda *args, **kwargs: HttpResponse(400, {"error": {"message": "Invalid parameter", "code": 100}}),
    )
    with pytest.raises(ProviderError, match="Invalid parameter"):
        _adapter().send_message("15551234567", "Hello")


def test_send_message_network_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_send(*args: Any, **kwargs: Any) -> HttpResponse:
        raise NetworkError("Network error: refused", "messaging")

    monkeypatch.setattr("opsdash.messaging.send_request", fake_send)
    with pytest.raises(NetworkError, match="Failed to reach the messaging provider."):
        _adapter().send_message("15551234567", "Hello")


def test_upsert_contact_replaces_by_phone() -> None:
    """Summary: A second contact with the same phone replaces the first.

    Importance: Prevents duplicate conversations in the contact list.
    Alternatives: Deduplicate in the UI.
    """

    conversations = ConversationStore(MemoryKeyValueStore())
    conversations.upsert_contact(Contact(id="1", name="Ana", phone="111"))
    conversations.upsert_contact(Contact(id="2", name="Ben", phone="222"))
    conversations.upsert_contact(Contact(id="1", name="Ana B", phone="111"))
    contacts = conversations.list_contacts()
    assert [contact.name for contact in contacts] == ["Ana B", "Ben"]


def test_history_appends_per_phone() -> None:
    conversations = ConversationStore(MemoryKeyValueStore())
    assert conversations.get_history("111") == []
    first = ChatMessage(id="m1", sender="self", text="hi", timestamp="09:00", delivery_status="sent")
    second = ChatMessage(id="m2", sender="counterparty", text="hello", timestamp="09:01")
    conversations.append_message("111", first)
    conversations.append_message("111", second)
    conversations.append_message("222", first)
    assert conversations.get_history("111") == [first, second]
    assert len(conversations.get_history("222")) == 1


def test_new_contact_defaults() -> None:
    contact = new_contact("Ana Lopez", "111")
    assert contact.last_message_preview == "Chat started"
    assert contact.unread_count == 0
    assert "Ana%20Lopez" in contact.avatar_url
    assert contact.id.isdigit()


def test_same_name_different_phone_stays_distinct() -> None:
    conversations = ConversationStore(MemoryKeyValueStore())
    conversations.upsert_contact(Contact(id="1", name="Ana", phone="111"))
    conversations.upsert_contact(Contact(id="2", name="Ana", phone="222"))
    assert [contact.phone for contact in conversations.list_contacts()] == ["111", "222"]
