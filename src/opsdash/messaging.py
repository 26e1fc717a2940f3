"""Summary: Messaging cloud API adapter.

Importance: Sends text messages to customers and exposes the local conversation store.
Alternatives: Use a third-party messaging SDK.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from opsdash.conversations import ConversationStore
from opsdash.credentials import MESSAGING, CredentialStore
from opsdash.errors import ConfigurationMissingError, NetworkError, ProviderError
from opsdash.http import send_request
from opsdash.models import ChatMessage, Contact, MessagingConfig


logger = logging.getLogger(__name__)

DEFAULT_GRAPH_URL = "https://graph.facebook.com/v21.0"


def normalize_phone(phone: str) -> str:
    """Summary: Strip every non-digit character from a phone number.

    Importance: The send endpoint expects bare digits including the country code.
    Alternatives: Parse numbers with the phonenumbers library.
    """

    return re.sub(r"\D", "", phone)


class MessagingAdapter:
    """Summary: Sends messages and manages local contacts and history.

    Importance: Keeps network sends and local persistence behind one interface.
    Alternatives: Split sending and storage into unrelated services.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        conversations: ConversationStore,
        base_url: str = DEFAULT_GRAPH_URL,
        timeout: float = 10,
    ) -> None:
        self._credentials = credentials
        self._conversations = conversations
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def is_configured(self) -> bool:
        return self._credentials.is_configured(MESSAGING)

    def save_config(self, config: MessagingConfig) -> MessagingConfig:
        return self._credentials.save(MESSAGING, config)

    def clear_config(self) -> None:
        self._credentials.clear(MESSAGING)

    def send_message(self, to_phone: str, text: str) -> dict[str, Any]:
        """Summary: Send a text message to a phone number.

        Importance: Returns the provider receipt so callers can record the message id.
        Alternatives: Queue messages and send them in the background.
        """

        config = self._credentials.get(MESSAGING)
        if config is None or not self.is_configured():
            raise ConfigurationMissingError(
                "Messaging API not configured. Enter your phone number ID and access token.",
                MESSAGING,
            )
        recipient = normalize_phone(to_phone)
        if not recipient:
            raise ValueError(f"Phone number has no digits: {to_phone!r}")
        payload = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": recipient,
            "type": "text",
            "text": {"body": text},
        }
        try:
            response = send_request(
                "POST",
                f"{self._base_url}/{config.phone_number_id}/messages",
                headers={"Authorization": f"Bearer {config.access_token}"},
                json_body=payload,
                timeout=self._timeout,
                provider=MESSAGING,
            )
        except NetworkError as exc:
            raise NetworkError("Failed to reach the messaging provider.", MESSAGING) from exc
        if not response.ok:
            message = response.error_message()
            logger.error("Message send failed (%s): %s", response.status, message)
            raise ProviderError(
                message or "Messaging API error: check your access token or phone number ID.",
                MESSAGING,
                status=response.status,
                code=response.error_code(),
            )
        logger.info("Sent message to number ending %s.", recipient[-4:])
        return response.payload

    def list_contacts(self) -> list[Contact]:
        return self._conversations.list_contacts()

    def upsert_contact(self, contact: Contact) -> None:
        self._conversations.upsert_contact(contact)

    def get_history(self, phone: str) -> list[ChatMessage]:
        return self._conversations.get_history(phone)

    def append_message(self, phone: str, message: ChatMessage) -> None:
        self._conversations.append_message(phone, message)
