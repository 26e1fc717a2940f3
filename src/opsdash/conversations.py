"""Summary: Local persistence for messaging contacts and history.

Importance: Keeps the conversation list and sent messages without a provider inbox API.
Alternatives: Fetch history from the messaging provider via webhooks.
"""

from __future__ import annotations

import logging
import time
import urllib.parse

from opsdash.models import ChatMessage, Contact
from opsdash.storage.kv_store import KeyValueStore, read_json, write_json


logger = logging.getLogger(__name__)

CONTACTS_KEY = "opsdash.messaging.contacts"
HISTORY_KEY = "opsdash.messaging.history"
AVATAR_URL = "https://ui-avatars.com/api/?name={name}&background=random"


class ConversationStore:
    """Summary: Contacts keyed by phone and per-phone message history.

    Importance: Upserts by phone so a contact never appears twice.
    Alternatives: Store each contact under its own key.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def list_contacts(self) -> list[Contact]:
        payload = read_json(self._store, CONTACTS_KEY)
        if not isinstance(payload, list):
            return []
        return [Contact.from_dict(item) for item in payload if isinstance(item, dict)]

    def upsert_contact(self, contact: Contact) -> None:
        """Summary: Replace the contact with the same phone, else append.

        Importance: Keeps the position of existing contacts stable.
        Alternatives: Move updated contacts to the top of the list.
        """

        contacts = self.list_contacts()
        for index, existing in enumerate(contacts):
            if existing.phone == contact.phone:
                contacts[index] = contact
                break
        else:
            contacts.append(contact)
        write_json(self._store, CONTACTS_KEY, [item.to_dict() for item in contacts])
        logger.info("Saved contact %s.", contact.id)

    def get_history(self, phone: str) -> list[ChatMessage]:
        history = self._load_history()
        return [ChatMessage.from_dict(item) for item in history.get(phone, []) if isinstance(item, dict)]

    def append_message(self, phone: str, message: ChatMessage) -> None:
        """Summary: Append a message to a phone's history.

        Importance: Creates the history list on first use.
        Alternatives: Deduplicate by message id.
        """

        history = self._load_history()
        history.setdefault(phone, []).append(message.to_dict())
        write_json(self._store, HISTORY_KEY, history)

    def _load_history(self) -> dict[str, list]:
        payload = read_json(self._store, HISTORY_KEY)
        if not isinstance(payload, dict):
            return {}
        return {phone: items for phone, items in payload.items() if isinstance(items, list)}


def new_contact(name: str, phone: str) -> Contact:
    """Summary: Build a contact for a freshly started conversation.

    Importance: Gives new contacts a time-based id and a generated avatar.
    Alternatives: Require callers to supply every field.
    """

    return Contact(
        id=str(int(time.time() * 1000)),
        name=name,
        phone=phone,
        last_message_preview="Chat started",
        unread_count=0,
        avatar_url=AVATAR_URL.format(name=urllib.parse.quote(name)),
    )
