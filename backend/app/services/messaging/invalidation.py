"""Cache keys for derived messaging views and the eviction fan-out for each mutation.

Every write path calls exactly one CacheInvalidator method after its
transaction commits; the full list of keys a mutation can make stale lives
here and nowhere else.
"""

import logging

from app.core.cache import Cache
from app.models.conversation import ActorRef

logger = logging.getLogger(__name__)

EMPLOYEE_CONVERSATIONS_KEY = "employee_conversations"


def conversation_list_key(actor: ActorRef) -> str:
    return f"conversations:{actor.type.value}:{actor.id}"


def last_message_key(conversation_id: int) -> str:
    return f"last_message:{conversation_id}"


def message_list_key(conversation_id: int) -> str:
    return f"messages:{conversation_id}"


def participants_key(conversation_id: int) -> str:
    return f"participants:{conversation_id}"


def message_count_key(conversation_id: int) -> str:
    return f"message_count:{conversation_id}"


def unread_count_key(actor: ActorRef, conversation_id: int) -> str:
    return f"unread:{actor.type.value}:{actor.id}:{conversation_id}"


class CacheInvalidator:
    def __init__(self, cache: Cache) -> None:
        self.cache = cache

    def conversation_created(self, conversation_id: int, participants: list[ActorRef]) -> None:
        keys = [participants_key(conversation_id), EMPLOYEE_CONVERSATIONS_KEY]
        keys += [conversation_list_key(p) for p in participants]
        self._forget(keys)

    def message_sent(self, conversation_id: int, participants: list[ActorRef]) -> None:
        keys = [
            last_message_key(conversation_id),
            message_list_key(conversation_id),
            message_count_key(conversation_id),
            EMPLOYEE_CONVERSATIONS_KEY,
        ]
        for participant in participants:
            keys.append(conversation_list_key(participant))
            keys.append(unread_count_key(participant, conversation_id))
        self._forget(keys)

    def conversation_read(self, conversation_id: int, reader: ActorRef) -> None:
        self._forget([conversation_list_key(reader), unread_count_key(reader, conversation_id)])

    def participants_added(self, conversation_id: int, participants: list[ActorRef]) -> None:
        # Every member's listing shows the roster, so all of them go stale
        keys = [participants_key(conversation_id)]
        for participant in participants:
            keys.append(conversation_list_key(participant))
            keys.append(unread_count_key(participant, conversation_id))
        self._forget(keys)

    def _forget(self, keys: list[str]) -> None:
        logger.debug(f"Evicting {len(keys)} cache keys")
        self.cache.forget(*keys)
