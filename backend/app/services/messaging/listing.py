"""Cached, enriched read views: conversation listings, message history, stats."""

import logging

from app.core.cache import Cache
from app.core.config import settings
from app.core.errors import ForbiddenError, NotFoundError
from app.models.conversation import ActorRef, ActorType, Conversation
from app.services.directory import Directory
from app.services.messaging.invalidation import (
    EMPLOYEE_CONVERSATIONS_KEY,
    conversation_list_key,
    last_message_key,
    message_count_key,
    message_list_key,
    participants_key,
    unread_count_key,
)
from app.services.messaging.read_state import ReadStateTracker
from app.services.messaging.stores import ConversationStore, MessageStore, format_message, isoformat_utc

logger = logging.getLogger(__name__)

MONITOR_PREVIEW_LENGTH = 100


class ConversationLister:
    def __init__(
        self,
        conversations: ConversationStore,
        messages: MessageStore,
        read_state: ReadStateTracker,
        directory: Directory,
        cache: Cache,
    ) -> None:
        self.conversations = conversations
        self.messages = messages
        self.read_state = read_state
        self.directory = directory
        self.cache = cache

    def list_for(self, actor: ActorRef) -> list[dict]:
        return self.cache.remember(
            conversation_list_key(actor),
            settings.conversation_list_ttl,
            lambda: [self._conversation_view(c, actor) for c in self.conversations.for_actor(actor)],
        )

    def messages_for(self, conversation_id: int, actor: ActorRef) -> list[dict]:
        conversation = self.conversations.require(conversation_id)
        if not self.conversations.is_participant(conversation_id, actor):
            raise ForbiddenError(f"{actor.token} is not a participant in conversation {conversation_id}")
        return self._history(conversation)

    def unread_count(self, conversation: Conversation, actor: ActorRef) -> int:
        return self.cache.remember(
            unread_count_key(actor, conversation.id),  # type: ignore[arg-type]
            settings.unread_count_ttl,
            lambda: self.read_state.unread_count(conversation, actor),
        )

    def last_message(self, conversation: Conversation) -> dict | None:
        return self.cache.remember(
            last_message_key(conversation.id),  # type: ignore[arg-type]
            settings.last_message_ttl,
            lambda: self._last_message_view(conversation),
        )

    def roster(self, conversation_id: int) -> list[dict]:
        """Participants with their display info, cached for the profile TTL."""
        return self.cache.remember(
            participants_key(conversation_id),
            settings.participant_info_ttl,
            lambda: [self._participant_view(a) for a in self.conversations.actors(conversation_id)],
        )

    def group_stats(self, conversation_id: int, actor: ActorRef) -> dict:
        conversation = self.conversations.get(conversation_id)
        if conversation is None or not conversation.is_group:
            raise NotFoundError(f"Group conversation {conversation_id} not found")
        if not self.conversations.is_participant(conversation_id, actor):
            raise ForbiddenError(f"{actor.token} is not a participant in conversation {conversation_id}")

        last = self.last_message(conversation)
        return {
            "totalMessages": self.messages.count(conversation),
            "participantsCount": len(self.roster(conversation_id)),
            "messagesWithAttachments": self.messages.count(conversation, with_attachments=True),
            "lastActivity": last["timestamp"] if last else None,
        }

    def employee_conversations(self) -> list[dict]:
        """Admin monitoring view of private conversations between two employees."""
        def build() -> list[dict]:
            views = [self._monitor_view(c) for c in self.conversations.employee_private_conversations()]
            views.sort(key=lambda v: v["lastMessageTime"] or "", reverse=True)
            return views

        return self.cache.remember(EMPLOYEE_CONVERSATIONS_KEY, settings.conversation_list_ttl, build)

    def employee_conversation_messages(self, conversation_id: int) -> dict:
        """Admin read of an employee-to-employee thread the admin is not part of."""
        conversation = self.conversations.get(conversation_id)
        if conversation is None or not conversation.is_private:
            raise NotFoundError(f"Private conversation {conversation_id} not found")

        roster = self.roster(conversation_id)
        if len(roster) != 2 or any(p["type"] != ActorType.EMPLOYEE.value for p in roster):
            raise NotFoundError(f"Conversation {conversation_id} is not between two employees")

        messages = self._history(conversation)
        return {
            "conversationId": conversation.id,
            "participants": [{"id": p["id"], "name": p["name"], "profileImage": p["profileImage"]} for p in roster],
            "messages": messages,
            "messageCount": len(messages),
            "createdAt": isoformat_utc(conversation.created_at),
        }

    def _history(self, conversation: Conversation) -> list[dict]:
        return self.cache.remember(
            message_list_key(conversation.id),  # type: ignore[arg-type]
            settings.message_list_ttl,
            lambda: [format_message(m) for m in self.messages.history(conversation)],
        )

    def _conversation_view(self, conversation: Conversation, actor: ActorRef) -> dict:
        roster = self.roster(conversation.id)  # type: ignore[arg-type]
        name = conversation.name
        other_image = None
        if conversation.is_private:
            other = next(
                (p for p in roster if (p["type"], p["id"]) != (actor.type.value, actor.id)),
                None,
            )
            if other is not None:
                name = other["name"]
                other_image = other["profileImage"]

        return {
            "id": conversation.id,
            "name": name,
            "type": conversation.type,
            "lastMessage": self.last_message(conversation),
            "unreadCount": self.unread_count(conversation, actor),
            "members": [p["id"] for p in roster],
            "otherParticipantProfileImage": other_image,
            "updatedAt": isoformat_utc(conversation.updated_at),
        }

    def _last_message_view(self, conversation: Conversation) -> dict | None:
        message = self.messages.last(conversation)
        if message is None:
            return None
        return {
            "content": message.content,
            "timestamp": isoformat_utc(message.created_at),
            "senderName": message.sender_name,
            "senderId": message.sender_id,
        }

    def _participant_view(self, actor: ActorRef) -> dict:
        profile = self.directory.resolve_actor(actor)
        if profile is None:
            name = settings.admin_display_name if actor.type == ActorType.ADMIN else "Unknown"
            image = None
        else:
            name, image = profile.display_name, profile.profile_image_url
        return {"id": actor.id, "type": actor.type.value, "name": name, "profileImage": image}

    def _monitor_view(self, conversation: Conversation) -> dict:
        roster = self.roster(conversation.id)  # type: ignore[arg-type]
        last = self.last_message(conversation)
        message_count = self.cache.remember(
            message_count_key(conversation.id),  # type: ignore[arg-type]
            settings.last_message_ttl,
            lambda: self.messages.count(conversation),
        )
        return {
            "id": conversation.id,
            "participants": [{"id": p["id"], "name": p["name"]} for p in roster],
            "participantNames": " & ".join(p["name"] for p in roster),
            "lastMessage": last["content"][:MONITOR_PREVIEW_LENGTH] if last else "No messages",
            "lastMessageTime": last["timestamp"] if last else None,
            "messageCount": message_count,
            "createdAt": isoformat_utc(conversation.created_at),
        }
