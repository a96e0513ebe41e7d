"""Send path: participation check, type-routed persistence, cache eviction, notification."""

import logging

from sqlmodel import Session

from app.core.database import transaction
from app.core.errors import ForbiddenError, NotFoundError
from app.models.conversation import ActorRef, Conversation, utcnow
from app.services.directory import Directory
from app.services.messaging.invalidation import CacheInvalidator
from app.services.messaging.resolver import ConversationResolver
from app.services.messaging.stores import ConversationStore, MessageStore, format_message
from app.services.notifications import MessageNotification, NotificationDispatcher, build_preview

logger = logging.getLogger(__name__)


class MessageRouter:
    def __init__(
        self,
        session: Session,
        conversations: ConversationStore,
        messages: MessageStore,
        resolver: ConversationResolver,
        directory: Directory,
        invalidator: CacheInvalidator,
        dispatcher: NotificationDispatcher,
    ) -> None:
        self._session = session
        self.conversations = conversations
        self.messages = messages
        self.resolver = resolver
        self.directory = directory
        self.invalidator = invalidator
        self.dispatcher = dispatcher

    def send(
        self,
        conversation_id: int,
        sender: ActorRef,
        content: str,
        attachments: list[dict] | None = None,
    ) -> dict:
        conversation = self.conversations.require(conversation_id)
        return self._send(conversation, sender, content, attachments)

    def send_group(
        self,
        conversation_id: int,
        sender: ActorRef,
        content: str,
        attachments: list[dict] | None = None,
    ) -> dict:
        conversation = self.conversations.get(conversation_id)
        if conversation is None or not conversation.is_group:
            raise NotFoundError(f"Group conversation {conversation_id} not found")
        return self._send(conversation, sender, content, attachments)

    def send_private(
        self,
        sender: ActorRef,
        counterparty_token: str,
        content: str,
        attachments: list[dict] | None = None,
    ) -> dict:
        conversation, _ = self.resolver.get_or_create_private(sender, counterparty_token)
        message = self._send(conversation, sender, content, attachments)
        message["conversationId"] = conversation.id
        return message

    def _send(
        self,
        conversation: Conversation,
        sender: ActorRef,
        content: str,
        attachments: list[dict] | None,
    ) -> dict:
        conversation_id: int = conversation.id  # type: ignore[assignment]
        if not self.conversations.is_participant(conversation_id, sender):
            raise ForbiddenError(f"{sender.token} is not a participant in conversation {conversation_id}")

        sender_name = self.directory.display_name(sender)

        with transaction(self._session):
            message = self.messages.create(conversation, sender, sender_name, content, attachments)
            self.conversations.touch(conversation, utcnow())
        self._session.refresh(message)
        logger.info(f"Message {message.id} stored in {type(message).__tablename__} for conversation {conversation_id}")

        participants = self.conversations.actors(conversation_id)
        self.invalidator.message_sent(conversation_id, participants)

        self.dispatcher.dispatch(
            MessageNotification(
                conversation_id=conversation_id,
                message_id=message.id,  # type: ignore[arg-type]
                sender_name=sender_name,
                preview=build_preview(content),
                recipients=[p for p in participants if p != sender],
            )
        )
        return format_message(message)
