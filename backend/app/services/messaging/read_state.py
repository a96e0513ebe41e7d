"""Unread counts and mark-as-read.

Group conversations count anything newer than the reader's last_read_at;
private conversations count the other side's messages still flagged unread.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import func, or_
from sqlmodel import Session, select

from app.core.database import transaction
from app.core.errors import NotFoundError
from app.models.conversation import ActorRef, Conversation, GroupMessage, PrivateMessage, utcnow
from app.services.messaging.invalidation import CacheInvalidator
from app.services.messaging.stores import ConversationStore

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _not_sent_by(model, actor: ActorRef):
    return or_(model.sender_id != actor.id, model.sender_type != actor.type.value)


class ReadStateTracker:
    def __init__(self, session: Session, conversations: ConversationStore, invalidator: CacheInvalidator) -> None:
        self._session = session
        self.conversations = conversations
        self.invalidator = invalidator

    def unread_count(self, conversation: Conversation, actor: ActorRef) -> int:
        participant = self.conversations.participant(conversation.id, actor)  # type: ignore[arg-type]
        if participant is None:
            return 0

        if conversation.is_group:
            last_read_at = participant.last_read_at or EPOCH
            query = (
                select(func.count())
                .select_from(GroupMessage)
                .where(
                    GroupMessage.conversation_id == conversation.id,
                    _not_sent_by(GroupMessage, actor),
                    GroupMessage.created_at > last_read_at,
                )
            )
        else:
            query = (
                select(func.count())
                .select_from(PrivateMessage)
                .where(
                    PrivateMessage.conversation_id == conversation.id,
                    PrivateMessage.is_read == False,  # noqa: E712
                    _not_sent_by(PrivateMessage, actor),
                )
            )
        return self._session.exec(query).one()

    def mark_as_read(self, conversation_id: int, actor: ActorRef) -> None:
        conversation = self.conversations.require(conversation_id)
        participant = self.conversations.participant(conversation_id, actor)
        if participant is None:
            raise NotFoundError(f"{actor.token} is not a participant in conversation {conversation_id}")

        now = utcnow()
        with transaction(self._session):
            participant.last_read_at = now
            self._session.add(participant)
            if conversation.is_private:
                unread = self._session.exec(
                    select(PrivateMessage).where(
                        PrivateMessage.conversation_id == conversation_id,
                        PrivateMessage.is_read == False,  # noqa: E712
                        _not_sent_by(PrivateMessage, actor),
                    )
                ).all()
                for message in unread:
                    message.is_read = True
                    message.read_at = now
                    self._session.add(message)

        logger.info(f"Conversation {conversation_id} marked read by {actor.token}")
        self.invalidator.conversation_read(conversation_id, actor)
