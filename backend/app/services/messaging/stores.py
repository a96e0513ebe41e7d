"""Conversation and message persistence.

Messages are routed to one of two tables by the type of the conversation they
belong to; nothing at the storage level enforces that pairing, so every write
goes through message_model_for().
"""

from datetime import datetime, timezone
from typing import Optional, Union

from sqlalchemy import exists, func
from sqlmodel import Session, select

from app.core.errors import NotFoundError
from app.models.conversation import (
    ActorRef,
    ActorType,
    Conversation,
    ConversationParticipant,
    ConversationType,
    GroupMessage,
    PrivateMessage,
)

Message = Union[GroupMessage, PrivateMessage]

MESSAGE_MODELS: dict[str, type[GroupMessage] | type[PrivateMessage]] = {
    ConversationType.GROUP.value: GroupMessage,
    ConversationType.PRIVATE.value: PrivateMessage,
}


def message_model_for(conversation: Conversation) -> type[GroupMessage] | type[PrivateMessage]:
    try:
        return MESSAGE_MODELS[conversation.type]
    except KeyError:
        raise ValueError(f"Unknown conversation type: {conversation.type}") from None


def isoformat_utc(value: Optional[datetime]) -> Optional[str]:
    # SQLite hands datetimes back naive; everything is stored in UTC
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def format_message(message: Message) -> dict:
    """Canonical message view returned by every read and send path."""
    return {
        "id": message.id,
        "conversationId": message.conversation_id,
        "senderId": message.sender_id,
        "senderName": message.sender_name,
        "senderRole": "Admin" if message.sender_type == ActorType.ADMIN else "Employee",
        "content": message.content,
        "attachments": message.attachments or [],
        "hasAttachments": message.has_attachments,
        "timestamp": isoformat_utc(message.created_at),
    }


class ConversationStore:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, conversation_id: int) -> Conversation | None:
        return self._session.get(Conversation, conversation_id)

    def require(self, conversation_id: int) -> Conversation:
        conversation = self.get(conversation_id)
        if conversation is None:
            raise NotFoundError(f"Conversation {conversation_id} not found")
        return conversation

    def participant(self, conversation_id: int, actor: ActorRef) -> ConversationParticipant | None:
        return self._session.exec(
            select(ConversationParticipant).where(
                ConversationParticipant.conversation_id == conversation_id,
                ConversationParticipant.participant_id == actor.id,
                ConversationParticipant.participant_type == actor.type.value,
            )
        ).first()

    def is_participant(self, conversation_id: int, actor: ActorRef) -> bool:
        return self.participant(conversation_id, actor) is not None

    def participants(self, conversation_id: int) -> list[ConversationParticipant]:
        return list(
            self._session.exec(
                select(ConversationParticipant)
                .where(ConversationParticipant.conversation_id == conversation_id)
                .order_by(ConversationParticipant.id)  # type: ignore
            ).all()
        )

    def actors(self, conversation_id: int) -> list[ActorRef]:
        return [p.actor for p in self.participants(conversation_id)]

    def for_actor(self, actor: ActorRef) -> list[Conversation]:
        """Conversations the actor belongs to, most recently updated first."""
        return list(
            self._session.exec(
                select(Conversation)
                .join(ConversationParticipant, ConversationParticipant.conversation_id == Conversation.id)
                .where(
                    ConversationParticipant.participant_id == actor.id,
                    ConversationParticipant.participant_type == actor.type.value,
                )
                .order_by(Conversation.updated_at.desc(), Conversation.id.desc())  # type: ignore
            ).all()
        )

    def find_by_pair_key(self, pair_key: str) -> Conversation | None:
        return self._session.exec(
            select(Conversation).where(
                Conversation.type == ConversationType.PRIVATE.value,
                Conversation.pair_key == pair_key,
            )
        ).first()

    def employee_private_conversations(self) -> list[Conversation]:
        """Private conversations with no admin on either side."""
        has_admin = exists().where(
            ConversationParticipant.conversation_id == Conversation.id,
            ConversationParticipant.participant_type == ActorType.ADMIN.value,
        )
        return list(
            self._session.exec(
                select(Conversation).where(
                    Conversation.type == ConversationType.PRIVATE.value,
                    ~has_admin,
                )
            ).all()
        )

    def add(self, conversation: Conversation, members: list[ActorRef]) -> Conversation:
        """Stage a conversation with its roster; the caller owns the transaction."""
        self._session.add(conversation)
        self._session.flush()
        for member in members:
            self.add_participant(conversation.id, member)  # type: ignore[arg-type]
        return conversation

    def add_participant(self, conversation_id: int, actor: ActorRef) -> ConversationParticipant:
        participant = ConversationParticipant(
            conversation_id=conversation_id,
            participant_id=actor.id,
            participant_type=actor.type.value,
        )
        self._session.add(participant)
        return participant

    def touch(self, conversation: Conversation, when: datetime) -> None:
        conversation.updated_at = when
        self._session.add(conversation)


class MessageStore:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create(
        self,
        conversation: Conversation,
        sender: ActorRef,
        sender_name: str,
        content: str,
        attachments: list[dict] | None = None,
    ) -> Message:
        model = message_model_for(conversation)
        message = model(
            conversation_id=conversation.id,  # type: ignore[arg-type]
            sender_id=sender.id,
            sender_type=sender.type.value,
            sender_name=sender_name,
            content=content,
            attachments=attachments or None,
            has_attachments=bool(attachments),
        )
        self._session.add(message)
        return message

    def history(self, conversation: Conversation, limit: int | None = None) -> list[Message]:
        model = message_model_for(conversation)
        query = (
            select(model)
            .where(model.conversation_id == conversation.id)
            .order_by(model.created_at, model.id)  # type: ignore
        )
        if limit is not None:
            query = query.limit(limit)
        return list(self._session.exec(query).all())

    def last(self, conversation: Conversation) -> Message | None:
        model = message_model_for(conversation)
        return self._session.exec(
            select(model)
            .where(model.conversation_id == conversation.id)
            .order_by(model.created_at.desc(), model.id.desc())  # type: ignore
            .limit(1)
        ).first()

    def count(self, conversation: Conversation, with_attachments: bool = False) -> int:
        model = message_model_for(conversation)
        query = select(func.count()).select_from(model).where(model.conversation_id == conversation.id)
        if with_attachments:
            query = query.where(model.has_attachments == True)  # noqa: E712
        return self._session.exec(query).one()
