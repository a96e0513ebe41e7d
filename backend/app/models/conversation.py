"""Conversation, participant and message tables for internal staff messaging.

Group and private messages live in two structurally parallel tables: group
read-state is carried entirely by the participant's last_read_at, while
private messages carry their own is_read/read_at flags.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import JSON, Index, UniqueConstraint
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConversationType(str, Enum):
    GROUP = "group"
    PRIVATE = "private"


class ActorType(str, Enum):
    EMPLOYEE = "employee"
    ADMIN = "admin"


@dataclass(frozen=True)
class ActorRef:
    """An actor in the shared id space, tagged with its kind."""

    type: ActorType
    id: str

    @property
    def token(self) -> str:
        return f"{self.type.value}:{self.id}"


def private_pair_key(a: ActorRef, b: ActorRef) -> str:
    """Order-independent key for the two members of a private conversation."""
    return "|".join(sorted([a.token, b.token]))


class Conversation(SQLModel, table=True):
    __tablename__ = "conversations"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    type: str = Field(index=True)  # "group" | "private"
    created_by: str = Field(index=True)
    # Unique for private conversations, null for groups
    pair_key: Optional[str] = Field(default=None, unique=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow, index=True)

    @property
    def is_group(self) -> bool:
        return self.type == ConversationType.GROUP

    @property
    def is_private(self) -> bool:
        return self.type == ConversationType.PRIVATE


class ConversationParticipant(SQLModel, table=True):
    __tablename__ = "conversation_participants"
    __table_args__ = (
        UniqueConstraint(
            "conversation_id", "participant_type", "participant_id",
            name="uq_conversation_participant",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    conversation_id: int = Field(foreign_key="conversations.id", index=True)
    participant_id: str = Field(index=True)
    participant_type: str  # "employee" | "admin"
    joined_at: datetime = Field(default_factory=utcnow)
    last_read_at: Optional[datetime] = None

    @property
    def actor(self) -> ActorRef:
        return ActorRef(ActorType(self.participant_type), self.participant_id)


class MessageBase(SQLModel):
    conversation_id: int = Field(foreign_key="conversations.id", index=True)
    sender_id: str = Field(index=True)
    sender_type: str
    sender_name: str  # captured at send time
    content: str = ""
    attachments: Optional[list[dict]] = Field(default=None, sa_type=JSON)
    has_attachments: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)


class GroupMessage(MessageBase, table=True):
    __tablename__ = "group_messages"
    __table_args__ = (Index("ix_group_messages_conversation_time", "conversation_id", "created_at"),)

    id: Optional[int] = Field(default=None, primary_key=True)


class PrivateMessage(MessageBase, table=True):
    __tablename__ = "private_messages"
    __table_args__ = (
        Index("ix_private_messages_conversation_time", "conversation_id", "created_at"),
        Index("ix_private_messages_conversation_read", "conversation_id", "is_read"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    is_read: bool = Field(default=False)
    read_at: Optional[datetime] = None
