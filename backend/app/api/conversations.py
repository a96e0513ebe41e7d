"""REST API for staff conversations: listing, creation, membership, read state and messages."""

import logging
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, model_validator

from app.api.deps import get_current_actor, get_messaging, require_admin
from app.models.conversation import ActorRef
from app.services.messaging import Messaging

router = APIRouter()
logger = logging.getLogger(__name__)


class GroupCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    employee_ids: list[int] = []


class PrivateCreate(BaseModel):
    participant_id: str = Field(min_length=1)


class ParticipantsAdd(BaseModel):
    employee_ids: list[int] = Field(min_length=1)


class MessageCreate(BaseModel):
    content: str = ""
    attachments: list[dict[str, Any]] | None = None  # opaque {path, mimeType, size, ...}

    @model_validator(mode="after")
    def require_content_or_attachments(self):
        if not self.content.strip() and not self.attachments:
            raise ValueError("content is required when there are no attachments")
        return self


def _conversation_summary(conversation) -> dict:
    return {"id": conversation.id, "name": conversation.name, "type": conversation.type}


@router.get("")
def list_conversations(
    actor: ActorRef = Depends(get_current_actor),
    messaging: Messaging = Depends(get_messaging),
):
    return messaging.lister.list_for(actor)


@router.post("/group", status_code=201)
def create_group(
    body: GroupCreate,
    admin: ActorRef = Depends(require_admin),
    messaging: Messaging = Depends(get_messaging),
):
    member_ids = [str(i) for i in body.employee_ids]
    conversation = messaging.resolver.create_group(body.name, admin.id, member_ids)
    return {
        **_conversation_summary(conversation),
        "members": [a.id for a in messaging.conversations.actors(conversation.id)],
    }


@router.post("/private")
def get_or_create_private(
    body: PrivateCreate,
    actor: ActorRef = Depends(get_current_actor),
    messaging: Messaging = Depends(get_messaging),
):
    conversation, created = messaging.resolver.get_or_create_private(actor, body.participant_id)
    return {**_conversation_summary(conversation), "created": created}


@router.post("/private/{counterparty}/messages", status_code=201)
def send_private_message(
    counterparty: str,
    body: MessageCreate,
    actor: ActorRef = Depends(get_current_actor),
    messaging: Messaging = Depends(get_messaging),
):
    return messaging.router.send_private(actor, counterparty, body.content, body.attachments)


@router.post("/{conversation_id}/participants")
def add_participants(
    conversation_id: int,
    body: ParticipantsAdd,
    admin: ActorRef = Depends(require_admin),
    messaging: Messaging = Depends(get_messaging),
):
    added = messaging.resolver.add_participants(conversation_id, [str(i) for i in body.employee_ids])
    return {"id": conversation_id, "added": [a.id for a in added]}


@router.post("/{conversation_id}/read")
def mark_as_read(
    conversation_id: int,
    actor: ActorRef = Depends(get_current_actor),
    messaging: Messaging = Depends(get_messaging),
):
    messaging.read_state.mark_as_read(conversation_id, actor)
    return {"id": conversation_id, "status": "read"}


@router.get("/{conversation_id}/messages")
def list_messages(
    conversation_id: int,
    actor: ActorRef = Depends(get_current_actor),
    messaging: Messaging = Depends(get_messaging),
):
    return messaging.lister.messages_for(conversation_id, actor)


@router.post("/{conversation_id}/messages", status_code=201)
def send_message(
    conversation_id: int,
    body: MessageCreate,
    actor: ActorRef = Depends(get_current_actor),
    messaging: Messaging = Depends(get_messaging),
):
    return messaging.router.send(conversation_id, actor, body.content, body.attachments)


@router.get("/{conversation_id}/stats")
def group_stats(
    conversation_id: int,
    actor: ActorRef = Depends(get_current_actor),
    messaging: Messaging = Depends(get_messaging),
):
    return messaging.lister.group_stats(conversation_id, actor)
