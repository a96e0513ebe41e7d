"""Direct send endpoints that address a group by id or a private counterparty by token."""

from fastapi import APIRouter, Depends
from pydantic import Field

from app.api.conversations import MessageCreate
from app.api.deps import get_current_actor, get_messaging
from app.models.conversation import ActorRef
from app.services.messaging import Messaging

router = APIRouter()


class GroupMessageCreate(MessageCreate):
    conversation_id: int


class PrivateMessageCreate(MessageCreate):
    recipient_id: str = Field(min_length=1)  # employee id or the admin sentinel


@router.post("/group", status_code=201)
def send_group_message(
    body: GroupMessageCreate,
    actor: ActorRef = Depends(get_current_actor),
    messaging: Messaging = Depends(get_messaging),
):
    return messaging.router.send_group(body.conversation_id, actor, body.content, body.attachments)


@router.post("/private", status_code=201)
def send_private_message(
    body: PrivateMessageCreate,
    actor: ActorRef = Depends(get_current_actor),
    messaging: Messaging = Depends(get_messaging),
):
    return messaging.router.send_private(actor, body.recipient_id, body.content, body.attachments)
