"""Admin monitoring of employee-to-employee conversations."""

from fastapi import APIRouter, Depends

from app.api.deps import get_messaging, require_admin
from app.models.conversation import ActorRef
from app.services.messaging import Messaging

router = APIRouter()


@router.get("/employee-conversations")
def list_employee_conversations(
    admin: ActorRef = Depends(require_admin),
    messaging: Messaging = Depends(get_messaging),
):
    return messaging.lister.employee_conversations()


@router.get("/employee-conversations/{conversation_id}/messages")
def get_employee_conversation_messages(
    conversation_id: int,
    admin: ActorRef = Depends(require_admin),
    messaging: Messaging = Depends(get_messaging),
):
    return messaging.lister.employee_conversation_messages(conversation_id)
