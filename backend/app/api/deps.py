"""Request-scoped dependencies shared by the messaging routers."""

from fastapi import Depends, Header
from sqlmodel import Session

from app.core.cache import Cache, get_cache
from app.core.database import get_session
from app.core.errors import ForbiddenError
from app.models.conversation import ActorRef, ActorType
from app.services.messaging import Messaging, build_messaging
from app.services.notifications import NotificationDispatcher, get_dispatcher


def get_current_actor(
    x_actor_id: str = Header(..., min_length=1),
    x_actor_type: ActorType = Header(...),
) -> ActorRef:
    """The authenticated caller, as forwarded by the auth gateway."""
    return ActorRef(x_actor_type, x_actor_id)


def require_admin(actor: ActorRef = Depends(get_current_actor)) -> ActorRef:
    if actor.type != ActorType.ADMIN:
        raise ForbiddenError("Admin access required")
    return actor


def get_messaging(
    session: Session = Depends(get_session),
    cache: Cache = Depends(get_cache),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> Messaging:
    return build_messaging(session, cache, dispatcher)
