"""Messaging core factory."""

from dataclasses import dataclass

from sqlmodel import Session

from app.core.cache import Cache
from app.services.directory import Directory, SqlDirectory
from app.services.messaging.invalidation import CacheInvalidator
from app.services.messaging.listing import ConversationLister
from app.services.messaging.read_state import ReadStateTracker
from app.services.messaging.resolver import ConversationResolver
from app.services.messaging.router import MessageRouter
from app.services.messaging.stores import ConversationStore, MessageStore
from app.services.notifications import NotificationDispatcher


@dataclass
class Messaging:
    conversations: ConversationStore
    messages: MessageStore
    resolver: ConversationResolver
    read_state: ReadStateTracker
    router: MessageRouter
    lister: ConversationLister
    invalidator: CacheInvalidator


def build_messaging(
    session: Session,
    cache: Cache,
    dispatcher: NotificationDispatcher,
    directory: Directory | None = None,
) -> Messaging:
    """Wire the messaging components around one request's session."""
    directory = directory or SqlDirectory(session)
    conversations = ConversationStore(session)
    messages = MessageStore(session)
    invalidator = CacheInvalidator(cache)
    resolver = ConversationResolver(session, conversations, directory, invalidator)
    read_state = ReadStateTracker(session, conversations, invalidator)
    router = MessageRouter(session, conversations, messages, resolver, directory, invalidator, dispatcher)
    lister = ConversationLister(conversations, messages, read_state, directory, cache)
    return Messaging(
        conversations=conversations,
        messages=messages,
        resolver=resolver,
        read_state=read_state,
        router=router,
        lister=lister,
        invalidator=invalidator,
    )
