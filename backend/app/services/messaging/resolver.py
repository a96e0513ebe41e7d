"""Creation of group conversations and get-or-create of private ones."""

import logging

from sqlmodel import Session

from app.core.config import settings
from app.core.database import transaction
from app.core.errors import ConflictError, InvalidParticipantError, NotFoundError
from app.models.conversation import (
    ActorRef,
    ActorType,
    Conversation,
    ConversationType,
    private_pair_key,
)
from app.services.directory import Directory
from app.services.messaging.invalidation import CacheInvalidator
from app.services.messaging.stores import ConversationStore

logger = logging.getLogger(__name__)

PRIVATE_CONVERSATION_NAME = "Private Chat"


class ConversationResolver:
    def __init__(
        self,
        session: Session,
        conversations: ConversationStore,
        directory: Directory,
        invalidator: CacheInvalidator,
    ) -> None:
        self._session = session
        self.conversations = conversations
        self.directory = directory
        self.invalidator = invalidator

    def create_group(self, name: str, creator_id: str, member_ids: list[str]) -> Conversation:
        """Create a group with the creator as admin and every member as an employee.

        Groups are never deduplicated: the same name and roster twice gives two groups.
        """
        creator = ActorRef(ActorType.ADMIN, str(creator_id))
        members = self._resolve_employees(member_ids)

        conversation = Conversation(
            name=name,
            type=ConversationType.GROUP.value,
            created_by=creator.id,
        )
        roster = [creator] + members
        with transaction(self._session):
            self.conversations.add(conversation, roster)
        self._session.refresh(conversation)

        logger.info(f"Created group conversation {conversation.id} with {len(roster)} participants")
        self.invalidator.conversation_created(conversation.id, roster)  # type: ignore[arg-type]
        return conversation

    def resolve_counterparty(self, token: str) -> ActorRef:
        """Turn the admin sentinel or an employee id into a concrete actor."""
        if token == settings.admin_sentinel:
            admin = self.directory.find_default_admin()
            if admin is None:
                raise NotFoundError("No admin available")
            return admin

        employee = self.directory.find_employee(token)
        if employee is None:
            raise InvalidParticipantError(f"Invalid participant: {token}")
        return employee

    def get_or_create_private(self, actor: ActorRef, counterparty_token: str) -> tuple[Conversation, bool]:
        """Return the private conversation between actor and counterparty, creating it if needed.

        The second element of the result is True when the conversation was created by this call.
        """
        counterparty = self.resolve_counterparty(counterparty_token)
        if counterparty == actor:
            raise InvalidParticipantError("Cannot start a private conversation with yourself")

        pair_key = private_pair_key(actor, counterparty)
        existing = self.conversations.find_by_pair_key(pair_key)
        if existing is not None:
            return existing, False

        conversation = Conversation(
            name=PRIVATE_CONVERSATION_NAME,
            type=ConversationType.PRIVATE.value,
            created_by=actor.id,
            pair_key=pair_key,
        )
        try:
            with transaction(self._session):
                self.conversations.add(conversation, [actor, counterparty])
        except ConflictError:
            # A concurrent request created the same pair first
            winner = self.conversations.find_by_pair_key(pair_key)
            if winner is None:
                raise
            logger.info(f"Private conversation race for {pair_key} resolved to {winner.id}")
            return winner, False

        self._session.refresh(conversation)
        logger.info(f"Created private conversation {conversation.id} for {pair_key}")
        self.invalidator.conversation_created(conversation.id, [actor, counterparty])  # type: ignore[arg-type]
        return conversation, True

    def add_participants(self, conversation_id: int, employee_ids: list[str]) -> list[ActorRef]:
        """Add employees to a group, skipping anyone already in it. Returns the newly added actors."""
        conversation = self.conversations.require(conversation_id)
        if not conversation.is_group:
            raise ConflictError("Participants can only be added to group conversations")

        candidates = self._resolve_employees(employee_ids)
        added = [c for c in candidates if not self.conversations.is_participant(conversation_id, c)]

        if added:
            with transaction(self._session):
                for actor in added:
                    self.conversations.add_participant(conversation_id, actor)
            logger.info(f"Added {len(added)} participants to conversation {conversation_id}")

        self.invalidator.participants_added(conversation_id, self.conversations.actors(conversation_id))
        return added

    def _resolve_employees(self, employee_ids: list[str]) -> list[ActorRef]:
        """Canonical, de-duplicated employee actors in request order."""
        resolved: dict[ActorRef, None] = {}
        missing = []
        for employee_id in employee_ids:
            employee = self.directory.find_employee(str(employee_id))
            if employee is None:
                missing.append(str(employee_id))
            else:
                resolved.setdefault(employee)
        if missing:
            raise InvalidParticipantError(f"Unknown employees: {', '.join(missing)}")
        return list(resolved)
