"""Fire-and-forget notification of new messages to the other participants.

Delivery runs on a small thread pool so a slow or failing notifier never
blocks or fails the send that triggered it.
"""

import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

import httpx

from app.core.config import settings
from app.models.conversation import ActorRef

logger = logging.getLogger(__name__)


@dataclass
class MessageNotification:
    conversation_id: int
    message_id: int
    sender_name: str
    preview: str
    recipients: list[ActorRef] = field(default_factory=list)

    def to_payload(self) -> dict:
        return {
            "type": "new_message",
            "recipients": [{"id": r.id, "type": r.type.value} for r in self.recipients],
            "conversation_id": self.conversation_id,
            "message_id": self.message_id,
            "sender_name": self.sender_name,
            "preview": self.preview,
        }


def build_preview(content: str, limit: int | None = None) -> str:
    limit = settings.notification_preview_length if limit is None else limit
    if len(content) > limit:
        return content[:limit] + "..."
    return content


class Notifier(ABC):
    @abstractmethod
    def notify(self, notification: MessageNotification) -> None:
        ...


class LogNotifier(Notifier):
    def notify(self, notification: MessageNotification) -> None:
        logger.info(
            f"New message {notification.message_id} in conversation {notification.conversation_id} "
            f"from {notification.sender_name} for {len(notification.recipients)} recipient(s)"
        )


class WebhookNotifier(Notifier):
    """POSTs each notification as JSON to a push/bell-notification service."""

    def __init__(self, url: str, timeout: float = 5.0) -> None:
        self.url = url
        self.timeout = timeout

    def notify(self, notification: MessageNotification) -> None:
        response = httpx.post(self.url, json=notification.to_payload(), timeout=self.timeout)
        response.raise_for_status()


class NotificationDispatcher:
    def __init__(self, notifier: Notifier, max_workers: int = 2) -> None:
        self.notifier = notifier
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="notify")

    def dispatch(self, notification: MessageNotification) -> None:
        if not notification.recipients:
            return
        try:
            self._executor.submit(self._deliver, notification)
        except Exception:
            logger.exception(f"Could not queue notification for message {notification.message_id}")

    def _deliver(self, notification: MessageNotification) -> None:
        try:
            self.notifier.notify(notification)
        except Exception:
            logger.exception(f"Notification for message {notification.message_id} failed")

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


def get_notifier() -> Notifier:
    if settings.notification_webhook_url:
        return WebhookNotifier(settings.notification_webhook_url, timeout=settings.notification_timeout)
    return LogNotifier()


_dispatcher: NotificationDispatcher | None = None
_dispatcher_lock = threading.Lock()


def get_dispatcher() -> NotificationDispatcher:
    global _dispatcher
    with _dispatcher_lock:
        if _dispatcher is None:
            _dispatcher = NotificationDispatcher(get_notifier(), max_workers=settings.notification_workers)
    return _dispatcher


def shutdown_dispatcher() -> None:
    global _dispatcher
    with _dispatcher_lock:
        dispatcher, _dispatcher = _dispatcher, None
    if dispatcher is not None:
        dispatcher.shutdown()
