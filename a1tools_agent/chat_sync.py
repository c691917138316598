"""Poll unread chat messages and raise one notification per message."""

import logging
from typing import Callable, Dict, Optional

from .api_client import A1ApiClient, ApiError
from .config import ChatSyncConfig
from .models import InboundMessage, NotificationRequest
from .notifiers import NotificationSink, payload_from_deep_link
from .scheduler import PeriodicTimer
from .seen_ids import BoundedSeenSet

logger = logging.getLogger(__name__)

GROUP_NOTIFICATION_ID_OFFSET = 100000
SYSTEM_USERNAME = "system"
MAX_BODY_LENGTH = 100


def truncate_body(body: str, limit: int = MAX_BODY_LENGTH) -> str:
    if len(body) > limit:
        return body[:limit] + "..."
    return body


def direct_message_request(msg: InboundMessage) -> NotificationRequest:
    """Build the notification for a direct message."""
    if msg.has_attachment and not msg.text:
        body = "Sent an attachment"
    else:
        body = msg.text
    return NotificationRequest(
        notification_id=msg.id,
        title=msg.display_name or msg.from_username,
        body=truncate_body(body),
        payload=f"chat:{msg.from_username}",
    )


def group_message_request(msg: InboundMessage) -> NotificationRequest:
    """Build the notification for a group message."""
    return NotificationRequest(
        notification_id=msg.id + GROUP_NOTIFICATION_ID_OFFSET,
        title=msg.group_name or "Group",
        body=truncate_body(f"{msg.display_name}: {msg.text}"),
        payload=f"group:{msg.group_id}",
    )


class ChatNotificationSync:
    """
    Chat notification poller.

    ``start(username)`` checks immediately and then every
    ``config.interval_seconds``; ``stop()`` cancels the timer. Each message id
    is notified at most once per running process: direct and group ids live
    in separate bounded seen-sets.
    """

    def __init__(
        self,
        api: A1ApiClient,
        sink: NotificationSink,
        config: Optional[ChatSyncConfig] = None,
        on_notification_clicked: Optional[Callable[[str], None]] = None,
        on_group_notification_clicked: Optional[Callable[[int], None]] = None,
    ):
        self.api = api
        self.sink = sink
        self.config = config or ChatSyncConfig(username=None)
        self.on_notification_clicked = on_notification_clicked
        self.on_group_notification_clicked = on_group_notification_clicked

        self.current_username: Optional[str] = None
        self.display_names: Dict[str, str] = {}
        self.seen_direct_ids = BoundedSeenSet(self.config.seen_capacity)
        self.seen_group_ids = BoundedSeenSet(self.config.seen_capacity)
        self._timer: Optional[PeriodicTimer] = None

    @property
    def is_running(self) -> bool:
        return self._timer is not None and self._timer.is_running

    def start(self, username: str) -> None:
        """Start monitoring for ``username``."""
        self.current_username = username
        self.api.username = username

        self.load_user_names()
        self.check_for_new_messages()

        if self._timer is not None:
            self._timer.stop()
        self._timer = PeriodicTimer(
            self.config.interval_seconds,
            self.check_for_new_messages,
            name="chat-notification-sync",
        )
        self._timer.start()
        logger.info(f"Started chat notification monitoring for {username}")

    def stop(self) -> None:
        """Stop monitoring. An in-flight check is allowed to finish."""
        if self._timer is not None:
            self._timer.stop()
            self._timer = None
        logger.info("Stopped chat notification monitoring")

    def load_user_names(self) -> None:
        """Refresh the username -> display name directory; failures keep the old one."""
        if not self.current_username:
            return
        try:
            names = self.api.fetch_user_display_names(self.current_username)
        except ApiError as e:
            logger.warning(f"Could not load user display names: {e}")
            return
        self.display_names.update(names)

    def check_for_new_messages(self) -> None:
        """One poll cycle over direct and group messages."""
        if not self.current_username:
            return
        self.check_direct_messages()
        self.check_group_messages()

    def check_direct_messages(self) -> int:
        """
        Notify for unseen direct messages.

        Returns:
            Number of notifications dispatched.
        """
        try:
            messages = self.api.fetch_unread_direct(
                self.current_username, display_names=self.display_names
            )
        except ApiError as e:
            logger.warning(f"Direct message check failed: {e}")
            return 0

        dispatched = 0
        try:
            for msg in messages:
                if not self.seen_direct_ids.add(msg.id, trim=False):
                    continue
                if self._dispatch(direct_message_request(msg)):
                    dispatched += 1
        finally:
            # the cap applies once the whole response is deduped
            self.seen_direct_ids.trim()
        if dispatched:
            logger.info(f"Dispatched {dispatched} direct message notification(s)")
        return dispatched

    def check_group_messages(self) -> int:
        """
        Notify for unseen group messages, skipping system and own messages.

        Returns:
            Number of notifications dispatched.
        """
        try:
            messages = self.api.fetch_unread_groups(self.current_username)
        except ApiError as e:
            logger.warning(f"Group message check failed: {e}")
            return 0

        dispatched = 0
        try:
            for msg in messages:
                # Suppressed messages are still recorded so they are never re-examined.
                if not self.seen_group_ids.add(msg.id, trim=False):
                    continue
                if msg.from_username in (SYSTEM_USERNAME, self.current_username):
                    continue
                if self._dispatch(group_message_request(msg)):
                    dispatched += 1
        finally:
            self.seen_group_ids.trim()
        if dispatched:
            logger.info(f"Dispatched {dispatched} group message notification(s)")
        return dispatched

    def _dispatch(self, request: NotificationRequest) -> bool:
        try:
            self.sink.show(request, self.handle_notification_click)
        except Exception as e:
            logger.error(f"Showing notification '{request.title}' failed: {e}")
            return False
        logger.debug(f"Notification {request.notification_id} -> {request.payload}")
        return True

    def handle_notification_click(self, payload: str) -> None:
        """Route an activated notification to the matching conversation callback."""
        if payload.startswith("chat:"):
            username = payload[len("chat:"):]
            if self.on_notification_clicked is not None:
                self.on_notification_clicked(username)
        elif payload.startswith("group:"):
            raw_id = payload[len("group:"):]
            try:
                group_id = int(raw_id)
            except ValueError:
                group_id = 0
            if self.on_group_notification_clicked is not None:
                self.on_group_notification_clicked(group_id)
        else:
            logger.debug(f"Ignoring notification payload {payload!r}")

    def handle_deep_link(self, url: str) -> bool:
        """
        Route a deep link produced by the mobile sink.

        Returns:
            True if the link was recognised.
        """
        payload = payload_from_deep_link(url)
        if payload is None:
            return False
        self.handle_notification_click(payload)
        return True
