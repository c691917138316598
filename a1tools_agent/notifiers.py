"""Notification sinks: where a chat notification is actually shown."""

import asyncio
import logging
import sys
import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional
from urllib.parse import quote, unquote, urlparse

from .config import NotifierConfig, TwilioConfig
from .models import NotificationRequest

logger = logging.getLogger(__name__)

try:
    from desktop_notifier import DesktopNotifier
    DESKTOP_NOTIFIER_AVAILABLE = True
except ImportError:
    DESKTOP_NOTIFIER_AVAILABLE = False
    logger.debug("desktop-notifier not installed; desktop toasts unavailable")

try:
    from twilio.rest import Client
    TWILIO_AVAILABLE = True
except ImportError:
    TWILIO_AVAILABLE = False
    logger.debug("Twilio library not installed; mobile relay unavailable")

DEEP_LINK_SCHEME = "a1tools"
MOBILE_PLATFORMS = ("android", "ios")
SEND_TIMEOUT_SECONDS = 10
TWILIO_AUTH_ERROR_CODE = 20003

ClickHandler = Callable[[str], None]


class NotificationSink(ABC):
    """Abstract base class for notification sinks."""

    @abstractmethod
    def show(self, request: NotificationRequest, on_click: ClickHandler) -> None:
        """
        Show a notification.

        Args:
            request: Title, body and routing payload.
            on_click: Called with ``request.payload`` when the user
                activates the notification.
        """
        pass

    def close(self) -> None:
        """Release resources held by the sink."""


class DesktopSink(NotificationSink):
    """
    Native desktop toast via desktop-notifier (Windows, macOS, Linux).

    Click callbacks are delivered by the notifier's asyncio loop, so the sink
    keeps one loop running on a daemon thread for its whole lifetime and
    submits each ``send`` to it. The loop outlives ``show()``, so a click that
    arrives later still reaches ``on_click``.
    """

    def __init__(
        self,
        app_name: str = "A1 Tools",
        notifier=None,
        send_timeout_seconds: float = SEND_TIMEOUT_SECONDS,
    ):
        if notifier is None:
            if not DESKTOP_NOTIFIER_AVAILABLE:
                raise ImportError(
                    "desktop-notifier not installed. Install with: pip install desktop-notifier"
                )
            notifier = DesktopNotifier(app_name=app_name)
        self.notifier = notifier
        self.send_timeout_seconds = send_timeout_seconds

        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run_loop, name="desktop-notifier-loop", daemon=True
        )
        self._thread.start()

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_forever()
        finally:
            self._loop.close()

    def show(self, request: NotificationRequest, on_click: ClickHandler) -> None:
        payload = request.payload
        future = asyncio.run_coroutine_threadsafe(
            self.notifier.send(
                title=request.title,
                message=request.body,
                on_clicked=lambda: on_click(payload),
            ),
            self._loop,
        )
        try:
            future.result(timeout=self.send_timeout_seconds)
        except Exception as e:
            future.cancel()
            logger.error(f"Failed to show desktop notification: {e}")
            raise
        logger.info(f"Desktop notification shown: {request.title}")

    def close(self) -> None:
        """Stop the notifier loop; pending clicks are dropped."""
        if not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=self.send_timeout_seconds)


def deep_link_for_payload(payload: str) -> str:
    """``chat:bob`` -> ``a1tools://chat/bob``."""
    kind, _, target = payload.partition(":")
    return f"{DEEP_LINK_SCHEME}://{kind}/{quote(target, safe='')}"


def payload_from_deep_link(url: str) -> Optional[str]:
    """Inverse of :func:`deep_link_for_payload`; None for foreign links."""
    parsed = urlparse(url)
    if parsed.scheme != DEEP_LINK_SCHEME or not parsed.netloc:
        return None
    target = unquote(parsed.path.lstrip("/"))
    if not target:
        return None
    return f"{parsed.netloc}:{target}"


class MobileSink(NotificationSink):
    """
    Relay notifications to the user's phone as SMS through Twilio.

    The phone cannot call back into this process, so the routing payload
    travels as a deep link in the message. The mobile host resolves it with
    :func:`payload_from_deep_link` and hands it to the click router.
    """

    def __init__(self, config: TwilioConfig, client=None):
        missing = config.missing()
        if missing:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing)}"
            )
        if client is None:
            if not TWILIO_AVAILABLE:
                raise ImportError(
                    "Twilio library not installed. Install with: pip install twilio"
                )
            client = Client(config.account_sid, config.auth_token)
        self.config = config
        self.client = client

    def format_message(self, request: NotificationRequest) -> str:
        return f"{request.title}: {request.body}\n{deep_link_for_payload(request.payload)}"

    def describe_failure(self, error: Exception) -> str:
        """Log line for a failed relay; credential rejections name the settings to fix."""
        code = getattr(error, "code", None)
        status = getattr(error, "status", None)
        if code == TWILIO_AUTH_ERROR_CODE or status == 401:
            return (
                f"Twilio rejected the credentials for account {self.config.account_sid[:10]}...; "
                "SMS relay stays down until TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN are fixed"
            )
        return f"Failed to relay notification by SMS: {error}"

    def show(self, request: NotificationRequest, on_click: ClickHandler) -> None:
        message = self.format_message(request)
        try:
            message_obj = self.client.messages.create(
                body=message,
                from_=self.config.from_number,
                to=self.config.to_number,
            )
        except Exception as e:
            logger.error(self.describe_failure(e))
            raise
        logger.info(f"Mobile notification relayed. SID: {message_obj.sid}")


def select_sink(config: NotifierConfig, platform: Optional[str] = None) -> NotificationSink:
    """
    Pick the sink once at startup.

    An explicit ``config.sink`` wins; otherwise mobile platforms get the
    mobile sink and everything else gets desktop toasts.
    """
    platform = platform or sys.platform
    choice = config.sink
    if choice == "auto":
        choice = "mobile" if platform in MOBILE_PLATFORMS else "desktop"

    logger.info(f"Using {choice} notification sink (platform: {platform})")
    if choice == "mobile":
        return MobileSink(config.twilio)
    if choice == "desktop":
        return DesktopSink(app_name=config.app_name)
    raise ValueError(f"Unknown notification sink: {config.sink!r}")
