"""Configuration management."""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_API_BASE = "https://tools.a-1chimney.com/api"


@dataclass
class ApiConfig:
    """A1 Tools REST API configuration."""
    base_url: str
    timeout_seconds: float = 10.0
    api_version: str = "1.0"
    client_platform: str = "python"

    @property
    def chat_messages_url(self) -> str:
        return f"{self.base_url}/chat_messages.php"

    @property
    def chat_groups_url(self) -> str:
        return f"{self.base_url}/chat_groups.php"

    @property
    def user_management_url(self) -> str:
        return f"{self.base_url}/user_management.php"

    @property
    def wordpress_publish_url(self) -> str:
        return f"{self.base_url}/wordpress_publish.php"


@dataclass
class ChatSyncConfig:
    """Chat notification polling configuration."""
    username: Optional[str]
    interval_seconds: float = 10.0
    seen_capacity: int = 100   # most recent ids remembered per channel


@dataclass
class TwilioConfig:
    """Twilio SMS configuration (used by the mobile sink)."""
    account_sid: Optional[str]
    auth_token: Optional[str]
    from_number: Optional[str]
    to_number: Optional[str]

    def missing(self) -> List[str]:
        """Return the environment variable names that are not set."""
        names = {
            "TWILIO_ACCOUNT_SID": self.account_sid,
            "TWILIO_AUTH_TOKEN": self.auth_token,
            "TWILIO_FROM_NUMBER": self.from_number,
            "TWILIO_TO_NUMBER": self.to_number,
        }
        return [name for name, value in names.items() if not value]


@dataclass
class NotifierConfig:
    """Notification sink selection."""
    sink: str = "auto"          # "auto", "desktop" or "mobile"
    app_name: str = "A1 Tools"
    twilio: TwilioConfig = field(
        default_factory=lambda: TwilioConfig(None, None, None, None)
    )


@dataclass
class AppConfig:
    """Complete application configuration."""
    api: ApiConfig
    chat: ChatSyncConfig
    notifier: NotifierConfig


_SINK_CHOICES = ("auto", "desktop", "mobile")


def _float_env(key: str, default: float) -> float:
    value = os.getenv(key, "").strip()
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {value!r}")


def _int_env(key: str, default: int) -> int:
    value = os.getenv(key, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {value!r}")


def load_config() -> AppConfig:
    """
    Load configuration from environment variables.

    Raises:
        ValueError: If a value is malformed, or if the mobile sink is
            requested without complete Twilio settings.
    """
    # API
    api_base = os.getenv("A1_API_BASE", DEFAULT_API_BASE).rstrip("/")
    api_timeout = _float_env("API_TIMEOUT_SECONDS", 10.0)

    # Chat polling
    username = os.getenv("A1_USERNAME") or None
    interval = _float_env("CHAT_POLL_INTERVAL_SECONDS", 10.0)
    seen_capacity = _int_env("SEEN_IDS_CAPACITY", 100)
    if interval <= 0:
        raise ValueError("CHAT_POLL_INTERVAL_SECONDS must be positive")
    if seen_capacity <= 0:
        raise ValueError("SEEN_IDS_CAPACITY must be positive")

    # Notification sink
    sink = os.getenv("NOTIFICATION_SINK", "auto").strip().lower() or "auto"
    if sink not in _SINK_CHOICES:
        raise ValueError(
            f"NOTIFICATION_SINK must be one of {', '.join(_SINK_CHOICES)}, got {sink!r}"
        )
    app_name = os.getenv("NOTIFIER_APP_NAME", "A1 Tools")

    twilio = TwilioConfig(
        account_sid=os.getenv("TWILIO_ACCOUNT_SID"),
        auth_token=os.getenv("TWILIO_AUTH_TOKEN"),
        from_number=os.getenv("TWILIO_FROM_NUMBER"),
        to_number=os.getenv("TWILIO_TO_NUMBER"),
    )

    # Twilio is only required when the mobile sink is forced; "auto" is
    # validated again when the sink is actually built.
    if sink == "mobile":
        missing = twilio.missing()
        if missing:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

    return AppConfig(
        api=ApiConfig(
            base_url=api_base,
            timeout_seconds=api_timeout,
        ),
        chat=ChatSyncConfig(
            username=username,
            interval_seconds=interval,
            seen_capacity=seen_capacity,
        ),
        notifier=NotifierConfig(
            sink=sink,
            app_name=app_name,
            twilio=twilio,
        ),
    )
