import asyncio
import logging
import threading

import pytest

from a1tools_agent import notifiers
from a1tools_agent.config import NotifierConfig, TwilioConfig
from a1tools_agent.models import NotificationRequest
from a1tools_agent.notifiers import (
    DesktopSink,
    MobileSink,
    deep_link_for_payload,
    payload_from_deep_link,
    select_sink,
)


# -----------------------------
# Test doubles
# -----------------------------
class FakeDesktopNotifier:
    """Async notifier; optionally "clicks" on its own loop after send returns."""

    def __init__(self, click_after=None):
        self.sent = []
        self.click_after = click_after

    async def send(self, title, message, on_clicked=None):
        self.sent.append({"title": title, "message": message, "on_clicked": on_clicked})
        if self.click_after is not None:
            asyncio.get_running_loop().call_later(self.click_after, on_clicked)


class FakeMessage:
    sid = "SM123"


class FakeMessages:
    def __init__(self, error=None):
        self.created = []
        self.error = error

    def create(self, body, from_, to):
        if self.error:
            raise self.error
        self.created.append({"body": body, "from_": from_, "to": to})
        return FakeMessage()


class FakeTwilioClient:
    def __init__(self, error=None):
        self.messages = FakeMessages(error)


TWILIO = TwilioConfig(
    account_sid="AC0000000000",
    auth_token="token",
    from_number="+15550000001",
    to_number="+15550000002",
)

REQUEST = NotificationRequest(notification_id=3, title="Alice", body="hi", payload="chat:alice")


# -----------------------------
# Desktop
# -----------------------------
def test_desktop_sink_sends_and_routes_click():
    fake = FakeDesktopNotifier()
    clicks = []
    sink = DesktopSink(notifier=fake)
    try:
        sink.show(REQUEST, clicks.append)
        fake.sent[0]["on_clicked"]()
    finally:
        sink.close()

    assert fake.sent[0]["title"] == "Alice"
    assert fake.sent[0]["message"] == "hi"
    assert clicks == ["chat:alice"]


def test_desktop_click_arriving_after_show_returns_is_routed():
    fake = FakeDesktopNotifier(click_after=0.2)
    clicked = threading.Event()
    payloads = []

    def on_click(payload):
        payloads.append(payload)
        clicked.set()

    sink = DesktopSink(notifier=fake)
    try:
        sink.show(REQUEST, on_click)
        assert clicked.wait(timeout=5)
    finally:
        sink.close()

    assert payloads == ["chat:alice"]


def test_desktop_sink_reraises_failures():
    class Broken:
        async def send(self, **kwargs):
            raise RuntimeError("no dbus")

    sink = DesktopSink(notifier=Broken())
    try:
        with pytest.raises(RuntimeError):
            sink.show(REQUEST, lambda p: None)
    finally:
        sink.close()


def test_desktop_sink_close_stops_loop_thread():
    sink = DesktopSink(notifier=FakeDesktopNotifier())
    sink.close()
    assert not sink._thread.is_alive()


# -----------------------------
# Mobile
# -----------------------------
def test_mobile_sink_sends_sms_with_deep_link():
    client = FakeTwilioClient()
    sink = MobileSink(TWILIO, client=client)

    sink.show(
        NotificationRequest(notification_id=100004, title="Crew", body="Bob: ok", payload="group:4"),
        lambda p: None,
    )

    sent = client.messages.created[0]
    assert sent["body"] == "Crew: Bob: ok\na1tools://group/4"
    assert sent["from_"] == "+15550000001"
    assert sent["to"] == "+15550000002"


def test_mobile_sink_reraises_failures():
    sink = MobileSink(TWILIO, client=FakeTwilioClient(error=RuntimeError("HTTP 401 Authenticate")))
    with pytest.raises(RuntimeError):
        sink.show(REQUEST, lambda p: None)


def test_mobile_sink_names_credentials_on_auth_rejection(caplog):
    class AuthError(Exception):
        code = 20003
        status = 401

    sink = MobileSink(TWILIO, client=FakeTwilioClient(error=AuthError("Authenticate")))
    with caplog.at_level(logging.ERROR, logger="a1tools_agent.notifiers"):
        with pytest.raises(AuthError):
            sink.show(REQUEST, lambda p: None)

    assert "AC00000000..." in caplog.text
    assert "TWILIO_AUTH_TOKEN" in caplog.text


def test_mobile_sink_logs_other_failures_verbatim():
    sink = MobileSink(TWILIO, client=FakeTwilioClient())
    assert sink.describe_failure(RuntimeError("queue full")) == (
        "Failed to relay notification by SMS: queue full"
    )


def test_mobile_sink_requires_twilio_settings():
    with pytest.raises(ValueError) as exc:
        MobileSink(TwilioConfig("AC1", None, "+1", None), client=FakeTwilioClient())
    assert "TWILIO_AUTH_TOKEN" in str(exc.value)
    assert "TWILIO_TO_NUMBER" in str(exc.value)


def test_deep_links_round_trip():
    for payload in ("chat:alice", "chat:mary jane", "group:12"):
        assert payload_from_deep_link(deep_link_for_payload(payload)) == payload
    assert deep_link_for_payload("chat:mary jane") == "a1tools://chat/mary%20jane"
    assert payload_from_deep_link("https://example.com/chat/alice") is None
    assert payload_from_deep_link("a1tools://chat/") is None


# -----------------------------
# Selection
# -----------------------------
@pytest.fixture
def recorded_sinks(monkeypatch):
    built = []

    class FakeDesktop:
        def __init__(self, app_name):
            built.append(("desktop", app_name))

    class FakeMobile:
        def __init__(self, config):
            built.append(("mobile", config.to_number))

    monkeypatch.setattr(notifiers, "DesktopSink", FakeDesktop)
    monkeypatch.setattr(notifiers, "MobileSink", FakeMobile)
    return built


@pytest.mark.parametrize("platform", ["win32", "darwin", "linux"])
def test_auto_selects_desktop_on_desktop_platforms(recorded_sinks, platform):
    select_sink(NotifierConfig(sink="auto", app_name="A1"), platform=platform)
    assert recorded_sinks == [("desktop", "A1")]


@pytest.mark.parametrize("platform", ["android", "ios"])
def test_auto_selects_mobile_on_mobile_platforms(recorded_sinks, platform):
    select_sink(NotifierConfig(sink="auto", twilio=TWILIO), platform=platform)
    assert recorded_sinks == [("mobile", "+15550000002")]


def test_explicit_choice_overrides_platform(recorded_sinks):
    select_sink(NotifierConfig(sink="mobile", twilio=TWILIO), platform="linux")
    select_sink(NotifierConfig(sink="desktop"), platform="android")
    assert [kind for kind, _ in recorded_sinks] == ["mobile", "desktop"]


def test_unknown_choice_is_rejected():
    with pytest.raises(ValueError):
        select_sink(NotifierConfig(sink="carrier-pigeon"), platform="linux")
