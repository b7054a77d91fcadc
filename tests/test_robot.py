"""Tests for Robot URL selection, sending and response handling.

No real HTTP: a FakeTransport records every POST and replays canned bodies.
"""

import json

import httpx
import pytest

import dingrobot.robot as robot_module
from dingrobot.errors import (
    ConfigurationError,
    ExpiredReplyTargetError,
    RemoteRejectionError,
    SerializationError,
    TransportError,
)
from dingrobot.message import Message, Text
from dingrobot.options import (
    add_button, add_feed_link, at_all, at_mobiles, single_button, with_outgoing,
)
from dingrobot.outgoing import Outgoing
from dingrobot.robot import Robot
from dingrobot.sign import sign
from dingrobot.transport import Transport
from dingrobot.transport.http import HttpxTransport

WEBHOOK = "https://oapi.dingtalk.com/robot/send?access_token=abc123"
SESSION = "https://oapi.dingtalk.com/robot/sendBySession?session=eb18e18e8669b0a3cd7dff1388fe5e6a"
NOW = 1612172996026
OK = b'{"errcode":0,"errmsg":"ok"}'


class FakeTransport(Transport):
    def __init__(self, responses=None, error=None):
        self.responses = list(responses or [OK])
        self.error = error
        self.calls = []
        self.closed = False

    def post(self, url, body):
        self.calls.append((url, body))
        if self.error:
            raise self.error
        return self.responses.pop(0)

    def close(self):
        self.closed = True

    @property
    def last_body(self) -> dict:
        return json.loads(self.calls[-1][1])


@pytest.fixture(autouse=True)
def fixed_clock(monkeypatch):
    monkeypatch.setattr(robot_module, "_now_ms", lambda: NOW)


@pytest.fixture
def transport():
    return FakeTransport()


class TestTargetUrl:
    def test_plain_webhook_unchanged(self, transport):
        robot = Robot(webhook=WEBHOOK, transport=transport)
        assert robot.target_url(Message(Text("hi")), NOW) == WEBHOOK

    def test_signed(self, transport):
        robot = Robot(webhook=WEBHOOK, secret="SECtest", transport=transport)
        url = httpx.URL(robot.target_url(Message(Text("hi")), NOW))
        assert url.params["access_token"] == "abc123"
        assert url.params["timestamp"] == str(NOW)
        assert url.params["sign"] == sign(NOW, "SECtest")
        assert url.host == "oapi.dingtalk.com"
        assert url.path == "/robot/send"

    def test_access_token(self, transport):
        robot = Robot(access_token="tok", transport=transport)
        url = httpx.URL(robot.target_url(Message(Text("hi")), NOW))
        assert url.params["access_token"] == "tok"
        assert "sign" not in url.params

    def test_access_token_signed(self, transport):
        robot = Robot(access_token="tok", secret="SECtest", transport=transport)
        url = httpx.URL(robot.target_url(Message(Text("hi")), NOW))
        assert url.params["access_token"] == "tok"
        assert url.params["sign"] == sign(NOW, "SECtest")

    def test_webhook_preferred_over_token(self, transport):
        robot = Robot(webhook=WEBHOOK, access_token="other", transport=transport)
        assert robot.base_url() == WEBHOOK

    def test_live_session_webhook_used_as_is(self, transport):
        robot = Robot(webhook=WEBHOOK, secret="SECtest", transport=transport)
        og = Outgoing(session_webhook=SESSION, session_webhook_expired_time=NOW + 1000)
        assert robot.target_url(Message(Text("hi"), outgoing=og), NOW) == SESSION

    def test_outgoing_without_session_webhook_falls_back(self, transport):
        robot = Robot(webhook=WEBHOOK, transport=transport)
        og = Outgoing(msg_id="m1")
        assert robot.target_url(Message(Text("hi"), outgoing=og), NOW) == WEBHOOK

    def test_malformed_webhook_when_signing(self, transport):
        robot = Robot(webhook="http://host:notaport/x", secret="SECtest", transport=transport)
        with pytest.raises(ConfigurationError):
            robot.target_url(Message(Text("hi")), NOW)

    def test_malformed_api_base(self, transport):
        robot = Robot(access_token="tok", api_base="http://host:notaport/x", transport=transport)
        with pytest.raises(ConfigurationError):
            robot.base_url()

    def test_nothing_configured(self, transport):
        robot = Robot(transport=transport)
        with pytest.raises(ConfigurationError):
            robot.target_url(Message(Text("hi")), NOW)


class TestSend:
    def test_send_text(self, transport):
        Robot(webhook=WEBHOOK, transport=transport).send_text("hi")
        assert len(transport.calls) == 1
        url, body = transport.calls[0]
        assert url == WEBHOOK
        assert body == b'{"msgtype":"text","text":{"content":"hi"}}'

    def test_send_text_at_all(self, transport):
        Robot(webhook=WEBHOOK, transport=transport).send_text("hi", at_all())
        assert transport.last_body["at"] == {"isAtAll": True}

    def test_send_markdown_at_mobiles(self, transport):
        robot = Robot(webhook=WEBHOOK, transport=transport)
        robot.send_markdown("T", "## body", at_mobiles("19900001111"))
        assert transport.last_body == {
            "msgtype": "markdown",
            "at": {"atMobiles": ["19900001111"]},
            "markdown": {"title": "T", "text": "## body"},
        }

    def test_send_link_ignores_mentions(self, transport):
        robot = Robot(webhook=WEBHOOK, transport=transport)
        robot.send_link("T", "x", "https://example.com", "", at_all())
        assert "at" not in transport.last_body
        assert transport.last_body["link"] == {
            "title": "T", "text": "x", "messageUrl": "https://example.com",
        }

    def test_send_action_card(self, transport):
        robot = Robot(webhook=WEBHOOK, transport=transport)
        robot.send_action_card("T", "body", single_button("阅读全文", "https://example.com"))
        card = transport.last_body["actionCard"]
        assert card["singleTitle"] == "阅读全文"
        assert card["hideAvatar"] == "0"
        assert card["btnOrientation"] == "1"

    def test_send_action_card_buttons(self, transport):
        robot = Robot(webhook=WEBHOOK, transport=transport)
        robot.send_action_card(
            "T", "body",
            add_button("内容不错", "https://example.com/1"),
            add_button("不感兴趣", "https://example.com/2"),
        )
        assert len(transport.last_body["actionCard"]["btns"]) == 2

    def test_send_feed_card(self, transport):
        robot = Robot(webhook=WEBHOOK, transport=transport)
        robot.send_feed_card(add_feed_link("A", "https://example.com/a", "https://example.com/a.png"))
        assert transport.last_body["feedCard"]["links"][0]["messageURL"] == "https://example.com/a"

    def test_send_signed(self, transport):
        Robot(webhook=WEBHOOK, secret="SECtest", transport=transport).send_text("hi")
        url = httpx.URL(transport.calls[0][0])
        assert url.params["timestamp"] == str(NOW)
        assert url.params["sign"] == sign(NOW, "SECtest")

    def test_reply_via_session_webhook(self, transport):
        og = Outgoing(session_webhook=SESSION, session_webhook_expired_time=NOW + 60_000)
        Robot(webhook=WEBHOOK, secret="SECtest", transport=transport).send_text(
            "callback", with_outgoing(og)
        )
        assert transport.calls[0][0] == SESSION
        assert "sign" not in transport.calls[0][0]

    def test_reply_target_expired(self, transport):
        og = Outgoing(session_webhook=SESSION, session_webhook_expired_time=NOW - 1)
        robot = Robot(webhook=WEBHOOK, transport=transport)
        with pytest.raises(ExpiredReplyTargetError) as exc:
            robot.send_text("callback", with_outgoing(og))
        assert exc.value.expired_at == NOW - 1
        assert exc.value.now == NOW
        assert transport.calls == []

    def test_send_prebuilt_message(self, transport):
        robot = Robot(webhook=WEBHOOK, transport=transport)
        robot.send(Message(Text("hi")), at_all())
        assert transport.last_body["at"]["isAtAll"] is True

    def test_no_config_makes_no_call(self, transport):
        with pytest.raises(ConfigurationError):
            Robot(transport=transport).send_text("hi")
        assert transport.calls == []

    def test_malformed_session_webhook_is_transport_error(self):
        handled = []
        client = httpx.Client(transport=httpx.MockTransport(
            lambda request: handled.append(request) or httpx.Response(200, content=OK)
        ))
        og = Outgoing(session_webhook="http://host:notaport/x",
                      session_webhook_expired_time=NOW + 60_000)
        robot = Robot(webhook=WEBHOOK, transport=HttpxTransport(client=client))
        with pytest.raises(TransportError):
            robot.send_text("hi", with_outgoing(og))
        assert handled == []

    def test_send_link_option_in_pic_url_slot(self, transport):
        robot = Robot(webhook=WEBHOOK, transport=transport)
        with pytest.raises(TypeError, match="pic_url"):
            robot.send_link("T", "x", "https://example.com", at_all())
        assert transport.calls == []


class TestResponse:
    def test_ok(self):
        transport = FakeTransport([b'{"errcode":0,"errmsg":""}'])
        assert Robot(webhook=WEBHOOK, transport=transport).send_text("hi") is None

    def test_rejected(self):
        transport = FakeTransport([b'{"errcode":1,"errmsg":"boom"}'])
        with pytest.raises(RemoteRejectionError) as exc:
            Robot(webhook=WEBHOOK, transport=transport).send_text("hi")
        assert "boom" in str(exc.value)
        assert exc.value.errcode == 1
        assert exc.value.errmsg == "boom"

    def test_keyword_rejection(self):
        body = json.dumps({"errcode": 310000, "errmsg": "keywords not in content"}).encode()
        with pytest.raises(RemoteRejectionError, match="keywords not in content"):
            Robot(webhook=WEBHOOK, transport=FakeTransport([body])).send_text("hi")

    def test_not_json(self):
        transport = FakeTransport([b"<html>502 Bad Gateway</html>"])
        with pytest.raises(SerializationError):
            Robot(webhook=WEBHOOK, transport=transport).send_text("hi")

    def test_empty_body(self):
        with pytest.raises(SerializationError):
            Robot(webhook=WEBHOOK, transport=FakeTransport([b""])).send_text("hi")

    def test_not_an_object(self):
        with pytest.raises(SerializationError):
            Robot(webhook=WEBHOOK, transport=FakeTransport([b"[]"])).send_text("hi")

    def test_errcode_not_int(self):
        transport = FakeTransport([b'{"errcode":"1","errmsg":"x"}'])
        with pytest.raises(SerializationError):
            Robot(webhook=WEBHOOK, transport=transport).send_text("hi")

    def test_transport_error_propagates(self):
        err = TransportError("timed out")
        transport = FakeTransport(error=err)
        with pytest.raises(TransportError) as exc:
            Robot(webhook=WEBHOOK, transport=transport).send_text("hi")
        assert exc.value is err
        assert len(transport.calls) == 1


class TestSetup:
    def test_setters_chain(self, transport):
        robot = Robot(transport=transport).set_webhook(WEBHOOK).set_secret("SECtest")
        assert robot.webhook == WEBHOOK
        assert robot.secret == "SECtest"
        assert robot.set_access_token("tok") is robot

    def test_from_env(self, monkeypatch, transport):
        monkeypatch.setattr(robot_module, "DINGTALK_WEBHOOK", WEBHOOK)
        monkeypatch.setattr(robot_module, "DINGTALK_SECRET", "SECtest")
        monkeypatch.setattr(robot_module, "DINGTALK_ACCESS_TOKEN", "")
        robot = Robot.from_env(transport=transport)
        assert robot.webhook == WEBHOOK
        assert robot.secret == "SECtest"
        assert robot.transport is transport

    def test_injected_transport_not_closed(self, transport):
        with Robot(webhook=WEBHOOK, transport=transport):
            pass
        assert transport.closed is False

    def test_own_transport_closed(self, monkeypatch):
        created = FakeTransport()
        monkeypatch.setattr(robot_module, "HttpxTransport", lambda: created)
        with Robot(webhook=WEBHOOK) as robot:
            assert robot.transport is created
        assert created.closed is True
