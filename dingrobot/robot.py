"""Custom group robot — builds, signs and sends robot messages.

Usage:
    from dingrobot import Robot, at_all, with_outgoing, parse_outgoing

    robot = Robot(webhook="https://oapi.dingtalk.com/robot/send?access_token=xxx",
                  secret="SEC...")
    robot.send_text("deploy finished", at_all())

    # reply to an inbound callback through its sessionWebhook
    og = parse_outgoing(request_body)
    robot.send_text("pong", with_outgoing(og))

Every send is one blocking POST bounded by the transport deadline
(2s by default). Nothing is retried; any failure raises a RobotError.
A Robot holds no per-call state, so one instance can be shared across
threads once its setters have run.

Doc: https://open.dingtalk.com/document/robots/custom-robot-access
"""

import json
import logging
import time

import httpx

from dingrobot.config import (
    DINGTALK_WEBHOOK,
    DINGTALK_ACCESS_TOKEN,
    DINGTALK_API_BASE,
    DINGTALK_SECRET,
)
from dingrobot.errors import (
    ConfigurationError,
    ExpiredReplyTargetError,
    RemoteRejectionError,
    SerializationError,
)
from dingrobot.message import ActionCard, FeedCard, Link, Markdown, Message, Text
from dingrobot.options import Option, apply_options
from dingrobot.sign import sign
from dingrobot.transport import Transport
from dingrobot.transport.http import HttpxTransport

log = logging.getLogger(__name__)


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _with_params(url: str, params: dict) -> str:
    try:
        return str(httpx.URL(url).copy_merge_params(params))
    except httpx.InvalidURL as e:
        raise ConfigurationError(f"invalid robot URL {url!r}: {e}") from e


class Robot:
    """Handle for one custom robot (webhook or access token + optional secret)."""

    def __init__(self, webhook: str = "", secret: str = "", access_token: str = "",
                 api_base: str = DINGTALK_API_BASE,
                 transport: Transport | None = None):
        self.webhook = webhook
        self.secret = secret
        self.access_token = access_token
        self.api_base = api_base
        self._owns_transport = transport is None
        self.transport = transport or HttpxTransport()

    @classmethod
    def from_env(cls, transport: Transport | None = None) -> "Robot":
        """Build a Robot from DINGTALK_* settings (see dingrobot.config)."""
        return cls(
            webhook=DINGTALK_WEBHOOK,
            secret=DINGTALK_SECRET,
            access_token=DINGTALK_ACCESS_TOKEN,
            api_base=DINGTALK_API_BASE,
            transport=transport,
        )

    # ── Setup (call before sharing the instance) ──────────────

    def set_webhook(self, webhook: str) -> "Robot":
        self.webhook = webhook
        return self

    def set_secret(self, secret: str) -> "Robot":
        self.secret = secret
        return self

    def set_access_token(self, token: str) -> "Robot":
        self.access_token = token
        return self

    # ── Senders ───────────────────────────────────────────────

    def send_text(self, content: str, *opts: Option) -> None:
        """Plain text. Supports at_all()/at_mobiles()."""
        self.send(Message(Text(content=content)), *opts)

    def send_link(self, title: str, text: str, message_url: str,
                  pic_url: str = "", *opts: Option) -> None:
        """Link card. Pass pic_url (may be "") before any options."""
        if callable(pic_url):
            raise TypeError("send_link() got an option as pic_url; pass pic_url=\"\" first")
        self.send(Message(Link(title=title, text=text,
                               message_url=message_url, pic_url=pic_url)), *opts)

    def send_markdown(self, title: str, text: str, *opts: Option) -> None:
        """Markdown body; ``title`` is what the conversation list shows."""
        self.send(Message(Markdown(title=title, text=text)), *opts)

    def send_action_card(self, title: str, text: str, *opts: Option) -> None:
        """ActionCard; add buttons with single_button() or add_button()."""
        self.send(Message(ActionCard(title=title, text=text)), *opts)

    def send_feed_card(self, *opts: Option) -> None:
        """FeedCard; add entries with add_feed_link()."""
        self.send(Message(FeedCard()), *opts)

    def send(self, msg: Message, *opts: Option) -> None:
        """Apply options, then POST the message. Raises RobotError on failure."""
        apply_options(msg, *opts)
        body = msg.to_json()
        url = self.target_url(msg, _now_ms())

        data = self.transport.post(url, body)
        self._check_response(data)
        log.info("Robot %s message sent", msg.msgtype.value)

    # ── Internals ─────────────────────────────────────────────

    def base_url(self) -> str:
        """Configured webhook, or api_base + access_token."""
        if self.webhook:
            return self.webhook
        if self.access_token:
            return _with_params(self.api_base, {"access_token": self.access_token})
        raise ConfigurationError("robot has neither a webhook nor an access token")

    def target_url(self, msg: Message, now: int) -> str:
        """Where ``msg`` goes at time ``now`` (ms).

        A live sessionWebhook wins and is used as-is (no signature); an
        expired one fails before any request. Otherwise the robot's own
        URL, signed when a secret is configured.
        """
        og = msg.outgoing
        if og is not None and og.session_webhook:
            if og.is_expired(now):
                raise ExpiredReplyTargetError(og.session_webhook_expired_time, now)
            log.debug("Replying via sessionWebhook (msg_id=%s)", og.msg_id)
            return og.session_webhook

        url = self.base_url()
        if not self.secret:
            log.debug("Sending unsigned")
            return url

        log.debug("Sending signed, timestamp=%d", now)
        return _with_params(url, {
            "timestamp": str(now),
            "sign": sign(now, self.secret),
        })

    @staticmethod
    def _check_response(data: bytes) -> None:
        """Interpret the {"errcode": int, "errmsg": str} envelope."""
        try:
            resp = json.loads(data)
        except ValueError as e:
            raise SerializationError(f"invalid robot API response: {e}") from e
        if not isinstance(resp, dict):
            raise SerializationError(f"unexpected robot API response: {resp!r}"[:200])

        errcode = resp.get("errcode", 0)
        errmsg = resp.get("errmsg", "")
        if not isinstance(errcode, int) or isinstance(errcode, bool):
            raise SerializationError(f"robot API errcode is not an integer: {errcode!r}")
        if errcode != 0:
            log.warning("Robot API rejected message: [%d] %s", errcode, errmsg)
            raise RemoteRejectionError(errcode, errmsg)

    def close(self) -> None:
        """Close the transport if this Robot created it."""
        if self._owns_transport:
            self.transport.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
