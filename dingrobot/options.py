"""Message options, small callables applied to a Message before sending.

Each option checks the message's payload type and silently does nothing
when it does not apply (e.g. ``at_all()`` on an ActionCard). That keeps a
single "apply every option" loop valid for every message type.

Usage:
    robot.send_text("deploy done", at_all())
    robot.send_action_card("Weekly", body,
                           add_button("Good", url1), add_button("Meh", url2),
                           btn_orientation("0"))
"""

from typing import Callable

from dingrobot.message import (
    ActionCard, ActionCardButton, At, FeedCard, FeedCardLink,
    Markdown, Message, Text,
)
from dingrobot.outgoing import Outgoing

Option = Callable[[Message], None]

# @-mentions only render for these payloads
_MENTIONABLE = (Text, Markdown)


def _flag(value: str | bool) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    return value


def apply_options(msg: Message, *opts: Option) -> Message:
    """Apply options in the order given. Later options win."""
    for opt in opts:
        opt(msg)
    return msg


def at_all() -> Option:
    """@ everyone in the group. Text/Markdown only."""
    def _apply(msg: Message) -> None:
        if not isinstance(msg.payload, _MENTIONABLE):
            return
        if msg.at is None:
            msg.at = At()
        msg.at.is_at_all = True
    return _apply


def at_mobiles(*mobiles: str) -> Option:
    """@ members by phone number, replacing any earlier list. Text/Markdown only."""
    def _apply(msg: Message) -> None:
        if not isinstance(msg.payload, _MENTIONABLE):
            return
        if msg.at is None:
            msg.at = At()
        msg.at.at_mobiles = list(mobiles)
    return _apply


def hide_avatar(value: str | bool) -> Option:
    """Hide ("1"/True) or show ("0", default) the sender avatar. ActionCard only."""
    def _apply(msg: Message) -> None:
        if isinstance(msg.payload, ActionCard):
            msg.payload.hide_avatar = _flag(value)
    return _apply


def btn_orientation(value: str | bool) -> Option:
    """Lay buttons out vertically ("0") or horizontally ("1"/True, default). ActionCard only."""
    def _apply(msg: Message) -> None:
        if isinstance(msg.payload, ActionCard):
            msg.payload.btn_orientation = _flag(value)
    return _apply


def single_button(title: str, url: str) -> Option:
    """Make the whole card one button. ActionCard only; overrides add_button()."""
    def _apply(msg: Message) -> None:
        if isinstance(msg.payload, ActionCard):
            msg.payload.single_title = title
            msg.payload.single_url = url
    return _apply


def add_button(title: str, url: str) -> Option:
    """Append one button. ActionCard only."""
    def _apply(msg: Message) -> None:
        if isinstance(msg.payload, ActionCard):
            msg.payload.btns.append(ActionCardButton(title=title, action_url=url))
    return _apply


def add_feed_link(title: str, message_url: str, pic_url: str) -> Option:
    """Append one entry. FeedCard only."""
    def _apply(msg: Message) -> None:
        if isinstance(msg.payload, FeedCard):
            msg.payload.links.append(
                FeedCardLink(title=title, message_url=message_url, pic_url=pic_url)
            )
    return _apply


def with_outgoing(og: Outgoing) -> Option:
    """Reply through the callback's sessionWebhook instead of the robot webhook."""
    def _apply(msg: Message) -> None:
        msg.outgoing = og
    return _apply
