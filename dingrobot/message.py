"""Robot message model, one dataclass per msgtype.

A Message wraps exactly one payload (Text, Link, Markdown, ActionCard or
FeedCard); the payload's type decides the ``msgtype`` and which options
apply. Serialization follows the robot API's JSON shape, dropping unset
optional fields the way the API expects:

    {"msgtype": "text", "at": {...}, "text": {"content": "hi"}}

No content validation happens here, the robot API is authoritative.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from dingrobot.errors import SerializationError
from dingrobot.outgoing import Outgoing


class MsgType(str, Enum):
    TEXT = "text"
    LINK = "link"
    MARKDOWN = "markdown"
    ACTION_CARD = "actionCard"
    FEED_CARD = "feedCard"


@dataclass
class At:
    """@-mention settings. Only honoured for Text and Markdown messages."""
    at_mobiles: list[str] = field(default_factory=list)
    is_at_all: bool = False

    def to_dict(self) -> dict:
        d: dict = {}
        if self.at_mobiles:
            d["atMobiles"] = list(self.at_mobiles)
        if self.is_at_all:
            d["isAtAll"] = True
        return d


@dataclass
class Text:
    content: str
    msgtype = MsgType.TEXT

    def to_dict(self) -> dict:
        return {"content": self.content}


@dataclass
class Link:
    title: str
    text: str               # long text is truncated by the client UI
    message_url: str
    pic_url: str = ""

    msgtype = MsgType.LINK

    def to_dict(self) -> dict:
        d = {"title": self.title, "text": self.text, "messageUrl": self.message_url}
        if self.pic_url:
            d["picUrl"] = self.pic_url
        return d


@dataclass
class Markdown:
    title: str              # shown in the conversation list
    text: str

    msgtype = MsgType.MARKDOWN

    def to_dict(self) -> dict:
        return {"title": self.title, "text": self.text}


@dataclass
class ActionCardButton:
    title: str
    action_url: str

    def to_dict(self) -> dict:
        return {"title": self.title, "actionURL": self.action_url}


@dataclass
class ActionCard:
    """Card with either one whole-card button or a list of buttons.

    When single_title/single_url are set the robot API ignores ``btns``.
    """
    title: str
    text: str
    single_title: str = ""
    single_url: str = ""
    hide_avatar: str = "0"          # "0" show, "1" hide
    btn_orientation: str = "1"      # "0" vertical, "1" horizontal
    btns: list[ActionCardButton] = field(default_factory=list)

    msgtype = MsgType.ACTION_CARD

    def to_dict(self) -> dict:
        d = {"title": self.title, "text": self.text}
        if self.single_title:
            d["singleTitle"] = self.single_title
        if self.single_url:
            d["singleURL"] = self.single_url
        if self.hide_avatar:
            d["hideAvatar"] = self.hide_avatar
        if self.btn_orientation:
            d["btnOrientation"] = self.btn_orientation
        if self.btns:
            d["btns"] = [b.to_dict() for b in self.btns]
        return d


@dataclass
class FeedCardLink:
    title: str
    message_url: str
    pic_url: str

    def to_dict(self) -> dict:
        return {"title": self.title, "messageURL": self.message_url, "picURL": self.pic_url}


@dataclass
class FeedCard:
    links: list[FeedCardLink] = field(default_factory=list)

    msgtype = MsgType.FEED_CARD

    def to_dict(self) -> dict:
        # links is always present, even when empty
        return {"links": [link.to_dict() for link in self.links]}


Payload = Union[Text, Link, Markdown, ActionCard, FeedCard]


@dataclass
class Message:
    """A message in progress: payload + optional @-mention + reply target.

    ``outgoing`` only redirects where the message goes (the callback's
    sessionWebhook); it is never part of the serialized body.
    """
    payload: Payload
    at: At | None = None
    outgoing: Outgoing | None = None

    @property
    def msgtype(self) -> MsgType:
        return self.payload.msgtype

    def to_dict(self) -> dict:
        d: dict = {"msgtype": self.msgtype.value}
        if self.at is not None:
            d["at"] = self.at.to_dict()
        d[self.msgtype.value] = self.payload.to_dict()
        return d

    def to_json(self) -> bytes:
        """Compact UTF-8 JSON body for the robot API."""
        try:
            return json.dumps(
                self.to_dict(), ensure_ascii=False, separators=(",", ":"),
            ).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SerializationError(f"cannot encode {self.msgtype.value} message: {e}") from e
