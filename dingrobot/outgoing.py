"""Outgoing callbacks: the JSON body the robot API POSTs to your server
when someone @-mentions the robot in a group.

Example body (trimmed):

    {
        "conversationId": "ciddz7nmHDaX/7Niz+Gb5VVrw==",
        "atUsers": [{"dingtalkId": "$:LWCP_v1:$0sIVIuw1..."}],
        "senderNick": "Jioby",
        "isAdmin": false,
        "sessionWebhookExpiredTime": 1612178396066,
        "conversationType": "2",
        "sessionWebhook": "https://oapi.dingtalk.com/robot/sendBySession?session=...",
        "text": {"content": "  哈哈哈"},
        "msgtype": "text"
    }

The parsed record can be attached to a message with ``with_outgoing()`` so
the reply goes through the temporary sessionWebhook.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import IO, Union

from dingrobot.errors import SerializationError

log = logging.getLogger(__name__)


@dataclass
class AtUser:
    dingtalk_id: str = ""   # encrypted user id


@dataclass
class OutgoingText:
    content: str = ""


@dataclass
class Outgoing:
    """One inbound callback. Missing fields keep their zero values."""
    at_users: list[AtUser] = field(default_factory=list)
    chatbot_user_id: str = ""
    conversation_id: str = ""
    conversation_title: str = ""    # group name, group chats only
    conversation_type: str = ""     # "1" single chat, "2" group chat
    create_at: int = 0              # ms epoch
    is_admin: bool = False
    is_in_at_list: bool = False
    msg_id: str = ""
    msgtype: str = ""               # only "text" is delivered today
    scene_group_code: str = ""
    sender_id: str = ""
    sender_nick: str = ""
    session_webhook: str = ""
    session_webhook_expired_time: int = 0   # ms epoch
    text: OutgoingText = field(default_factory=OutgoingText)

    def is_expired(self, now_ms: int) -> bool:
        return self.session_webhook_expired_time < now_ms

    @classmethod
    def from_dict(cls, data: dict) -> "Outgoing":
        text = data.get("text") or {}
        return cls(
            at_users=[AtUser(dingtalk_id=u.get("dingtalkId") or "")
                      for u in data.get("atUsers") or []],
            chatbot_user_id=data.get("chatbotUserId") or "",
            conversation_id=data.get("conversationId") or "",
            conversation_title=data.get("conversationTitle") or "",
            conversation_type=data.get("conversationType") or "",
            create_at=int(data.get("createAt") or 0),
            is_admin=bool(data.get("isAdmin") or False),
            is_in_at_list=bool(data.get("isInAtList") or False),
            msg_id=data.get("msgId") or "",
            msgtype=data.get("msgtype") or "",
            scene_group_code=data.get("sceneGroupCode") or "",
            sender_id=data.get("senderId") or "",
            sender_nick=data.get("senderNick") or "",
            session_webhook=data.get("sessionWebhook") or "",
            session_webhook_expired_time=int(data.get("sessionWebhookExpiredTime") or 0),
            text=OutgoingText(content=text.get("content") or ""),
        )


def parse_outgoing(body: Union[bytes, str, IO]) -> Outgoing:
    """Decode a callback request body (bytes, str, or anything with .read()).

    Unknown fields are ignored and nothing is validated: a missing or stale
    sessionWebhook only surfaces when a reply is sent.
    """
    if hasattr(body, "read"):
        body = body.read()
    try:
        data = json.loads(body)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"invalid outgoing callback body: {e}") from e
    if not isinstance(data, dict):
        raise SerializationError(
            f"outgoing callback body must be a JSON object, got {type(data).__name__}"
        )
    try:
        og = Outgoing.from_dict(data)
    except (AttributeError, TypeError, ValueError) as e:
        raise SerializationError(f"malformed outgoing callback field: {e}") from e
    log.debug("Parsed outgoing callback: msg_id=%s conversation_type=%s",
              og.msg_id, og.conversation_type)
    return og
