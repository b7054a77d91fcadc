"""Client for DingTalk group custom robots."""

from dingrobot.errors import (
    RobotError,
    ConfigurationError,
    TransportError,
    SerializationError,
    ExpiredReplyTargetError,
    RemoteRejectionError,
)
from dingrobot.message import (
    MsgType, At, Text, Link, Markdown, ActionCard, ActionCardButton,
    FeedCard, FeedCardLink, Message,
)
from dingrobot.options import (
    Option, apply_options, at_all, at_mobiles, hide_avatar, btn_orientation,
    single_button, add_button, add_feed_link, with_outgoing,
)
from dingrobot.outgoing import Outgoing, AtUser, OutgoingText, parse_outgoing
from dingrobot.robot import Robot
from dingrobot.sign import sign
from dingrobot.transport import Transport
from dingrobot.transport.http import HttpxTransport

__version__ = "0.1.0"
