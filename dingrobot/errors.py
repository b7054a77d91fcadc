"""Exceptions raised by the robot client.

Everything derives from RobotError so callers can catch one type. Nothing
here is retried: each error is the terminal result of a single send.
"""


class RobotError(Exception):
    """Base class for all robot client errors."""


class ConfigurationError(RobotError):
    """The client has no webhook and no access token to send to."""


class TransportError(RobotError):
    """Network failure, timeout, or a broken HTTP exchange."""


class SerializationError(RobotError):
    """A message or a response body could not be encoded/decoded as JSON."""


class ExpiredReplyTargetError(RobotError):
    """The attached Outgoing callback's sessionWebhook is past its expiry."""

    def __init__(self, expired_at: int, now: int):
        self.expired_at = expired_at
        self.now = now
        super().__init__(
            f"sessionWebhook expired at {expired_at} (now {now})"
        )


class RemoteRejectionError(RobotError):
    """The robot API answered with a non-zero errcode."""

    def __init__(self, errcode: int, errmsg: str):
        self.errcode = errcode
        self.errmsg = errmsg
        super().__init__(f"robot message rejected [{errcode}]: {errmsg}")
