"""Request signing for robots with the "加签" security setting.

The robot API expects ``timestamp`` (ms) and ``sign`` query parameters,
where sign = base64(HMAC-SHA256(key=secret, msg="{timestamp}\\n{secret}")).
"""

import base64
import hashlib
import hmac


def sign(timestamp: int, secret: str) -> str:
    """Return the base64 signature for a millisecond timestamp and secret."""
    key = secret.encode("utf-8")
    msg = f"{timestamp}\n{secret}".encode("utf-8")
    digest = hmac.new(key, msg, digestmod=hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")
