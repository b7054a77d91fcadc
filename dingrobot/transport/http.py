"""httpx transport — the default way robot messages leave the process.

One pooled httpx.Client per transport; keep-alive connections are reused
across sends. Proxies come from the environment (HTTP(S)_PROXY).
"""

import logging

import httpx

from dingrobot.config import (
    DINGTALK_TIMEOUT_SECONDS,
    DINGTALK_MAX_CONNECTIONS,
    DINGTALK_KEEPALIVE_SECONDS,
)
from dingrobot.errors import TransportError
from dingrobot.transport import Transport

log = logging.getLogger(__name__)


class HttpxTransport(Transport):
    """Synchronous httpx transport with a short overall deadline."""

    def __init__(self, timeout: float = DINGTALK_TIMEOUT_SECONDS,
                 max_connections: int = DINGTALK_MAX_CONNECTIONS,
                 keepalive_expiry: float = DINGTALK_KEEPALIVE_SECONDS,
                 client: httpx.Client | None = None):
        self.timeout = timeout
        self._client = client or httpx.Client(
            timeout=timeout,
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max_connections,
                keepalive_expiry=keepalive_expiry,
            ),
            trust_env=True,
        )

    def post(self, url: str, body: bytes) -> bytes:
        try:
            resp = self._client.post(
                url,
                content=body,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            log.error("Robot POST failed: %s", e)
            raise TransportError(str(e) or type(e).__name__) from e

        if resp.is_error:
            # The robot API usually still answers with an errcode body
            log.warning("Robot API HTTP %s: %s", resp.status_code, resp.text[:200])
        return resp.content

    def close(self) -> None:
        self._client.close()
