"""Transport abstraction — base class for the HTTP leg of a send.

A transport POSTs a JSON body to a URL and hands back the raw response
bytes. It knows nothing about robot messages; the Robot interprets the
response. Swap in a fake in tests, or a differently tuned pool in prod.
"""

import logging
from abc import ABC, abstractmethod

log = logging.getLogger(__name__)


class Transport(ABC):
    """Abstract base class for robot transports.

    Implementations enforce their own deadline and raise
    dingrobot.errors.TransportError on network failures.
    """

    @abstractmethod
    def post(self, url: str, body: bytes) -> bytes:
        """POST ``body`` as application/json and return the response body."""
        ...

    def close(self) -> None:
        """Release pooled connections. No-op by default."""

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
