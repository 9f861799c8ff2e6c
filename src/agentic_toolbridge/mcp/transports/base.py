"""Transport adapter contract shared by all wire transports."""

import json
from abc import ABC, abstractmethod
from typing import Any, Callable

from agentic_toolbridge.config.servers import TransportKind
from agentic_toolbridge.utils.logging import get_logger


logger = get_logger(__name__)

EnvelopeHandler = Callable[[dict[str, Any]], None]
CloseHandler = Callable[[Exception], None]


class Transport(ABC):
    """
    Uniform send-envelope / envelope-received adapter.

    Design Pattern: Adapter over three wire framings

    Subclasses normalize their framing into decoded JSON envelopes, hand
    them to the registered envelope handler, and report unexpected loss of
    the underlying connection exactly once through the close handler.
    Undecodable payloads are dropped.
    """

    kind: TransportKind

    def __init__(self, url: str):
        self.url = url
        self._envelope_handler: EnvelopeHandler | None = None
        self._close_handler: CloseHandler | None = None
        self._closing = False
        self._close_reported = False

    def on_envelope(self, handler: EnvelopeHandler) -> None:
        """Register the callback that receives inbound envelopes."""
        self._envelope_handler = handler

    def on_close(self, handler: CloseHandler) -> None:
        """Register the callback fired when the connection drops on its own."""
        self._close_handler = handler

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Whether envelopes can currently be sent."""

    @abstractmethod
    async def connect(self) -> None:
        """Open the transport. Raises MCPConnectionError on failure."""

    @abstractmethod
    async def send_envelope(self, envelope: dict[str, Any]) -> None:
        """Send one envelope. Raises MCPConnectionError on failure."""

    @abstractmethod
    async def close(self) -> None:
        """Release the transport. Idempotent."""

    def _deliver(self, envelope: Any) -> None:
        if self._envelope_handler is None:
            return
        self._envelope_handler(envelope)

    def _deliver_text(self, raw: str) -> None:
        try:
            envelope = json.loads(raw)
        except ValueError:
            logger.debug("Dropping undecodable envelope", url=self.url, size=len(raw))
            return
        self._deliver(envelope)

    def _notify_closed(self, error: Exception) -> None:
        if self._closing or self._close_reported:
            return
        self._close_reported = True
        logger.info("Transport closed", kind=self.kind.value, url=self.url, reason=str(error))
        if self._close_handler is not None:
            self._close_handler(error)
