"""WebSocket transport for recognition sessions.

The session talks to the service through the narrow ``Transport`` interface
so tests and alternative vendors can swap the implementation.
``WebSocketTransport`` is the production implementation on top of the
``websockets`` client.
"""

import ssl
from collections.abc import AsyncIterator
from typing import Protocol, runtime_checkable

import websockets
from websockets.exceptions import ConnectionClosedError, ConnectionClosedOK, WebSocketException

from ..core.logging import setup_logging
from ..exceptions import TransportError

logger = setup_logging(__name__)


@runtime_checkable
class Transport(Protocol):
    """Single ordered, bidirectional text stream."""

    @property
    def is_open(self) -> bool: ...

    async def connect(self, url: str) -> None: ...

    async def send(self, message: str) -> None: ...

    def messages(self) -> AsyncIterator[str]: ...

    async def close(self) -> None: ...


class WebSocketTransport:
    """``Transport`` backed by a ``websockets`` client connection."""

    def __init__(self, open_timeout: float = 10.0, close_timeout: float = 2.0, verify_ssl: bool = True):
        self.open_timeout = open_timeout
        self.close_timeout = close_timeout
        self.verify_ssl = verify_ssl
        self.websocket = None

    @property
    def is_open(self) -> bool:
        """Whether the connection can currently send."""
        if self.websocket is None:
            return False
        if getattr(self.websocket, "close_code", None) is not None:
            return False
        state = getattr(self.websocket, "state", None)
        if state is not None:
            return state.name == "OPEN"
        return not getattr(self.websocket, "closed", False)

    def _ssl_context(self, url: str) -> ssl.SSLContext | None:
        if not url.startswith("wss://"):
            return None
        context = ssl.create_default_context()
        if not self.verify_ssl:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    async def connect(self, url: str) -> None:
        """Open the connection; raises TransportError on failure."""
        try:
            self.websocket = await websockets.connect(
                url,
                ssl=self._ssl_context(url),
                open_timeout=self.open_timeout,
                close_timeout=self.close_timeout,
            )
        except (OSError, TimeoutError, WebSocketException) as e:
            self.websocket = None
            raise TransportError(f"Failed to connect to recognition service: {e}", cause=e) from e
        logger.info("Connected to recognition service")

    async def send(self, message: str) -> None:
        if not self.is_open:
            raise TransportError("WebSocket connection is closed - cannot send")
        try:
            await self.websocket.send(message)
        except (OSError, WebSocketException) as e:
            raise TransportError(f"Failed to send message: {e}", cause=e) from e

    async def messages(self) -> AsyncIterator[str]:
        """Yield inbound messages in arrival order until the peer closes.

        A clean close ends the iteration; an abnormal one raises
        TransportError.
        """
        if self.websocket is None:
            return
        try:
            async for message in self.websocket:
                yield message if isinstance(message, str) else message.decode("utf-8")
        except ConnectionClosedOK:
            return
        except ConnectionClosedError as e:
            raise TransportError(f"Connection lost: {e}", cause=e) from e
        except (OSError, WebSocketException) as e:
            raise TransportError(f"Failed to receive message: {e}", cause=e) from e

    async def close(self) -> None:
        """Close the connection; closing twice is a no-op."""
        websocket, self.websocket = self.websocket, None
        if websocket is None:
            return
        try:
            await websocket.close()
        except (OSError, WebSocketException) as e:
            logger.warning(f"Error while closing connection: {e}")
        logger.info("Disconnected from recognition service")
