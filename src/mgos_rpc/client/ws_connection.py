"""
Websocket Connection.

Thin adapter over `websocket-client` exposing the stream operations the
websocket Node needs: dial an endpoint, write one whole request, read one
reply.
"""
import logging
import socket
from typing import Optional

from websocket import (
    WebSocket,
    WebSocketException,
    WebSocketTimeoutException,
    create_connection,
)

from mgos_rpc.errors import ReadError, TransportConnectionError, TransportTimeout, WriteError

logger = logging.getLogger(__name__)


def local_hostname() -> str:
    """The local host name used in the websocket Origin, or `localhost`."""
    try:
        return socket.gethostname() or "localhost"
    except OSError:
        return "localhost"


class WebSocketConnection:
    """One open websocket. Requests go out as text frames."""

    def __init__(self, ws: WebSocket):
        self.ws = ws

    def write(self, payload: bytes):
        try:
            self.ws.send(payload.decode("utf-8"))
        except (WebSocketException, OSError) as e:
            raise WriteError(str(e) or type(e).__name__) from e

    def read(self, size: int, timeout: Optional[float] = None) -> bytes:
        """
        Reads one message, returning at most `size` bytes of it.

        `timeout` overrides the socket timeout for this read only.
        """
        previous = self.ws.gettimeout()
        if timeout is not None:
            self.ws.settimeout(timeout)
        try:
            data = self.ws.recv()
        except WebSocketTimeoutException as e:
            raise TransportTimeout(f"no reply within {timeout}s") from e
        except (WebSocketException, OSError) as e:
            raise ReadError(str(e) or type(e).__name__) from e
        finally:
            if timeout is not None:
                self.ws.settimeout(previous)

        if isinstance(data, str):
            data = data.encode("utf-8")
        if len(data) > size:
            logger.warning(f"Reply of {len(data)} bytes truncated to {size} bytes")
            data = data[:size]
        return data

    def close(self):
        try:
            self.ws.close()
        except (WebSocketException, OSError) as e:
            logger.warning(f"Error closing websocket: {e}")


def dial(endpoint: str, origin: Optional[str] = None,
         timeout: Optional[float] = None) -> WebSocketConnection:
    """Opens a websocket to `endpoint`, e.g. `ws://device/rpc`."""
    try:
        ws = create_connection(endpoint, origin=origin, timeout=timeout)
    except (WebSocketException, OSError) as e:
        raise TransportConnectionError(f"dialing {endpoint} failed: {e}") from e
    logger.info(f"Connected websocket {endpoint}")
    return WebSocketConnection(ws)
