"""
RPC over a Websocket.

This module is responsible for:
- Dialing `ws://<address>/rpc` on the device.
- Writing request envelopes, retrying failed writes with exponential
  backoff and a fresh connection.
- Reading exactly one reply per request. Reads are never retried: the device
  does not re-send a reply on a new connection. A failed or timed out read
  drops the connection, so the next call starts on a fresh one.
"""
import logging
import os
import time
from typing import Callable, Mapping, Optional

from mgos_rpc.client import ws_connection
from mgos_rpc.client.ws_connection import WebSocketConnection
from mgos_rpc.errors import ReadError, TransportConnectionError, TransportTimeout, WriteError
from mgos_rpc.node.backoff import Backoff
from mgos_rpc.node.base import Node

logger = logging.getLogger(__name__)

MAX_RECV_SIZE = 1024  # bytes
RETRY_ATTEMPTS = 5
RETRY_REDIAL = True

Dialer = Callable[..., WebSocketConnection]


def process_src() -> str:
    """The reply token identifying this process, `wsnode-<pid>`."""
    return f"wsnode-{os.getpid()}"


class WSNode(Node):
    """
    A Node reached through a websocket to the device.

    The connection is dialed on construction; a failed dial is fatal. A
    failed write may re-dial, and later calls reuse whatever connection the
    last attempt left behind.
    """
    src: str
    endpoint: str
    origin: str
    backoff: Backoff
    ws: Optional[WebSocketConnection]

    def __init__(self, name: str, address: str, src: Optional[str] = None, *,
                 dial: Dialer = ws_connection.dial,
                 origin: Optional[str] = None,
                 backoff: Optional[Backoff] = None,
                 retry_attempts: int = RETRY_ATTEMPTS,
                 retry_redial: bool = RETRY_REDIAL,
                 max_recv_size: int = MAX_RECV_SIZE,
                 timeout: Optional[float] = None):
        super().__init__(name, address)

        self.src = src or process_src()
        self.endpoint = f"ws://{address}/rpc"
        self.origin = origin or f"http://{ws_connection.local_hostname()}/"
        self.backoff = backoff or Backoff()
        self.retry_attempts = retry_attempts
        self.retry_redial = retry_redial
        self.max_recv_size = max_recv_size
        self.timeout = timeout

        self._dial_fn = dial
        self.ws = None
        self._dial()

    def close(self):
        if self.ws is not None:
            self.ws.close()
            self.ws = None

    def _call(self, method: str, args: Mapping[str, str], timeout: Optional[float]) -> str:
        msg_id = self.correlator.next_id()
        request = self.correlator.build_request(method, args, self.src, msg_id)

        self._send(request)
        reply = self._recv(timeout)

        response = self.correlator.parse_response(reply)
        if response is None or not self.correlator.is_match(response, self.src, self.address, msg_id):
            logger.warning(f"Reply from '{self.name}' does not match request id {msg_id}: {reply!r}")
        return reply.decode("utf-8", errors="replace")

    def _dial(self):
        if self.ws is not None:
            self.ws.close()
            self.ws = None
        self.ws = self._dial_fn(self.endpoint, origin=self.origin, timeout=self.timeout)

    def _write(self, payload: bytes):
        if self.ws is None:
            raise WriteError("websocket is not connected")
        self.ws.write(payload)

    def _send(self, payload: bytes):
        if self.ws is None:
            # Dropped after a failed read; the first attempt gets a fresh socket.
            try:
                self._dial()
            except TransportConnectionError as e:
                logger.warning(f"Error dialing new websocket: {e}")

        self.backoff.reset()
        last_error: Optional[WriteError] = None
        try:
            for attempt in range(self.retry_attempts + 1):
                if attempt > 0:
                    delay = self.backoff.duration()
                    logger.warning(
                        f"Write to '{self.name}' failed: {last_error}. "
                        f"Retry {attempt}/{self.retry_attempts} in {delay:.2f}s"
                    )
                    time.sleep(delay)
                    if self.retry_redial:
                        try:
                            self._dial()
                        except TransportConnectionError as e:
                            logger.warning(f"Error dialing new websocket for retry: {e}")
                try:
                    self._write(payload)
                    return
                except WriteError as e:
                    last_error = e
        finally:
            self.backoff.reset()

        logger.error(f"Giving up on '{self.name}' after {self.retry_attempts + 1} write attempts")
        raise WriteError(f"write to '{self.name}' failed: {last_error}") from last_error

    def _recv(self, timeout: Optional[float]) -> bytes:
        if self.ws is None:
            raise ReadError(f"read from '{self.name}' failed: websocket is not connected")
        try:
            return self.ws.read(self.max_recv_size, timeout)
        except TransportTimeout:
            # A late reply would otherwise answer the next call.
            logger.info(f"Closing websocket to '{self.name}' after read timeout")
            self.close()
            raise
        except ReadError as e:
            self.close()
            raise ReadError(f"read from '{self.name}' failed: {e}") from e
