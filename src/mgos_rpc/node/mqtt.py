"""
RPC over MQTT.

This module is responsible for:
- Giving each Node a random reply address (`mqttNode-<8 hex chars>`), so
  independent clients sharing a broker never see each other's replies.
- Subscribing to the private reply topic `<reply-src>/rpc`.
- Publishing request envelopes to the device topic `<device-id>/rpc`.
- Handing the correlated reply from paho's network thread to the waiting
  caller through a single-slot queue.
"""
import logging
import queue
import secrets
import threading
from typing import Mapping, Optional

from mgos_rpc.client.connection import MQTTConnection
from mgos_rpc.errors import (
    NodeConfigError,
    PublishError,
    TransportConnectionError,
    TransportTimeout,
)
from mgos_rpc.node.base import Node

logger = logging.getLogger(__name__)

QOS_EXACTLY_ONCE = 2
SRC_BASE = "mqttNode"
ACK_TIMEOUT = 30.0  # seconds, for SUBACK and publish acknowledgments


def rpc_topic(address: str) -> str:
    return f"{address}/rpc"


class MQTTNode(Node):
    """
    A Node reached through an MQTT broker.

    Construction subscribes to the reply topic and fails if the broker does
    not acknowledge the subscription within `ack_timeout`.
    """
    conn: MQTTConnection
    src: str
    ack_timeout: float

    def __init__(self, name: str, device_id: str, conn: MQTTConnection,
                 ack_timeout: float = ACK_TIMEOUT, src_base: str = SRC_BASE):
        super().__init__(name, device_id)
        if conn is None:
            raise NodeConfigError("an MQTT connection is required")

        self.conn = conn
        self.ack_timeout = ack_timeout
        self.src = f"{src_base}-{secrets.token_hex(4)}"

        # Capacity 1: only one request is ever outstanding.
        self._replies: queue.Queue = queue.Queue(maxsize=1)
        # Guards the last sent id and the reply slot against the network thread.
        self._pending_lock = threading.Lock()

        topic = rpc_topic(self.src)
        token = conn.subscribe(topic, QOS_EXACTLY_ONCE, self._on_reply)
        if not token.wait(ack_timeout):
            raise TransportTimeout(f"Timeout waiting for subscription to '{topic}'")
        if token.error is not None:
            raise TransportConnectionError(
                f"subscription to '{topic}' failed: {token.error}"
            ) from token.error
        logger.info(f"Node '{name}' listening for replies on '{topic}'")

    def _call(self, method: str, args: Mapping[str, str], timeout: Optional[float]) -> str:
        with self._pending_lock:
            msg_id = self.correlator.next_id()
            self._discard_stale_reply()
        request = self.correlator.build_request(method, args, self.src, msg_id)

        token = self.conn.publish(rpc_topic(self.address), QOS_EXACTLY_ONCE, False, request)
        if not token.wait(self.ack_timeout):
            raise TransportTimeout(f"Timeout waiting for publish to '{self.name}'")
        if token.error is not None:
            raise PublishError(f"publish to '{self.name}' failed: {token.error}") from token.error

        logger.debug(f"Waiting for reply to {method} (id {msg_id}) from '{self.name}'")
        try:
            reply = self._replies.get(timeout=timeout)
        except queue.Empty:
            raise TransportTimeout(
                f"no reply to {method} (id {msg_id}) from '{self.name}' within {timeout}s"
            ) from None
        return reply.decode("utf-8", errors="replace")

    def _discard_stale_reply(self):
        # A reply to an earlier call that timed out may still occupy the slot.
        try:
            stale = self._replies.get_nowait()
        except queue.Empty:
            return
        logger.warning(f"Discarding stale reply: {stale!r}")

    def _on_reply(self, client, userdata, message):
        """Runs on paho's network thread for every message on the reply topic."""
        payload = message.payload
        response = self.correlator.parse_response(payload)

        with self._pending_lock:
            matched = response is not None and self.correlator.is_match(
                response, self.src, self.address, self.correlator.last_sent_id
            )
            if matched:
                try:
                    self._replies.put_nowait(payload)
                except queue.Full:
                    logger.warning(f"Dropping duplicate reply: {payload!r}")
                return

        logger.warning(f"Ignoring MQTT message: {payload!r}")
