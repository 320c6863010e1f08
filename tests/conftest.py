"""
Pytest Configuration and Fixtures for the mgos_rpc project.

This module provides fake transports (an in-memory broker and a scripted
websocket) so the Nodes can be exercised without a broker or a device.
"""

import json
import logging
import sys
import threading
import time
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from mgos_rpc.client.ws_connection import WebSocketConnection

DEVICE_ID = "esp32_0A1B2C"


class FakeToken:
    """Stands in for a broker acknowledgment."""

    def __init__(self, acked=True, error=None):
        self.acked = acked
        self.error = error
        self.waits = []

    def wait(self, timeout=None):
        self.waits.append(timeout)
        return self.acked


class FakeBroker:
    """
    Records subscriptions and publishes, and lets a test play the device.

    `device` is called with every published request; whatever it returns is
    delivered to the reply topic before publish() returns.
    """

    def __init__(self):
        self.handlers = {}
        self.subscriptions = []
        self.published = []
        self.suback = FakeToken()
        self.puback = FakeToken()
        self.device = None
        self._lock = threading.Lock()

    def subscribe(self, topic, qos, handler):
        self.handlers[topic] = handler
        self.subscriptions.append((topic, qos))
        return self.suback

    def publish(self, topic, qos, retained, payload):
        with self._lock:
            self.published.append(SimpleNamespace(topic=topic, qos=qos, retained=retained, payload=payload))
        if self.device is not None:
            reply = self.device(json.loads(payload))
            if reply is not None:
                self.deliver(reply)
        return self.puback

    def requests(self):
        with self._lock:
            return [json.loads(p.payload) for p in self.published]

    def deliver(self, payload, topic=None):
        """Delivers a reply the way paho's network thread would."""
        if isinstance(payload, dict):
            payload = json.dumps(payload).encode("utf-8")
        if topic is None:
            (topic,) = self.handlers
        self.handlers[topic](None, None, SimpleNamespace(topic=topic, payload=payload))


def reply_for(request, result=None, **overrides):
    """The response a device sends for `request`."""
    reply = {"id": request["id"], "src": DEVICE_ID, "dst": request["src"], "result": result}
    reply.update(overrides)
    return reply


def wait_for(condition, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return condition()


@pytest.fixture
def broker():
    return FakeBroker()


@pytest.fixture
def echo_device(broker):
    """A device that answers every request with its own arguments."""
    broker.device = lambda request: reply_for(request, result=request["args"])
    return broker


@pytest.fixture
def socket():
    """A scripted websocket; tests set `write.side_effect` / `read.return_value`."""
    ws = MagicMock(spec=WebSocketConnection)
    ws.read.return_value = b'{"id": 0, "src": "' + DEVICE_ID.encode() + b'", "dst": "wsnode-test", "result": null}'
    return ws


@pytest.fixture
def dialer(socket):
    return MagicMock(return_value=socket)


@pytest.fixture(scope="session", autouse=True)
def setup_test_logging():
    """
    Configures the Python logging framework globally for all tests.
    Because tests bypass the CLI, this ensures our logs are formatted
    and visible during test runs.
    """
    formatter = logging.Formatter(fmt="%(levelname)-8s %(message)s - %(funcName)s:%(lineno)d ")
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(formatter)
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)
    logger.addHandler(handler)
