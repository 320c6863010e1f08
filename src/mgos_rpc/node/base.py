"""
Node Interface.

A Node is a reusable handle for issuing RPCs to one Mongoose OS device over
one transport. Callers only depend on this contract; the MQTT and websocket
implementations live in `mgos_rpc.node.mqtt` and `mgos_rpc.node.ws`.
"""
import threading
from abc import ABC, abstractmethod
from typing import Mapping, Optional

from mgos_rpc.errors import NodeConfigError
from mgos_rpc.node.correlator import Correlator


class Node(ABC):
    """
    Serializes RPCs against a single device.

    Subclasses implement `_call()`, which runs with the node lock held, so at
    most one request per Node is ever in flight.
    """
    correlator: Correlator
    _lock: threading.Lock

    def __init__(self, name: str, address: str):
        if not name:
            raise NodeConfigError("name is required")
        if not address:
            raise NodeConfigError("address is required")

        self._name = name
        self._address = address
        self.correlator = Correlator()
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def address(self) -> str:
        return self._address

    def rpc(self, method: str, args: Optional[Mapping[str, str]] = None,
            timeout: Optional[float] = None) -> str:
        """
        Calls `method` on the device and returns the raw response payload.

        String argument values are sent as numbers when they parse as one.
        `timeout` bounds the wait for the reply; the default None waits
        forever.
        """
        with self._lock:
            return self._call(method, args or {}, timeout)

    @abstractmethod
    def _call(self, method: str, args: Mapping[str, str], timeout: Optional[float]) -> str:
        """Sends one request and waits for its reply. Called with the lock held."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r}, address={self._address!r})"
