"""
Data Models for RPC Envelopes.

Defines the request and response envelopes exchanged with a Mongoose OS
device. Both transports (MQTT and websocket) frame the same JSON objects:

    request:  {"method": ..., "args": {...}, "src": ..., "id": ...}
    response: {"id": ..., "src": ..., "dst": ..., <opaque result fields>}
"""
from dataclasses import dataclass, field, asdict
import json
from typing import Any, Dict, Optional


@dataclass(frozen=True, kw_only=True)
class RPCRequest:
    """A request envelope, addressed back to `src`."""
    method: str
    args: Dict[str, Any] = field(default_factory=dict)
    src: str
    id: int

    def to_json(self) -> str:
        """Converts the envelope to a JSON string."""
        return json.dumps(asdict(self))

    def to_bytes(self) -> bytes:
        """Converts the envelope to UTF-8 encoded bytes for the wire."""
        return self.to_json().encode('utf-8')


@dataclass(frozen=True, kw_only=True)
class RPCResponse:
    """
    The correlation view of a response envelope.

    Only `id`, `src` and `dst` are interpreted. The complete payload is kept
    in `raw` and handed back to the caller untouched.
    """
    id: Optional[int] = None
    src: str = ""
    dst: str = ""
    raw: bytes = b""

    @classmethod
    def from_bytes(cls, payload: bytes) -> "RPCResponse":
        """
        Parses a response payload.

        Raises ValueError if the payload is not a JSON object.
        """
        data = json.loads(payload)
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")

        msg_id = data.get("id")
        if isinstance(msg_id, bool) or not isinstance(msg_id, int):
            msg_id = None

        return cls(
            id=msg_id,
            src=str(data.get("src") or ""),
            dst=str(data.get("dst") or ""),
            raw=bytes(payload),
        )
