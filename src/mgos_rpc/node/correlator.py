"""
Request/Response Correlation.

Only one request is in flight per Node (the Node lock guarantees it), so a
response is matched against the single most recently sent id instead of a
table of outstanding requests.
"""
import logging
from typing import Mapping, Optional

from mgos_rpc.models import RPCRequest, RPCResponse
from mgos_rpc.node.args import format_args

logger = logging.getLogger(__name__)


class Correlator:
    """Assigns request ids and recognizes the matching response."""

    def __init__(self, first_id: int = 0):
        self._next_id = first_id
        self.last_sent_id: Optional[int] = None

    def next_id(self) -> int:
        """Returns the current id and advances the counter."""
        msg_id = self._next_id
        self._next_id += 1
        self.last_sent_id = msg_id
        return msg_id

    @staticmethod
    def build_request(method: str, args: Mapping[str, str], reply_src: str, msg_id: int) -> bytes:
        request = RPCRequest(method=method, args=format_args(args), src=reply_src, id=msg_id)
        logger.debug(f"Built request: {request.to_json()}")
        return request.to_bytes()

    @staticmethod
    def parse_response(payload: bytes) -> Optional[RPCResponse]:
        """Parses a response envelope, returning None if it is malformed."""
        try:
            return RPCResponse.from_bytes(payload)
        except ValueError as e:
            logger.warning(f"Failed parsing response: {e}")
            return None

    @staticmethod
    def is_match(response: RPCResponse, reply_src: str, device_address: str,
                 last_sent_id: Optional[int]) -> bool:
        return (
            last_sent_id is not None
            and response.dst == reply_src
            and response.src == device_address
            and response.id == last_sent_id
        )
