"""
Nodes: handles for issuing RPCs to one Mongoose OS device.

`MQTTNode` reaches the device through a broker, `WSNode` through a
websocket. Both implement the `Node` interface.
"""
from mgos_rpc.node.args import format_args, format_args_fragment
from mgos_rpc.node.base import Node
from mgos_rpc.node.mqtt import MQTTNode
from mgos_rpc.node.ws import WSNode, process_src

__all__ = [
    "MQTTNode",
    "Node",
    "WSNode",
    "format_args",
    "format_args_fragment",
    "process_src",
]
