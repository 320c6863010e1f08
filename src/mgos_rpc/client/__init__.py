"""
Transport connections used by the Nodes.
This package wraps `paho-mqtt` (broker connection) and `websocket-client`
(device websocket) behind the small capabilities the Nodes rely on.
"""
