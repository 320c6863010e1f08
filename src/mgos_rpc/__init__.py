"""
mgos_rpc

This package lets a caller invoke a single RPC on a Mongoose OS device
and receive its response, either through an MQTT broker or over a
persistent websocket to the device.
"""
__version__ = "0.1.0"
