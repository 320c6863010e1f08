"""
Command line front ends.

`mqttrpc` calls a device RPC through an MQTT broker, `wsrpc` over a
websocket to the device itself.
"""
