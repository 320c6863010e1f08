"""
Error Taxonomy.

All failures surfaced to an RPC caller derive from `RPCError`. Construction
errors are raised from Node constructors, call errors from `Node.rpc()`.
Underlying library exceptions are chained as `__cause__`.
"""


class RPCError(Exception):
    """Base class for all RPC errors."""


class NodeConfigError(RPCError, ValueError):
    """A Node was constructed without a required identity field."""


class TransportConnectionError(RPCError):
    """The transport could not establish its connection or subscription."""


class TransportTimeout(RPCError):
    """An acknowledgment or reply did not arrive in time."""


class PublishError(RPCError):
    """The broker reported an error for a published request."""


class WriteError(RPCError):
    """A request could not be written to the socket."""


class ReadError(RPCError):
    """A reply could not be read from the socket."""
