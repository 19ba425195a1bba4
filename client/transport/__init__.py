"""Client-side transports speaking newline-delimited JSON-RPC to the daemon."""

from .base import LineTransport
from .namedpipe_transport import NamedPipeTransport
from .socket_transport import UnixSocketTransport

__all__ = ["LineTransport", "NamedPipeTransport", "UnixSocketTransport"]
