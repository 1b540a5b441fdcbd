from .base import RequestOptions, StreamResponse, StreamTransport
from .httpx_transport import HttpxTransport

__all__ = [
    "HttpxTransport",
    "RequestOptions",
    "StreamResponse",
    "StreamTransport",
]
