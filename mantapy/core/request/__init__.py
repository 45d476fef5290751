"""Request descriptors, transports and the execution pipeline."""
from .descriptor import RequestDescriptor, normalize_path, build_url
from .transport import (
    TransportResponse,
    RequestsTransport,
    AiohttpTransport,
    freeze_headers,
)
from .executor import (
    PreparedRequest,
    BaseRequestExecutor,
    RequestExecutor,
    AsyncRequestExecutor,
)

__all__ = [
    'RequestDescriptor',
    'normalize_path',
    'build_url',
    'TransportResponse',
    'RequestsTransport',
    'AiohttpTransport',
    'freeze_headers',
    'PreparedRequest',
    'BaseRequestExecutor',
    'RequestExecutor',
    'AsyncRequestExecutor',
]
