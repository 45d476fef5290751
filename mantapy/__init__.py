"""
mantapy - Python client for the Manta object store.

Usage:
    >>> from mantapy import MantaClient
    >>>
    >>> with MantaClient() as manta:
    ...     manta.put_directory('/acct/stor/logs/2024', make_parents=True)
    ...     for entry in manta.list_directory('/acct/stor/logs'):
    ...         print(entry['name'])
"""
from .client import MantaClient
from .async_client import AsyncMantaClient

# Configuration
from .core.config import (
    MantaConfig,
    Credential,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
    RetryConfig,
    resolve_config,
)

# Errors
from .core.exceptions import (
    MantaException,
    ConfigurationError,
    SigningError,
    InvalidPathError,
    TransportError,
    RemoteError,
)

# Pipeline pieces
from .core.auth import RequestSigner, SignedHeaders
from .core.retry import RetryContext, RetryPolicy, DefaultRetryPolicy, exponential_backoff
from .core.request import RequestDescriptor, RequestExecutor, AsyncRequestExecutor
from .core.response import (
    HeaderResponse,
    ArrayResponse,
    ObjectResponse,
    BytesResponse,
    StreamResponse,
    TreeOperationResult,
)
from .core.jobs import JobPhase
from .core.logging import setup_logging

__version__ = '1.0.0'


__all__ = [
    'MantaClient',
    'AsyncMantaClient',
    'MantaConfig',
    'Credential',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'RetryConfig',
    'resolve_config',
    'MantaException',
    'ConfigurationError',
    'SigningError',
    'InvalidPathError',
    'TransportError',
    'RemoteError',
    'RequestSigner',
    'SignedHeaders',
    'RetryContext',
    'RetryPolicy',
    'DefaultRetryPolicy',
    'exponential_backoff',
    'RequestDescriptor',
    'RequestExecutor',
    'AsyncRequestExecutor',
    'HeaderResponse',
    'ArrayResponse',
    'ObjectResponse',
    'BytesResponse',
    'StreamResponse',
    'TreeOperationResult',
    'JobPhase',
    'setup_logging',
]
