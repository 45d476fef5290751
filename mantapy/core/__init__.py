"""Core building blocks of the Manta client."""
from .config import (
    MantaConfig,
    Credential,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
    RetryConfig,
    resolve_config,
)
from .exceptions import (
    MantaException,
    ConfigurationError,
    SigningError,
    InvalidPathError,
    TransportError,
    RemoteError,
)

__all__ = [
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
]
