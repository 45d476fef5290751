"""HTTP signature authentication."""
from .signer import (
    RequestSigner,
    SignedHeaders,
    SUPPORTED_ALGORITHMS,
    rfc1123_now,
)

__all__ = [
    'RequestSigner',
    'SignedHeaders',
    'SUPPORTED_ALGORITHMS',
    'rfc1123_now',
]
