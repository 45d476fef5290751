"""Retry strategies using Strategy Pattern."""
from .retry_strategy import (
    RetryContext,
    RetryPolicy,
    DefaultRetryPolicy,
    exponential_backoff,
)

__all__ = [
    'RetryContext',
    'RetryPolicy',
    'DefaultRetryPolicy',
    'exponential_backoff',
]
