r"""Retry package: configuration, decision logic and the execution
engine.

Public API:
    - RetryConfig: Immutable, normalized retry configuration
    - RetryPolicy: Logic for deciding whether to retry
    - CallbackConfig: Configuration for lifecycle callbacks
    - CallbackManager: Manager for callback invocations
    - RequestExecutor: The attempt loop
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_MAX_ATTEMPTS",
    "RETRYABLE_ERRORS",
    "RETRY_STATUS_CODES",
    "CallbackConfig",
    "CallbackManager",
    "RequestExecutor",
    "RetryConfig",
    "RetryPolicy",
]

from rehttp.retry.config import (
    DEFAULT_MAX_ATTEMPTS,
    RETRY_STATUS_CODES,
    RETRYABLE_ERRORS,
    RetryConfig,
)
from rehttp.retry.executor import RequestExecutor
from rehttp.retry.manager import CallbackConfig, CallbackManager
from rehttp.retry.policy import RetryPolicy
