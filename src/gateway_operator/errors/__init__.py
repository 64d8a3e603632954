"""
Error handling module for the gateway operator.

Errors carry their retry behavior and convert into kopf exceptions.
"""

from .operator_errors import (
    ConfigurationError,
    DataPlaneError,
    KubernetesAPIError,
    OperatorError,
    TemporaryError,
    ValidationError,
)

__all__ = [
    "OperatorError",
    "ValidationError",
    "ConfigurationError",
    "TemporaryError",
    "DataPlaneError",
    "KubernetesAPIError",
]
