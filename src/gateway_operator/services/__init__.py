"""
Service layer for the gateway operator.

This package holds the listener status computation, the predicates and
request fan-out used by the watch handlers, data-plane listen discovery,
and the reconciler that ties them together.
"""

from .gateway_reconciler import GatewayReconciler, addresses_from_service
from .listener_status import compute_listener_statuses

__all__ = [
    "GatewayReconciler",
    "addresses_from_service",
    "compute_listener_statuses",
]
