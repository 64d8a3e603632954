"""
Reconcile request fan-out for GatewayClass changes.

A GatewayClass change (controller name, parameters) affects every Gateway
referencing it even though those Gateways did not change themselves. This
module turns such a change into reconciliation requests for the Gateways.
"""

from collections.abc import Iterable

from gateway_operator.models.common import NamespacedName
from gateway_operator.models.gateway import Gateway, GatewayClass


def requests_for_class(
    gateway_class: GatewayClass, gateways: Iterable[Gateway]
) -> list[NamespacedName]:
    """
    Build reconciliation requests for the Gateways referencing a class.

    Args:
        gateway_class: GatewayClass that changed
        gateways: Candidate Gateways

    Returns:
        Requests for matching Gateways, in input order
    """
    return [
        gateway.key
        for gateway in gateways
        if gateway.spec.gateway_class_name == gateway_class.name
    ]
