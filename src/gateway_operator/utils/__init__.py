"""
Utils package - Helper modules for gateway operator functionality.

Contains helper modules for:
- Kubernetes object metadata extraction and API access
- Gateway annotation parsing
- Namespaced reference parsing
- Status condition bookkeeping
"""

from gateway_operator.utils.conditions import (
    ConditionSet,
    find_condition,
    prune_gateway_status_conditions,
    set_condition,
)

__all__ = [
    "ConditionSet",
    "find_condition",
    "prune_gateway_status_conditions",
    "set_condition",
]
