"""
Gateway Listener Operator - Listener status reconciliation for Gateway API resources.

This operator maps the listeners declared on Gateway resources onto the
listen addresses the data plane actually serves, providing:
- Per-listener conflict, detachment and readiness conditions
- Scheduling and readiness tracking for Gateways in unmanaged mode
- GatewayClass-driven re-reconciliation of dependent Gateways
"""

__version__ = "0.1.0"
