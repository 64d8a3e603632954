"""
Handlers package - Contains all Kopf event handlers for Gateway API resources.

This package organizes handlers by resource type:
- gateway.py: Gateway reconciliation on create, resume and update
- gatewayclass.py: Fan-out of GatewayClass changes to their Gateways
"""
