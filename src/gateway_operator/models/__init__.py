"""
Models package - Pydantic models for type-safe resource handling.

Defines data models for:
- Gateway and GatewayClass resources and their status
- Data-plane listen descriptors
- GatewayClass watch events
"""
