"""
Constants used throughout the gateway operator.

This module defines all constant values used by the operator including:
- Gateway API group, versions and resource plurals
- Condition types and reasons for Gateways and Listeners
- Annotation keys recognized on Gateway resources
- Statically supported route kinds
"""

import logging
import os

# Gateway API resource coordinates
GATEWAY_API_GROUP = "gateway.networking.k8s.io"
GATEWAY_API_VERSION = "v1alpha2"
GATEWAY_PLURAL = "gateways"
GATEWAY_CLASS_PLURAL = "gatewayclasses"
GATEWAY_KIND = "Gateway"
GATEWAY_CLASS_KIND = "GatewayClass"

# Identity of this controller, compared against GatewayClass.spec.controllerName
DEFAULT_CONTROLLER_NAME = "konghq.com/kic-gateway-controller"

# Annotation constants
ANNOTATION_PREFIX = "konghq.com"
GATEWAY_UNMANAGED_ANNOTATION = f"{ANNOTATION_PREFIX}/gateway-unmanaged"
# Annotation value meaning "use the publish service configured on the operator"
GATEWAY_UNMANAGED_DEFAULT_VALUE = "true"

# The Kubernetes API rejects Gateways carrying more conditions than this
MAX_GATEWAY_CONDITIONS = 8

# Condition status constants
CONDITION_TRUE = "True"
CONDITION_FALSE = "False"
CONDITION_UNKNOWN = "Unknown"

# Gateway condition types and reasons
GATEWAY_CONDITION_SCHEDULED = "Scheduled"
GATEWAY_CONDITION_READY = "Ready"
GATEWAY_REASON_SCHEDULED = "Scheduled"
GATEWAY_REASON_READY = "Ready"

# Listener condition types
LISTENER_CONDITION_CONFLICTED = "Conflicted"
LISTENER_CONDITION_DETACHED = "Detached"
LISTENER_CONDITION_READY = "Ready"

# Listener condition reasons
LISTENER_REASON_NO_CONFLICTS = "NoConflicts"
LISTENER_REASON_PROTOCOL_CONFLICT = "ProtocolConflict"
LISTENER_REASON_HOSTNAME_CONFLICT = "HostnameConflict"
LISTENER_REASON_UNSUPPORTED_PROTOCOL = "UnsupportedProtocol"
LISTENER_REASON_PORT_UNAVAILABLE = "PortUnavailable"
LISTENER_REASON_READY = "Ready"
LISTENER_REASON_PENDING = "Pending"

# Route kinds this controller can attach to listeners
SUPPORTED_ROUTE_KINDS = ("HTTPRoute", "TCPRoute", "UDPRoute", "TLSRoute")

# Message templates
MESSAGE_PROTOCOL_CONFLICT = (
    "listener protocol {} cannot share port {} with protocol {}"
)
MESSAGE_HOSTNAME_CONFLICT = "hostname '{}' on port {} is already claimed by listener {}"
MESSAGE_UNSUPPORTED_PROTOCOL = (
    "no data-plane listen with the requested protocol is configured"
)
MESSAGE_PORT_UNAVAILABLE = (
    "no data-plane listen with the requested protocol is configured for the requested port"
)
MESSAGE_LISTENER_READY = "the listener is ready and available for routing"
MESSAGE_LISTENER_PENDING = "the listener is not ready and cannot route requests"
MESSAGE_GATEWAY_SCHEDULED = "this gateway has been picked up by the controller"
MESSAGE_GATEWAY_READY = "this gateway has been reconciled by the controller"

ERROR_INVALID_REFERENCE = "expected a reference in format 'namespace/name' but got '{}'"

# Handler entry log level (DEBUG to quieten production logs)
HANDLER_ENTRY_LOG_LEVEL = getattr(
    logging, os.getenv("HANDLER_ENTRY_LOG_LEVEL", "INFO").upper(), logging.INFO
)
