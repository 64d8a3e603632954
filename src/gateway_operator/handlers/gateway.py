"""
Gateway handlers - Reconciles listener status for unmanaged Gateways.

Every create, resume and spec/metadata update of a Gateway runs a full
reconciliation. Status-only changes, including the operator's own status
writes, do not trigger the handlers.
"""

import logging
from typing import Any

import kopf

from gateway_operator.constants import (
    GATEWAY_API_GROUP,
    GATEWAY_API_VERSION,
    GATEWAY_PLURAL,
)
from gateway_operator.services import GatewayReconciler
from gateway_operator.utils.handler_logging import log_handler_entry
from gateway_operator.utils.objectmeta import ObjectInfo

logger = logging.getLogger(__name__)


@kopf.on.create(GATEWAY_PLURAL, group=GATEWAY_API_GROUP, version=GATEWAY_API_VERSION)
@kopf.on.resume(GATEWAY_PLURAL, group=GATEWAY_API_GROUP, version=GATEWAY_API_VERSION)
async def ensure_gateway(body: kopf.Body, **kwargs: Any) -> None:
    """
    Ensure a Gateway's status reflects its listeners.

    Args:
        body: Gateway resource as delivered by kopf
    """
    log_handler_entry("create/resume", ObjectInfo.from_k8s_object(dict(body)))

    reconciler = GatewayReconciler()
    await reconciler.reconcile(dict(body))
    # Status is written by the reconciler; returning None keeps kopf out of it
    return None


@kopf.on.update(GATEWAY_PLURAL, group=GATEWAY_API_GROUP, version=GATEWAY_API_VERSION)
async def update_gateway(
    body: kopf.Body, diff: kopf.Diff, **kwargs: Any
) -> None:
    """
    Re-reconcile a Gateway after its spec or metadata changed.

    Args:
        body: Gateway resource after the change
        diff: Changes kopf detected
    """
    info = ObjectInfo.from_k8s_object(dict(body))
    log_handler_entry("update", info, extra={"changes": len(diff)})
    logger.debug(f"Gateway {info.namespace}/{info.name} changed: {list(diff)}")

    reconciler = GatewayReconciler()
    await reconciler.reconcile(dict(body))
    return None
