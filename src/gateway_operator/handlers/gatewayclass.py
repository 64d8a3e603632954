"""
GatewayClass handlers - Fans class changes out to the Gateways using them.

A GatewayClass change can alter whether this controller is responsible for
a Gateway without the Gateway itself changing. Each notification is wrapped
in a watch event variant, checked for relevance to this controller, and
turned into reconciliation requests for every Gateway of the class.
"""

import asyncio
import logging
from typing import Any

import kopf

from gateway_operator.constants import (
    GATEWAY_API_GROUP,
    GATEWAY_API_VERSION,
    GATEWAY_CLASS_PLURAL,
)
from gateway_operator.models.events import (
    CreateEvent,
    DeleteEvent,
    GenericEvent,
    UpdateEvent,
    WatchEvent,
)
from gateway_operator.models.gateway import Gateway, GatewayClass
from gateway_operator.observability.metrics import metrics_collector
from gateway_operator.services import GatewayReconciler
from gateway_operator.services.gateway_predicates import is_class_event_relevant
from gateway_operator.services.request_fanout import requests_for_class
from gateway_operator.settings import settings
from gateway_operator.utils.handler_logging import log_handler_entry
from gateway_operator.utils.kubernetes import list_gateways
from gateway_operator.utils.objectmeta import ObjectInfo

logger = logging.getLogger(__name__)


def _list_watched_gateways() -> list[dict[str, Any]]:
    namespaces = settings.watched_namespaces
    if not namespaces:
        return list_gateways()
    gateways = []
    for namespace in namespaces:
        gateways.extend(list_gateways(namespace))
    return gateways


async def fan_out_class_event(
    event: WatchEvent, gateway_class_body: dict[str, Any]
) -> int:
    """
    Reconcile the Gateways of a GatewayClass if the event concerns this controller.

    Args:
        event: Watch event for the class
        gateway_class_body: Most recent revision of the class

    Returns:
        Number of Gateways reconciled
    """
    if not is_class_event_relevant(event):
        return 0

    gateway_class = GatewayClass.model_validate(gateway_class_body)
    gateways = [
        Gateway.model_validate(body)
        for body in await asyncio.to_thread(_list_watched_gateways)
    ]
    requests = requests_for_class(gateway_class, gateways)
    metrics_collector.record_class_fanout(gateway_class.name, len(requests))

    logger.info(
        f"GatewayClass {gateway_class.name} changed, "
        f"reconciling {len(requests)} Gateway(s)",
        extra={"gateway_class": gateway_class.name, "requests": len(requests)},
    )
    return await GatewayReconciler().reconcile_requests(requests)


@kopf.on.create(
    GATEWAY_CLASS_PLURAL, group=GATEWAY_API_GROUP, version=GATEWAY_API_VERSION
)
async def on_gateway_class_create(body: kopf.Body, **kwargs: Any) -> None:
    log_handler_entry("create", ObjectInfo.from_k8s_object(dict(body)))
    await fan_out_class_event(CreateEvent(obj=dict(body)), dict(body))


@kopf.on.resume(
    GATEWAY_CLASS_PLURAL, group=GATEWAY_API_GROUP, version=GATEWAY_API_VERSION
)
async def on_gateway_class_resume(body: kopf.Body, **kwargs: Any) -> None:
    log_handler_entry("resume", ObjectInfo.from_k8s_object(dict(body)))
    await fan_out_class_event(GenericEvent(obj=dict(body)), dict(body))


@kopf.on.update(
    GATEWAY_CLASS_PLURAL, group=GATEWAY_API_GROUP, version=GATEWAY_API_VERSION
)
async def on_gateway_class_update(
    body: kopf.Body,
    old: dict[str, Any],
    new: dict[str, Any],
    **kwargs: Any,
) -> None:
    """
    Handle a GatewayClass update.

    kopf hands over the old and new essence of the object, without status
    and most metadata. The identifying fields are restored from the body so
    both revisions can be checked like full objects.
    """
    log_handler_entry("update", ObjectInfo.from_k8s_object(dict(body)))
    identity = {
        "apiVersion": body.get("apiVersion"),
        "kind": body.get("kind"),
        "metadata": dict(body.get("metadata") or {}),
    }
    event = UpdateEvent(old={**identity, **old}, new={**identity, **new})
    await fan_out_class_event(event, dict(body))


@kopf.on.delete(
    GATEWAY_CLASS_PLURAL,
    group=GATEWAY_API_GROUP,
    version=GATEWAY_API_VERSION,
    optional=True,
)
async def on_gateway_class_delete(body: kopf.Body, **kwargs: Any) -> None:
    """Let the Gateways of a deleted class notice their class is gone."""
    log_handler_entry("delete", ObjectInfo.from_k8s_object(dict(body)))
    await fan_out_class_event(DeleteEvent(obj=dict(body)), dict(body))
