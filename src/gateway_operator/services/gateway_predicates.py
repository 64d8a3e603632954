"""
Gateway state predicates.

Pure checks the control loop uses to decide whether a Gateway needs work and
whether a GatewayClass watch event concerns this controller at all.
"""

import logging

from gateway_operator.constants import (
    CONDITION_TRUE,
    GATEWAY_CLASS_KIND,
    GATEWAY_CONDITION_READY,
    GATEWAY_CONDITION_SCHEDULED,
    GATEWAY_REASON_READY,
    GATEWAY_REASON_SCHEDULED,
)
from gateway_operator.models.events import (
    CreateEvent,
    DeleteEvent,
    GenericEvent,
    ObjectBody,
    UpdateEvent,
    WatchEvent,
)
from gateway_operator.models.gateway import Gateway, GatewayClass
from gateway_operator.settings import settings
from gateway_operator.utils.annotations import extract_unmanaged_gateway_mode

logger = logging.getLogger(__name__)


def is_gateway_scheduled(gateway: Gateway) -> bool:
    """
    Check whether the controller has already scheduled this Gateway.

    Scheduling is not revoked by later spec changes, so the condition's
    generation is not compared.
    """
    return any(
        c.type == GATEWAY_CONDITION_SCHEDULED
        and c.reason == GATEWAY_REASON_SCHEDULED
        and c.status == CONDITION_TRUE
        for c in gateway.status.conditions
    )


def is_gateway_ready(gateway: Gateway) -> bool:
    """
    Check whether the Gateway is Ready for its current generation.

    A Ready condition observed against an older generation does not count,
    forcing re-evaluation after any spec change.
    """
    return any(
        c.type == GATEWAY_CONDITION_READY
        and c.reason == GATEWAY_REASON_READY
        and c.status == CONDITION_TRUE
        and c.observed_generation == gateway.generation
        for c in gateway.status.conditions
    )


def is_gateway_in_class_and_unmanaged(
    gateway_class: GatewayClass,
    gateway: Gateway,
    controller_name: str | None = None,
) -> bool:
    """
    Check whether this controller owns the class and the Gateway asks for unmanaged mode.

    Args:
        gateway_class: GatewayClass the Gateway references
        gateway: Gateway to check
        controller_name: Controller identity (defaults to the configured one)

    Returns:
        True if the Gateway should be acknowledged in unmanaged mode
    """
    controller_name = controller_name or settings.controller_name
    _, unmanaged = extract_unmanaged_gateway_mode(gateway.annotations)
    return unmanaged and gateway_class.spec.controller_name == controller_name


def _class_controller_name(obj: ObjectBody) -> str | None:
    if not isinstance(obj, dict) or obj.get("kind") != GATEWAY_CLASS_KIND:
        found = obj.get("kind") if isinstance(obj, dict) else type(obj).__name__
        logger.error(
            "Received invalid object type in event handlers",
            extra={"expected": GATEWAY_CLASS_KIND, "found": found},
        )
        return None
    return (obj.get("spec") or {}).get("controllerName")


def is_class_event_relevant(
    event: WatchEvent, controller_name: str | None = None
) -> bool:
    """
    Check whether a GatewayClass watch event concerns this controller.

    Update events are relevant if either the old or the new revision of the
    class belongs to this controller, so that a class moving away from the
    controller still triggers a final reconciliation of its Gateways.

    Args:
        event: Watch event carrying GatewayClass bodies
        controller_name: Controller identity (defaults to the configured one)

    Returns:
        True if any carried GatewayClass is owned by this controller
    """
    controller_name = controller_name or settings.controller_name

    match event:
        case CreateEvent(obj=obj) | DeleteEvent(obj=obj) | GenericEvent(obj=obj):
            objects = [obj]
        case UpdateEvent(old=old, new=new):
            objects = [old, new]
        case _:
            logger.error(
                "Received invalid event type in event handlers",
                extra={"found": type(event).__name__},
            )
            return False

    return any(_class_controller_name(obj) == controller_name for obj in objects)
