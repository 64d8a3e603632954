"""
Listener status computation for Gateways.

Given a Gateway's desired listeners and the listens the data plane actually
serves, this module computes the Conflicted, Detached and Ready conditions of
every listener. The computation is a pure function of its inputs (the
Gateway's previous status included) so that the control loop can re-run it
on every event and get the same answer.

Port sharing rules:
- TCP and UDP listeners never share a port with any other listener
- Listeners sharing a port are either all HTTP or all HTTPS/TLS
- Within a shared HTTP(S)/TLS port each hostname belongs to one listener;
  one listener may omit the hostname and acts as the fallback

Listeners that were conflict-free in the previous status claim their port
and hostname before anything else is evaluated, so an established listener
keeps working when a competing listener is added later.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass

from gateway_operator.constants import (
    CONDITION_FALSE,
    CONDITION_TRUE,
    GATEWAY_API_GROUP,
    LISTENER_CONDITION_CONFLICTED,
    LISTENER_CONDITION_DETACHED,
    LISTENER_CONDITION_READY,
    LISTENER_REASON_HOSTNAME_CONFLICT,
    LISTENER_REASON_NO_CONFLICTS,
    LISTENER_REASON_PENDING,
    LISTENER_REASON_PORT_UNAVAILABLE,
    LISTENER_REASON_PROTOCOL_CONFLICT,
    LISTENER_REASON_READY,
    LISTENER_REASON_UNSUPPORTED_PROTOCOL,
    MESSAGE_HOSTNAME_CONFLICT,
    MESSAGE_LISTENER_PENDING,
    MESSAGE_LISTENER_READY,
    MESSAGE_PORT_UNAVAILABLE,
    MESSAGE_PROTOCOL_CONFLICT,
    MESSAGE_UNSUPPORTED_PROTOCOL,
    SUPPORTED_ROUTE_KINDS,
)
from gateway_operator.models.gateway import (
    DataPlaneListen,
    Gateway,
    Listener,
    ListenerStatus,
    ProtocolType,
    RouteGroupKind,
)
from gateway_operator.utils.conditions import ConditionSet, format_transition_time

logger = logging.getLogger(__name__)

# Protocols whose listeners are told apart by hostname on a shared port
HOSTNAME_PROTOCOLS = frozenset(
    {ProtocolType.HTTP, ProtocolType.HTTPS, ProtocolType.TLS}
)

# Protocols that must own their port exclusively
EXCLUSIVE_PROTOCOLS = frozenset({ProtocolType.TCP, ProtocolType.UDP})

PORT_SHARING_GROUPS = (
    frozenset({ProtocolType.HTTP}),
    frozenset({ProtocolType.HTTPS, ProtocolType.TLS}),
)

# Hostname key used for listeners without a hostname
FALLBACK_HOSTNAME = ""


def supported_kinds() -> list[RouteGroupKind]:
    """Route kinds advertised on every listener status."""
    return [
        RouteGroupKind(group=GATEWAY_API_GROUP, kind=kind)
        for kind in SUPPORTED_ROUTE_KINDS
    ]


def protocols_can_share_port(first: str, second: str) -> bool:
    """Return whether listeners of the two protocols may bind the same port."""
    if first in EXCLUSIVE_PROTOCOLS or second in EXCLUSIVE_PROTOCOLS:
        return False
    return any(first in group and second in group for group in PORT_SHARING_GROUPS)


def build_port_occupancy(
    dataplane_listens: Iterable[DataPlaneListen],
) -> dict[str, set[int]]:
    """Map each protocol the data plane listens with to its ports."""
    occupancy: dict[str, set[int]] = defaultdict(set)
    for listen in dataplane_listens:
        occupancy[listen.protocol].add(listen.port)
    return occupancy


@dataclass
class _PortClaim:
    """Listener that held a port conflict-free in the previous status."""

    protocol: str
    index: int


class _ClaimTable:
    """Port and hostname claims for one computation."""

    def __init__(self, listeners: list[Listener]):
        self.listeners = listeners
        self.ports: dict[int, _PortClaim] = {}
        self.hostnames: dict[tuple[int, str], str] = {}
        self.by_port: dict[int, list[int]] = defaultdict(list)
        for index, listener in enumerate(listeners):
            self.by_port[listener.port].append(index)

    def seed(self, index: int) -> None:
        listener = self.listeners[index]
        self.ports.setdefault(listener.port, _PortClaim(listener.protocol, index))
        if listener.protocol in HOSTNAME_PROTOCOLS:
            self.hostnames.setdefault(
                (listener.port, listener.hostname or FALLBACK_HOSTNAME), listener.name
            )

    def protocol_rival(self, index: int) -> str | None:
        """Return the protocol this listener's port claim conflicts with, if any."""
        listener = self.listeners[index]
        claim = self.ports.get(listener.port)
        if claim is not None:
            if claim.index == index or protocols_can_share_port(
                claim.protocol, listener.protocol
            ):
                return None
            return claim.protocol

        # Without an established owner every listener on the port must be compatible
        for other in self.by_port[listener.port]:
            other_protocol = self.listeners[other].protocol
            if other != index and not protocols_can_share_port(
                listener.protocol, other_protocol
            ):
                return other_protocol
        return None

    def hostname_owner(self, index: int) -> str:
        listener = self.listeners[index]
        key = (listener.port, listener.hostname or FALLBACK_HOSTNAME)
        return self.hostnames.setdefault(key, listener.name)


def _previously_conflict_free(status: ListenerStatus) -> bool:
    return any(
        c.type == LISTENER_CONDITION_CONFLICTED and c.status == CONDITION_FALSE
        for c in status.conditions
    )


def _evaluate_conflicts(
    index: int, claims: _ClaimTable, conditions: ConditionSet
) -> None:
    listener = claims.listeners[index]

    rival_protocol = claims.protocol_rival(index)
    if rival_protocol is not None:
        conditions.set(
            LISTENER_CONDITION_CONFLICTED,
            CONDITION_TRUE,
            LISTENER_REASON_PROTOCOL_CONFLICT,
            MESSAGE_PROTOCOL_CONFLICT.format(
                listener.protocol, listener.port, rival_protocol
            ),
        )
        return

    if listener.protocol in HOSTNAME_PROTOCOLS:
        owner = claims.hostname_owner(index)
        if owner != listener.name:
            conditions.set(
                LISTENER_CONDITION_CONFLICTED,
                CONDITION_TRUE,
                LISTENER_REASON_HOSTNAME_CONFLICT,
                MESSAGE_HOSTNAME_CONFLICT.format(
                    listener.hostname or "*", listener.port, owner
                ),
            )
            return

    conditions.set(
        LISTENER_CONDITION_CONFLICTED, CONDITION_FALSE, LISTENER_REASON_NO_CONFLICTS
    )


def _evaluate_detachment(
    listener: Listener, occupancy: dict[str, set[int]], conditions: ConditionSet
) -> None:
    ports = occupancy.get(listener.protocol)
    if not ports:
        conditions.set(
            LISTENER_CONDITION_DETACHED,
            CONDITION_TRUE,
            LISTENER_REASON_UNSUPPORTED_PROTOCOL,
            MESSAGE_UNSUPPORTED_PROTOCOL,
        )
    elif listener.port not in ports:
        conditions.set(
            LISTENER_CONDITION_DETACHED,
            CONDITION_TRUE,
            LISTENER_REASON_PORT_UNAVAILABLE,
            MESSAGE_PORT_UNAVAILABLE,
        )


def _evaluate_readiness(conditions: ConditionSet) -> None:
    if (
        conditions.has(LISTENER_CONDITION_CONFLICTED, CONDITION_TRUE)
        or LISTENER_CONDITION_DETACHED in conditions
    ):
        conditions.set(
            LISTENER_CONDITION_READY,
            CONDITION_FALSE,
            LISTENER_REASON_PENDING,
            MESSAGE_LISTENER_PENDING,
        )
    else:
        conditions.set(
            LISTENER_CONDITION_READY,
            CONDITION_TRUE,
            LISTENER_REASON_READY,
            MESSAGE_LISTENER_READY,
        )


def compute_listener_statuses(
    gateway: Gateway,
    dataplane_listens: Iterable[DataPlaneListen],
    now: str | None = None,
) -> list[ListenerStatus]:
    """
    Compute the status of every listener declared on a Gateway.

    Args:
        gateway: Gateway with its desired listeners and previous status
        dataplane_listens: Protocol/port pairs the data plane listens on
        now: Transition time for changed conditions (defaults to current time)

    Returns:
        One ListenerStatus per spec listener, in spec order
    """
    now = now or format_transition_time()
    listeners = gateway.spec.listeners
    occupancy = build_port_occupancy(dataplane_listens)

    previous = {status.name: status for status in gateway.status.listeners}
    claims = _ClaimTable(listeners)

    # Established listeners claim first so their status does not flap
    for index, listener in enumerate(listeners):
        prior = previous.get(listener.name)
        if prior is not None and _previously_conflict_free(prior):
            claims.seed(index)

    statuses: list[ListenerStatus] = []
    for index, listener in enumerate(listeners):
        prior = previous.get(listener.name)
        conditions = ConditionSet(
            gateway.generation, now, prior.conditions if prior else ()
        )

        _evaluate_conflicts(index, claims, conditions)
        _evaluate_detachment(listener, occupancy, conditions)
        _evaluate_readiness(conditions)

        if not conditions.has(LISTENER_CONDITION_READY, CONDITION_TRUE):
            logger.debug(
                f"Listener {listener.name} of Gateway {gateway.namespace}/{gateway.name} "
                f"is not ready",
                extra={
                    "resource_type": "gateway",
                    "resource_name": gateway.name,
                    "namespace": gateway.namespace,
                    "listener": listener.name,
                },
            )

        statuses.append(
            ListenerStatus(
                name=listener.name,
                attached_routes=prior.attached_routes if prior else 0,
                supported_kinds=supported_kinds(),
                conditions=conditions.to_list(),
            )
        )

    return statuses
