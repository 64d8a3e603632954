"""
Unit tests for listener status computation.

Covers conflict detection between listeners, detachment against the data
plane's listens, readiness, and the stability guarantees the control loop
relies on when the computation runs again on its own output.
"""

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
)
from gateway_operator.services.listener_status import (
    build_port_occupancy,
    compute_listener_statuses,
    protocols_can_share_port,
    supported_kinds,
)
from tests.unit.conftest import EARLIER, NOW, listens, make_gateway


def by_type(status):
    return {condition.type: condition for condition in status.conditions}


def by_name(statuses):
    return {status.name: status for status in statuses}


def dump(statuses):
    return [status.model_dump(by_alias=True) for status in statuses]


class TestWebScenario:
    """An HTTP and an HTTPS listener on separate ports the data plane serves."""

    def setup_method(self):
        self.gateway = make_gateway(
            [
                {"name": "web", "protocol": "HTTP", "port": 80},
                {"name": "web-tls", "protocol": "HTTPS", "port": 443},
            ],
            generation=7,
        )
        self.listens = listens(("HTTP", 80), ("HTTPS", 443))

    def test_both_listeners_ready(self):
        statuses = compute_listener_statuses(self.gateway, self.listens, NOW)

        assert [s.name for s in statuses] == ["web", "web-tls"]
        for status in statuses:
            conditions = by_type(status)
            assert conditions[LISTENER_CONDITION_CONFLICTED].status == CONDITION_FALSE
            assert (
                conditions[LISTENER_CONDITION_CONFLICTED].reason
                == LISTENER_REASON_NO_CONFLICTS
            )
            assert LISTENER_CONDITION_DETACHED not in conditions
            assert conditions[LISTENER_CONDITION_READY].status == CONDITION_TRUE
            assert conditions[LISTENER_CONDITION_READY].reason == LISTENER_REASON_READY

    def test_https_listener_without_dataplane_listen_is_detached(self):
        gateway = make_gateway(
            [
                {"name": "web", "protocol": "HTTP", "port": 80},
                {"name": "web-tls", "protocol": "HTTPS", "port": 443, "hostname": "a.com"},
            ]
        )

        statuses = by_name(compute_listener_statuses(gateway, listens(("HTTP", 80)), NOW))

        web = by_type(statuses["web"])
        web_tls = by_type(statuses["web-tls"])
        assert web[LISTENER_CONDITION_CONFLICTED].status == CONDITION_FALSE
        assert web[LISTENER_CONDITION_READY].status == CONDITION_TRUE
        assert LISTENER_CONDITION_DETACHED not in web
        assert web_tls[LISTENER_CONDITION_DETACHED].status == CONDITION_TRUE
        assert (
            web_tls[LISTENER_CONDITION_DETACHED].reason
            == LISTENER_REASON_UNSUPPORTED_PROTOCOL
        )
        assert web_tls[LISTENER_CONDITION_READY].status == CONDITION_FALSE

    def test_condition_order_and_metadata(self):
        statuses = compute_listener_statuses(self.gateway, self.listens, NOW)

        for status in statuses:
            assert [c.type for c in status.conditions] == [
                LISTENER_CONDITION_CONFLICTED,
                LISTENER_CONDITION_READY,
            ]
            assert all(c.observed_generation == 7 for c in status.conditions)
            assert all(c.last_transition_time == NOW for c in status.conditions)

    def test_supported_kinds_advertised(self):
        statuses = compute_listener_statuses(self.gateway, self.listens, NOW)

        kinds = [k.kind for k in statuses[0].supported_kinds]
        assert kinds == ["HTTPRoute", "TCPRoute", "UDPRoute", "TLSRoute"]
        assert all(k.group == GATEWAY_API_GROUP for k in statuses[0].supported_kinds)
        assert statuses[0].supported_kinds == supported_kinds()

    def test_serialized_with_api_field_names(self):
        statuses = compute_listener_statuses(self.gateway, self.listens, NOW)

        serialized = statuses[0].model_dump(by_alias=True)
        assert serialized["attachedRoutes"] == 0
        assert "supportedKinds" in serialized
        assert serialized["conditions"][0]["lastTransitionTime"] == NOW
        assert serialized["conditions"][0]["observedGeneration"] == 7


class TestEdgeInputs:
    """Degenerate inputs."""

    def test_zero_listeners(self):
        gateway = make_gateway([])
        assert compute_listener_statuses(gateway, listens(("HTTP", 80)), NOW) == []

    def test_no_dataplane_listens_detaches_everything(self):
        gateway = make_gateway(
            [
                {"name": "web", "protocol": "HTTP", "port": 80},
                {"name": "tcp", "protocol": "TCP", "port": 9000},
            ]
        )

        statuses = compute_listener_statuses(gateway, [], NOW)

        for status in statuses:
            conditions = by_type(status)
            assert conditions[LISTENER_CONDITION_DETACHED].status == CONDITION_TRUE
            assert (
                conditions[LISTENER_CONDITION_DETACHED].reason
                == LISTENER_REASON_UNSUPPORTED_PROTOCOL
            )
            assert conditions[LISTENER_CONDITION_READY].status == CONDITION_FALSE
            assert conditions[LISTENER_CONDITION_READY].reason == LISTENER_REASON_PENDING


class TestProtocolConflicts:
    """Port sharing between protocols."""

    def test_tcp_and_http_on_same_port_both_conflicted(self):
        for order in (("TCP", "HTTP"), ("HTTP", "TCP")):
            gateway = make_gateway(
                [
                    {"name": "first", "protocol": order[0], "port": 80},
                    {"name": "second", "protocol": order[1], "port": 80},
                ]
            )

            statuses = compute_listener_statuses(
                gateway, listens(("HTTP", 80), ("TCP", 80)), NOW
            )

            for status in statuses:
                conflicted = by_type(status)[LISTENER_CONDITION_CONFLICTED]
                assert conflicted.status == CONDITION_TRUE, order
                assert conflicted.reason == LISTENER_REASON_PROTOCOL_CONFLICT
                assert "80" in conflicted.message
                assert by_type(status)[LISTENER_CONDITION_READY].status == CONDITION_FALSE

    def test_two_udp_listeners_cannot_share(self):
        gateway = make_gateway(
            [
                {"name": "dns", "protocol": "UDP", "port": 53},
                {"name": "dns-2", "protocol": "UDP", "port": 53},
            ]
        )

        statuses = compute_listener_statuses(gateway, listens(("UDP", 53)), NOW)

        assert all(
            by_type(s)[LISTENER_CONDITION_CONFLICTED].status == CONDITION_TRUE
            for s in statuses
        )

    def test_https_and_tls_share_port(self):
        gateway = make_gateway(
            [
                {"name": "https", "protocol": "HTTPS", "port": 443, "hostname": "a.example.com"},
                {"name": "tls", "protocol": "TLS", "port": 443, "hostname": "b.example.com"},
            ]
        )

        statuses = compute_listener_statuses(
            gateway, listens(("HTTPS", 443), ("TLS", 443)), NOW
        )

        for status in statuses:
            assert by_type(status)[LISTENER_CONDITION_CONFLICTED].status == CONDITION_FALSE
            assert by_type(status)[LISTENER_CONDITION_READY].status == CONDITION_TRUE

    def test_http_and_https_cannot_share(self):
        assert not protocols_can_share_port("HTTP", "HTTPS")
        assert protocols_can_share_port("HTTP", "HTTP")
        assert protocols_can_share_port("TLS", "HTTPS")
        assert not protocols_can_share_port("TCP", "TCP")

    def test_established_listener_keeps_its_port(self):
        previous = [
            {
                "name": "web",
                "conditions": [
                    {
                        "type": LISTENER_CONDITION_CONFLICTED,
                        "status": CONDITION_FALSE,
                        "reason": LISTENER_REASON_NO_CONFLICTS,
                        "lastTransitionTime": EARLIER,
                    }
                ],
            }
        ]
        # The newcomer is declared first but must not take the port over
        gateway = make_gateway(
            [
                {"name": "raw", "protocol": "TCP", "port": 80},
                {"name": "web", "protocol": "HTTP", "port": 80},
            ],
            previous_listeners=previous,
        )

        statuses = by_name(
            compute_listener_statuses(gateway, listens(("HTTP", 80), ("TCP", 80)), NOW)
        )

        web = by_type(statuses["web"])[LISTENER_CONDITION_CONFLICTED]
        raw = by_type(statuses["raw"])[LISTENER_CONDITION_CONFLICTED]
        assert web.status == CONDITION_FALSE
        assert web.last_transition_time == EARLIER
        assert raw.status == CONDITION_TRUE
        assert raw.reason == LISTENER_REASON_PROTOCOL_CONFLICT

    def test_tcp_listener_conflicts_every_http_listener_on_its_port(self):
        gateway = make_gateway(
            [
                {"name": "a", "protocol": "HTTP", "port": 80, "hostname": "a.com"},
                {"name": "b", "protocol": "HTTP", "port": 80, "hostname": "b.com"},
                {"name": "raw", "protocol": "TCP", "port": 80},
            ]
        )

        statuses = compute_listener_statuses(
            gateway, listens(("HTTP", 80), ("TCP", 80)), NOW
        )

        for status in statuses:
            conflicted = by_type(status)[LISTENER_CONDITION_CONFLICTED]
            assert conflicted.status == CONDITION_TRUE, status.name
            assert conflicted.reason == LISTENER_REASON_PROTOCOL_CONFLICT
            assert by_type(status)[LISTENER_CONDITION_READY].status == CONDITION_FALSE


class TestHostnameConflicts:
    """Hostname uniqueness on shared HTTP ports."""

    def test_duplicate_hostnames_and_fallbacks(self):
        gateway = make_gateway(
            [
                {"name": "foo", "protocol": "HTTP", "port": 80, "hostname": "foo.example.com"},
                {"name": "foo-again", "protocol": "HTTP", "port": 80, "hostname": "foo.example.com"},
                {"name": "fallback", "protocol": "HTTP", "port": 80},
                {"name": "fallback-again", "protocol": "HTTP", "port": 80},
                {"name": "bar", "protocol": "HTTP", "port": 80, "hostname": "bar.example.com"},
            ]
        )

        statuses = by_name(compute_listener_statuses(gateway, listens(("HTTP", 80)), NOW))

        def conflicted(name):
            return by_type(statuses[name])[LISTENER_CONDITION_CONFLICTED]

        assert conflicted("foo").status == CONDITION_FALSE
        assert conflicted("fallback").status == CONDITION_FALSE
        assert conflicted("bar").status == CONDITION_FALSE
        for name in ("foo-again", "fallback-again"):
            assert conflicted(name).status == CONDITION_TRUE
            assert conflicted(name).reason == LISTENER_REASON_HOSTNAME_CONFLICT
        assert "foo" in conflicted("foo-again").message

    def test_https_fallback_does_not_clash_with_named_hostname(self):
        gateway = make_gateway(
            [
                {"name": "named", "protocol": "HTTPS", "port": 443, "hostname": "a.com"},
                {"name": "fallback", "protocol": "HTTPS", "port": 443},
            ]
        )

        statuses = compute_listener_statuses(gateway, listens(("HTTPS", 443)), NOW)

        for status in statuses:
            conflicted = by_type(status)[LISTENER_CONDITION_CONFLICTED]
            assert conflicted.status == CONDITION_FALSE, status.name
            assert conflicted.reason == LISTENER_REASON_NO_CONFLICTS

    def test_https_duplicate_hostname_conflicts(self):
        gateway = make_gateway(
            [
                {"name": "first", "protocol": "HTTPS", "port": 443, "hostname": "a.com"},
                {"name": "second", "protocol": "HTTPS", "port": 443, "hostname": "a.com"},
            ]
        )

        statuses = by_name(compute_listener_statuses(gateway, listens(("HTTPS", 443)), NOW))

        assert by_type(statuses["first"])[LISTENER_CONDITION_CONFLICTED].status == CONDITION_FALSE
        second = by_type(statuses["second"])[LISTENER_CONDITION_CONFLICTED]
        assert second.status == CONDITION_TRUE
        assert second.reason == LISTENER_REASON_HOSTNAME_CONFLICT

    def test_established_listener_keeps_its_hostname(self):
        previous = [
            {
                "name": "owner",
                "conditions": [
                    {
                        "type": LISTENER_CONDITION_CONFLICTED,
                        "status": CONDITION_FALSE,
                        "reason": LISTENER_REASON_NO_CONFLICTS,
                        "lastTransitionTime": EARLIER,
                    }
                ],
            }
        ]
        # The newcomer is declared first but must not take the hostname over
        gateway = make_gateway(
            [
                {"name": "newcomer", "protocol": "HTTP", "port": 80, "hostname": "a.com"},
                {"name": "owner", "protocol": "HTTP", "port": 80, "hostname": "a.com"},
            ],
            previous_listeners=previous,
        )

        statuses = by_name(compute_listener_statuses(gateway, listens(("HTTP", 80)), NOW))

        owner = by_type(statuses["owner"])[LISTENER_CONDITION_CONFLICTED]
        newcomer = by_type(statuses["newcomer"])[LISTENER_CONDITION_CONFLICTED]
        assert owner.status == CONDITION_FALSE
        assert owner.last_transition_time == EARLIER
        assert newcomer.status == CONDITION_TRUE
        assert newcomer.reason == LISTENER_REASON_HOSTNAME_CONFLICT
        assert "owner" in newcomer.message

    def test_same_hostname_on_different_ports_is_fine(self):
        gateway = make_gateway(
            [
                {"name": "a", "protocol": "HTTP", "port": 80, "hostname": "x.example.com"},
                {"name": "b", "protocol": "HTTP", "port": 8080, "hostname": "x.example.com"},
            ]
        )

        statuses = compute_listener_statuses(
            gateway, listens(("HTTP", 80), ("HTTP", 8080)), NOW
        )

        assert all(
            by_type(s)[LISTENER_CONDITION_CONFLICTED].status == CONDITION_FALSE
            for s in statuses
        )


class TestDetachment:
    """Detachment is evaluated independently of conflicts."""

    def test_unsupported_protocol_and_unavailable_port(self):
        gateway = make_gateway(
            [
                {"name": "dns", "protocol": "UDP", "port": 53},
                {"name": "alt", "protocol": "HTTP", "port": 8080},
            ]
        )

        statuses = by_name(compute_listener_statuses(gateway, listens(("HTTP", 80)), NOW))

        dns = by_type(statuses["dns"])
        alt = by_type(statuses["alt"])
        assert dns[LISTENER_CONDITION_DETACHED].reason == LISTENER_REASON_UNSUPPORTED_PROTOCOL
        assert alt[LISTENER_CONDITION_DETACHED].reason == LISTENER_REASON_PORT_UNAVAILABLE
        assert dns[LISTENER_CONDITION_CONFLICTED].status == CONDITION_FALSE
        assert alt[LISTENER_CONDITION_CONFLICTED].status == CONDITION_FALSE
        assert dns[LISTENER_CONDITION_READY].status == CONDITION_FALSE
        assert alt[LISTENER_CONDITION_READY].status == CONDITION_FALSE

    def test_conflicted_listener_is_also_checked_for_detachment(self):
        gateway = make_gateway(
            [
                {"name": "raw", "protocol": "TCP", "port": 80},
                {"name": "web", "protocol": "HTTP", "port": 80},
            ]
        )

        statuses = by_name(compute_listener_statuses(gateway, listens(("HTTP", 80)), NOW))

        raw = by_type(statuses["raw"])
        assert raw[LISTENER_CONDITION_CONFLICTED].status == CONDITION_TRUE
        assert raw[LISTENER_CONDITION_DETACHED].reason == LISTENER_REASON_UNSUPPORTED_PROTOCOL
        assert [c.type for c in statuses["raw"].conditions] == [
            LISTENER_CONDITION_CONFLICTED,
            LISTENER_CONDITION_DETACHED,
            LISTENER_CONDITION_READY,
        ]

    def test_port_occupancy_groups_by_protocol(self):
        occupancy = build_port_occupancy(listens(("HTTP", 80), ("HTTP", 8080), ("TCP", 9000)))
        assert occupancy["HTTP"] == {80, 8080}
        assert occupancy["TCP"] == {9000}
        assert not occupancy.get("UDP")


class TestStability:
    """Re-running the computation on its own output."""

    def test_idempotent(self):
        gateway = make_gateway(
            [
                {"name": "raw", "protocol": "TCP", "port": 80},
                {"name": "web", "protocol": "HTTP", "port": 80},
                {"name": "tls", "protocol": "HTTPS", "port": 443},
                {"name": "alt", "protocol": "HTTP", "port": 8080},
            ]
        )
        dataplane = listens(("HTTP", 80), ("HTTPS", 443), ("TCP", 80))

        first = compute_listener_statuses(gateway, dataplane, NOW)
        gateway.status.listeners = first
        second = compute_listener_statuses(gateway, dataplane, "2030-01-01T00:00:00Z")

        assert dump(second) == dump(first)

    def test_mixed_protocol_port_does_not_flap(self):
        gateway = make_gateway(
            [
                {"name": "a", "protocol": "HTTP", "port": 80, "hostname": "a.com"},
                {"name": "b", "protocol": "HTTP", "port": 80, "hostname": "b.com"},
                {"name": "raw", "protocol": "TCP", "port": 80},
            ]
        )
        dataplane = listens(("HTTP", 80), ("TCP", 80))

        first = compute_listener_statuses(gateway, dataplane, NOW)
        gateway.status.listeners = first
        second = compute_listener_statuses(gateway, dataplane, NOW)
        gateway.status.listeners = second
        third = compute_listener_statuses(gateway, dataplane, NOW)

        assert dump(second) == dump(first)
        assert dump(third) == dump(first)

    def test_previous_status_does_not_change_outcome_for_fresh_gateway(self):
        listeners = [
            {"name": "web", "protocol": "HTTP", "port": 80},
            {"name": "web-tls", "protocol": "HTTPS", "port": 443},
        ]
        dataplane = listens(("HTTP", 80), ("HTTPS", 443))
        fresh = compute_listener_statuses(make_gateway(listeners), dataplane, NOW)

        gateway = make_gateway(listeners)
        gateway.status.listeners = fresh
        again = compute_listener_statuses(gateway, dataplane, NOW)

        assert dump(again) == dump(fresh)

    def test_transition_time_moves_only_on_change(self):
        previous = [
            {
                "name": "web",
                "attachedRoutes": 3,
                "conditions": [
                    {
                        "type": LISTENER_CONDITION_CONFLICTED,
                        "status": CONDITION_FALSE,
                        "reason": LISTENER_REASON_NO_CONFLICTS,
                        "lastTransitionTime": EARLIER,
                    },
                    {
                        "type": LISTENER_CONDITION_READY,
                        "status": CONDITION_FALSE,
                        "reason": LISTENER_REASON_PENDING,
                        "lastTransitionTime": EARLIER,
                    },
                ],
            }
        ]
        gateway = make_gateway(
            [{"name": "web", "protocol": "HTTP", "port": 80}],
            previous_listeners=previous,
            generation=2,
        )

        (status,) = compute_listener_statuses(gateway, listens(("HTTP", 80)), NOW)

        conditions = by_type(status)
        assert conditions[LISTENER_CONDITION_CONFLICTED].last_transition_time == EARLIER
        assert conditions[LISTENER_CONDITION_READY].last_transition_time == NOW
        assert conditions[LISTENER_CONDITION_CONFLICTED].observed_generation == 2

    def test_attached_routes_carried_over(self):
        previous = [{"name": "web", "attachedRoutes": 3, "conditions": []}]
        gateway = make_gateway(
            [{"name": "web", "protocol": "HTTP", "port": 80}],
            previous_listeners=previous,
        )

        (status,) = compute_listener_statuses(gateway, listens(("HTTP", 80)), NOW)

        assert status.attached_routes == 3

    def test_status_of_removed_listener_is_dropped(self):
        previous = [{"name": "gone", "attachedRoutes": 1, "conditions": []}]
        gateway = make_gateway(
            [{"name": "web", "protocol": "HTTP", "port": 80}],
            previous_listeners=previous,
        )

        statuses = compute_listener_statuses(gateway, listens(("HTTP", 80)), NOW)

        assert [s.name for s in statuses] == ["web"]
