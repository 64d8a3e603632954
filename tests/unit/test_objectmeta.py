"""Unit tests for object metadata extraction."""

from gateway_operator.models.gateway import Gateway
from gateway_operator.utils.objectmeta import GroupVersionKind, ObjectInfo
from tests.unit.conftest import gateway_body


class TestObjectInfo:
    """Tests for ObjectInfo.from_k8s_object."""

    def test_from_body(self):
        body = gateway_body(
            name="edge", namespace="infra", annotations={"team": "net"}
        )

        info = ObjectInfo.from_k8s_object(body)

        assert info.name == "edge"
        assert info.namespace == "infra"
        assert info.annotations == {"team": "net"}
        assert info.group_version_kind == GroupVersionKind(
            group="gateway.networking.k8s.io", version="v1alpha2", kind="Gateway"
        )

    def test_annotations_are_copied(self):
        body = gateway_body(annotations={"team": "net"})

        info = ObjectInfo.from_k8s_object(body)
        info.annotations["team"] = "changed"

        assert body["metadata"]["annotations"] == {"team": "net"}

    def test_from_model(self):
        gateway = Gateway.model_validate(gateway_body(name="edge"))

        info = ObjectInfo.from_k8s_object(gateway)

        assert info.name == "edge"
        assert info.group_version_kind.kind == "Gateway"

    def test_missing_metadata(self):
        info = ObjectInfo.from_k8s_object({"apiVersion": "v1", "kind": "Service"})

        assert info.name == ""
        assert info.namespace == ""
        assert info.annotations == {}
        assert info.group_version_kind.group == ""
        assert info.group_version_kind.version == "v1"

    def test_log_fields(self):
        info = ObjectInfo.from_k8s_object(gateway_body(name="edge", namespace="infra"))
        assert info.log_fields() == {
            "resource_type": "gateway",
            "resource_name": "edge",
            "namespace": "infra",
        }


class TestGroupVersionKind:
    """Tests for GroupVersionKind formatting."""

    def test_str(self):
        gvk = GroupVersionKind.from_api_version("gateway.networking.k8s.io/v1alpha2", "Gateway")
        assert str(gvk) == "gateway.networking.k8s.io/v1alpha2, Kind=Gateway"
        assert str(GroupVersionKind.from_api_version("v1", "Service")) == "v1, Kind=Service"
        assert str(GroupVersionKind()) == ""
