"""
Object metadata extraction for Kubernetes resources.

Flattens a cluster object into the handful of fields the operator logs and
keys on, independent of whether it arrived as a raw body or a parsed model.
"""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel


@dataclass(frozen=True)
class GroupVersionKind:
    """API group, version and kind of a Kubernetes object."""

    group: str = ""
    version: str = ""
    kind: str = ""

    @classmethod
    def from_api_version(cls, api_version: str, kind: str) -> "GroupVersionKind":
        """Split an apiVersion such as 'gateway.networking.k8s.io/v1alpha2'.

        Core resources carry a bare version ('v1') and map to the empty group.
        """
        if "/" in api_version:
            group, version = api_version.split("/", 1)
        else:
            group, version = "", api_version
        return cls(group=group, version=version, kind=kind)

    def __str__(self) -> str:
        if not self.kind:
            return ""
        if self.group:
            return f"{self.group}/{self.version}, Kind={self.kind}"
        return f"{self.version}, Kind={self.kind}"


@dataclass
class ObjectInfo:
    """Describes a Kubernetes object."""

    name: str
    namespace: str
    annotations: dict[str, str] = field(default_factory=dict)
    group_version_kind: GroupVersionKind = field(default_factory=GroupVersionKind)

    @classmethod
    def from_k8s_object(cls, obj: dict[str, Any] | BaseModel) -> "ObjectInfo":
        """
        Build an ObjectInfo from a raw object body or a parsed model.

        Annotations are copied so callers can mutate the result freely.

        Args:
            obj: Object body as delivered by kopf/the API, or a resource model

        Returns:
            Flattened object description
        """
        if isinstance(obj, BaseModel):
            obj = obj.model_dump(by_alias=True)

        metadata = obj.get("metadata") or {}
        return cls(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", ""),
            annotations=dict(metadata.get("annotations") or {}),
            group_version_kind=GroupVersionKind.from_api_version(
                obj.get("apiVersion", ""), obj.get("kind", "")
            ),
        )

    def log_fields(self) -> dict[str, str]:
        """Structured logging fields for this object."""
        return {
            "resource_type": self.group_version_kind.kind.lower(),
            "resource_name": self.name,
            "namespace": self.namespace,
        }
