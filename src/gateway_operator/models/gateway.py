"""
Pydantic models for Gateway API resources.

This module defines type-safe data models for the subset of the Gateway API
(gateway.networking.k8s.io/v1alpha2) the operator reads and writes: Gateways,
their listeners and status, GatewayClasses, and the data-plane listen set the
listeners are compared against.
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from gateway_operator.constants import (
    GATEWAY_API_GROUP,
    GATEWAY_API_VERSION,
    GATEWAY_CLASS_KIND,
    GATEWAY_KIND,
)

from .common import NamespacedName


class ProtocolType(StrEnum):
    """Listener protocols understood by the controller."""

    HTTP = "HTTP"
    HTTPS = "HTTPS"
    TLS = "TLS"
    TCP = "TCP"
    UDP = "UDP"


class Condition(BaseModel):
    """Status condition following the Kubernetes metav1.Condition layout."""

    model_config = {"populate_by_name": True, "extra": "ignore"}

    type: str = Field(..., description="Condition type")
    status: str = Field(..., description="Condition status (True/False/Unknown)")
    reason: str = Field("", description="Machine-readable reason for the status")
    message: str = Field("", description="Human-readable message")
    observed_generation: int = Field(
        0,
        alias="observedGeneration",
        description="Generation the condition was computed against",
    )
    last_transition_time: str | None = Field(
        None,
        alias="lastTransitionTime",
        description="Last time the condition transitioned",
    )


class RouteGroupKind(BaseModel):
    """Route kind a listener can have attached."""

    model_config = {"populate_by_name": True}

    group: str | None = Field(None, description="API group of the route kind")
    kind: str = Field(..., description="Kind of the route")


class Listener(BaseModel):
    """A desired protocol/port/hostname binding within a Gateway."""

    model_config = {"populate_by_name": True, "extra": "ignore"}

    name: str = Field(..., description="Listener name, unique within the Gateway")
    protocol: str = Field(..., description="Listener protocol")
    port: int = Field(..., ge=1, le=65535, description="Listener port")
    hostname: str | None = Field(
        None, description="Hostname to match (unset matches any other hostname)"
    )
    # Passed through untouched
    allowed_routes: dict[str, Any] | None = Field(None, alias="allowedRoutes")
    tls: dict[str, Any] | None = Field(None, description="TLS configuration")


class ListenerStatus(BaseModel):
    """Computed status for a single listener."""

    model_config = {"populate_by_name": True, "extra": "ignore"}

    name: str = Field(..., description="Name of the listener this status is for")
    attached_routes: int = Field(
        0, alias="attachedRoutes", description="Number of routes attached"
    )
    supported_kinds: list[RouteGroupKind] = Field(
        default_factory=list,
        alias="supportedKinds",
        description="Route kinds the listener supports",
    )
    conditions: list[Condition] = Field(
        default_factory=list, description="Listener conditions"
    )

    @field_validator("supported_kinds", "conditions", mode="before")
    @classmethod
    def none_as_empty_list(cls, v):
        # The API server serializes unset lists as null
        return [] if v is None else v


class GatewayAddress(BaseModel):
    """Network address assigned to a Gateway."""

    model_config = {"populate_by_name": True}

    type: str = Field("IPAddress", description="Address type (IPAddress or Hostname)")
    value: str = Field(..., description="Address value")


class GatewaySpec(BaseModel):
    """Desired state of a Gateway."""

    model_config = {"populate_by_name": True, "extra": "ignore"}

    gateway_class_name: str = Field(
        ..., alias="gatewayClassName", description="Name of the GatewayClass"
    )
    listeners: list[Listener] = Field(
        default_factory=list, description="Listeners in declaration order"
    )
    addresses: list[GatewayAddress] = Field(
        default_factory=list, description="Requested addresses"
    )

    @field_validator("listeners", "addresses", mode="before")
    @classmethod
    def none_as_empty_list(cls, v):
        return [] if v is None else v


class GatewayStatus(BaseModel):
    """Observed state of a Gateway as written by the controller."""

    model_config = {"populate_by_name": True, "extra": "ignore"}

    addresses: list[GatewayAddress] = Field(
        default_factory=list, description="Addresses bound to the Gateway"
    )
    conditions: list[Condition] = Field(
        default_factory=list, description="Gateway-level conditions"
    )
    listeners: list[ListenerStatus] = Field(
        default_factory=list, description="Per-listener status"
    )

    @field_validator("addresses", "conditions", "listeners", mode="before")
    @classmethod
    def none_as_empty_list(cls, v):
        return [] if v is None else v

    def to_patch(self) -> dict[str, Any]:
        """Serialize for a status subresource write."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class Gateway(BaseModel):
    """
    Complete Gateway resource model.

    Metadata is kept as the raw mapping received from the API server.
    """

    model_config = {"populate_by_name": True, "extra": "ignore"}

    api_version: str = Field(
        f"{GATEWAY_API_GROUP}/{GATEWAY_API_VERSION}", alias="apiVersion"
    )
    kind: str = Field(GATEWAY_KIND)
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="Kubernetes metadata"
    )
    spec: GatewaySpec = Field(..., description="Gateway specification")
    status: GatewayStatus = Field(
        default_factory=GatewayStatus,
        description="Gateway status (managed by the controller)",
    )

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, v):
        return {} if v is None else v

    @property
    def name(self) -> str:
        return self.metadata.get("name", "")

    @property
    def namespace(self) -> str:
        return self.metadata.get("namespace", "")

    @property
    def generation(self) -> int:
        return int(self.metadata.get("generation") or 0)

    @property
    def annotations(self) -> dict[str, str]:
        return self.metadata.get("annotations") or {}

    @property
    def is_deleting(self) -> bool:
        return bool(self.metadata.get("deletionTimestamp"))

    @property
    def key(self) -> NamespacedName:
        return NamespacedName(namespace=self.namespace, name=self.name)


class GatewayClassSpec(BaseModel):
    """Specification of a GatewayClass."""

    model_config = {"populate_by_name": True, "extra": "ignore"}

    controller_name: str = Field(
        ...,
        alias="controllerName",
        description="Controller responsible for Gateways of this class",
    )
    parameters_ref: dict[str, Any] | None = Field(
        None, alias="parametersRef", description="Controller-specific parameters"
    )
    description: str | None = Field(None, description="Human-readable description")


class GatewayClass(BaseModel):
    """Cluster-scoped GatewayClass resource model."""

    model_config = {"populate_by_name": True, "extra": "ignore"}

    api_version: str = Field(
        f"{GATEWAY_API_GROUP}/{GATEWAY_API_VERSION}", alias="apiVersion"
    )
    kind: str = Field(GATEWAY_CLASS_KIND)
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="Kubernetes metadata"
    )
    spec: GatewayClassSpec = Field(..., description="GatewayClass specification")

    @property
    def name(self) -> str:
        return self.metadata.get("name", "")


class DataPlaneListen(BaseModel):
    """A protocol/port pair the data plane actually accepts traffic on."""

    model_config = {"frozen": True}

    protocol: str = Field(..., description="Listen protocol")
    port: int = Field(..., description="Listen port")
