"""Shared fixtures for gateway operator unit tests."""

from typing import Any

import pytest

from gateway_operator.constants import (
    DEFAULT_CONTROLLER_NAME,
    GATEWAY_API_GROUP,
    GATEWAY_API_VERSION,
    GATEWAY_CLASS_KIND,
    GATEWAY_KIND,
    GATEWAY_UNMANAGED_ANNOTATION,
)
from gateway_operator.models.gateway import DataPlaneListen, Gateway

API_VERSION = f"{GATEWAY_API_GROUP}/{GATEWAY_API_VERSION}"
NOW = "2024-05-01T12:00:00Z"
EARLIER = "2024-04-01T08:30:00Z"


def gateway_body(
    listeners: list[dict[str, Any]] | None = None,
    *,
    name: str = "kong",
    namespace: str = "default",
    generation: int = 1,
    gateway_class: str = "kong",
    annotations: dict[str, str] | None = None,
    status: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a Gateway body the way the API server returns it."""
    metadata: dict[str, Any] = {
        "name": name,
        "namespace": namespace,
        "generation": generation,
    }
    if annotations is not None:
        metadata["annotations"] = annotations
    body: dict[str, Any] = {
        "apiVersion": API_VERSION,
        "kind": GATEWAY_KIND,
        "metadata": metadata,
        "spec": {"gatewayClassName": gateway_class, "listeners": listeners or []},
    }
    if status is not None:
        body["status"] = status
    return body


def make_gateway(
    listeners: list[dict[str, Any]] | None = None,
    previous_listeners: list[dict[str, Any]] | None = None,
    **kwargs: Any,
) -> Gateway:
    status = {"listeners": previous_listeners} if previous_listeners else None
    return Gateway.model_validate(gateway_body(listeners, status=status, **kwargs))


def gateway_class_body(
    name: str = "kong", controller_name: str = DEFAULT_CONTROLLER_NAME
) -> dict[str, Any]:
    return {
        "apiVersion": API_VERSION,
        "kind": GATEWAY_CLASS_KIND,
        "metadata": {"name": name},
        "spec": {"controllerName": controller_name},
    }


def listens(*pairs: tuple[str, int]) -> list[DataPlaneListen]:
    return [DataPlaneListen(protocol=protocol, port=port) for protocol, port in pairs]


@pytest.fixture
def unmanaged_annotations() -> dict[str, str]:
    """Annotations marking a Gateway as unmanaged with an explicit publish service."""
    return {GATEWAY_UNMANAGED_ANNOTATION: "kong/kong-proxy"}
