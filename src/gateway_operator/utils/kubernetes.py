"""
Kubernetes utilities for the gateway operator.

This module provides helper functions for interacting with the Kubernetes API:
- Kubernetes client management and configuration
- Reading Gateways and GatewayClasses
- Writing the Gateway status subresource
- Reading the publish Service
"""

import logging
from typing import Any

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from gateway_operator.constants import (
    GATEWAY_API_GROUP,
    GATEWAY_API_VERSION,
    GATEWAY_CLASS_PLURAL,
    GATEWAY_PLURAL,
)

logger = logging.getLogger(__name__)


def get_kubernetes_client() -> client.ApiClient:
    """
    Get configured Kubernetes API client.

    This function handles both in-cluster and local development configurations.

    Returns:
        Configured Kubernetes API client
    """
    try:
        # Try in-cluster config first (when running in a pod)
        config.load_incluster_config()
        logger.debug("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        try:
            # Fall back to local kubeconfig (for development)
            config.load_kube_config()
            logger.debug("Loaded kubeconfig from local environment")
        except config.ConfigException as e:
            logger.error(f"Failed to load Kubernetes configuration: {e}")
            raise

    return client.ApiClient()


def get_gateway_class(
    name: str, k8s_client: client.ApiClient | None = None
) -> dict[str, Any] | None:
    """
    Get a GatewayClass by name.

    Returns:
        GatewayClass body, or None if it does not exist
    """
    custom_api = client.CustomObjectsApi(k8s_client or get_kubernetes_client())
    try:
        return custom_api.get_cluster_custom_object(
            group=GATEWAY_API_GROUP,
            version=GATEWAY_API_VERSION,
            plural=GATEWAY_CLASS_PLURAL,
            name=name,
        )
    except ApiException as e:
        if e.status == 404:
            logger.debug(f"GatewayClass {name} not found")
            return None
        raise


def get_gateway(
    name: str, namespace: str, k8s_client: client.ApiClient | None = None
) -> dict[str, Any] | None:
    """
    Get a Gateway by namespace and name.

    Returns:
        Gateway body, or None if it does not exist
    """
    custom_api = client.CustomObjectsApi(k8s_client or get_kubernetes_client())
    try:
        return custom_api.get_namespaced_custom_object(
            group=GATEWAY_API_GROUP,
            version=GATEWAY_API_VERSION,
            namespace=namespace,
            plural=GATEWAY_PLURAL,
            name=name,
        )
    except ApiException as e:
        if e.status == 404:
            logger.debug(f"Gateway {namespace}/{name} not found")
            return None
        raise


def list_gateways(
    namespace: str | None = None, k8s_client: client.ApiClient | None = None
) -> list[dict[str, Any]]:
    """
    List Gateways in one namespace or cluster-wide.

    Args:
        namespace: Specific namespace to search, or None for cluster-wide

    Returns:
        List of Gateway bodies
    """
    logger.debug(f"Listing Gateways in namespace: {namespace or 'all'}")
    custom_api = client.CustomObjectsApi(k8s_client or get_kubernetes_client())

    if namespace:
        response = custom_api.list_namespaced_custom_object(
            group=GATEWAY_API_GROUP,
            version=GATEWAY_API_VERSION,
            namespace=namespace,
            plural=GATEWAY_PLURAL,
        )
    else:
        response = custom_api.list_cluster_custom_object(
            group=GATEWAY_API_GROUP,
            version=GATEWAY_API_VERSION,
            plural=GATEWAY_PLURAL,
        )

    return response.get("items", [])


def patch_gateway_status(
    name: str,
    namespace: str,
    status: dict[str, Any],
    k8s_client: client.ApiClient | None = None,
) -> dict[str, Any]:
    """
    Write the status subresource of a Gateway.

    Conflicting concurrent writes surface as ApiException (409); the caller
    re-reads the Gateway and recomputes before retrying.
    """
    custom_api = client.CustomObjectsApi(k8s_client or get_kubernetes_client())
    return custom_api.patch_namespaced_custom_object_status(
        group=GATEWAY_API_GROUP,
        version=GATEWAY_API_VERSION,
        namespace=namespace,
        plural=GATEWAY_PLURAL,
        name=name,
        body={"status": status},
    )


def get_service(
    name: str, namespace: str, k8s_client: client.ApiClient | None = None
) -> client.V1Service | None:
    """
    Get a Service by namespace and name.

    Returns:
        The Service, or None if it does not exist
    """
    core_api = client.CoreV1Api(k8s_client or get_kubernetes_client())
    try:
        return core_api.read_namespaced_service(name=name, namespace=namespace)
    except ApiException as e:
        if e.status == 404:
            logger.warning(f"Service {namespace}/{name} not found")
            return None
        raise
