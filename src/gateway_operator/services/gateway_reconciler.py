"""
Gateway reconciliation service.

This module drives one reconciliation of a Gateway in unmanaged mode:
- Checking that the Gateway's class belongs to this controller
- Resolving the publish Service the data plane is exposed through
- Acknowledging the Gateway with the Scheduled condition
- Computing listener statuses against the data plane's listens
- Writing addresses, listener statuses and the Ready condition

The status computation itself lives in listener_status; this module only
gathers its inputs and persists its output.
"""

import asyncio
import time
from collections.abc import Iterable
from typing import Any

import kopf
from kubernetes import client
from kubernetes.client.rest import ApiException
from pydantic import ValidationError as SchemaValidationError

from gateway_operator.constants import (
    CONDITION_TRUE,
    GATEWAY_CONDITION_READY,
    GATEWAY_CONDITION_SCHEDULED,
    GATEWAY_REASON_READY,
    GATEWAY_REASON_SCHEDULED,
    GATEWAY_UNMANAGED_DEFAULT_VALUE,
    MESSAGE_GATEWAY_READY,
    MESSAGE_GATEWAY_SCHEDULED,
)
from gateway_operator.errors import (
    KubernetesAPIError,
    OperatorError,
    TemporaryError,
    ValidationError,
)
from gateway_operator.models.common import NamespacedName
from gateway_operator.models.gateway import (
    Condition,
    Gateway,
    GatewayAddress,
    GatewayClass,
)
from gateway_operator.observability.logging import OperatorLogger
from gateway_operator.observability.metrics import metrics_collector
from gateway_operator.services.dataplane import (
    ListenSource,
    get_listen_source,
    map_listens_to_service_ports,
)
from gateway_operator.services.gateway_predicates import (
    is_gateway_in_class_and_unmanaged,
    is_gateway_ready,
    is_gateway_scheduled,
)
from gateway_operator.services.listener_status import compute_listener_statuses
from gateway_operator.settings import settings
from gateway_operator.utils.annotations import extract_unmanaged_gateway_mode
from gateway_operator.utils.conditions import (
    format_transition_time,
    prune_gateway_status_conditions,
    set_condition,
)
from gateway_operator.utils.kubernetes import (
    get_gateway,
    get_gateway_class,
    get_kubernetes_client,
    get_service,
    patch_gateway_status,
)
from gateway_operator.utils.references import get_ref_from_publish_service

RESOURCE_TYPE = "gateway"


def addresses_from_service(service: client.V1Service | None) -> list[GatewayAddress]:
    """
    Derive Gateway addresses from the publish Service.

    LoadBalancer ingress entries win; a Service without any falls back to
    its ClusterIP. Headless Services yield no address.
    """
    if service is None:
        return []

    addresses = []
    load_balancer = service.status.load_balancer if service.status else None
    for ingress in (load_balancer.ingress if load_balancer else None) or []:
        if ingress.ip:
            addresses.append(GatewayAddress(type="IPAddress", value=ingress.ip))
        elif ingress.hostname:
            addresses.append(GatewayAddress(type="Hostname", value=ingress.hostname))

    if not addresses and service.spec is not None:
        cluster_ip = service.spec.cluster_ip
        if cluster_ip and cluster_ip != "None":
            addresses.append(GatewayAddress(type="IPAddress", value=cluster_ip))

    return addresses


class GatewayReconciler:
    """
    Reconciler for Gateways handled in unmanaged mode.

    Each call re-reads everything it needs, so a failed write is recovered
    by simply running the reconciliation again.
    """

    def __init__(
        self,
        k8s_client: client.ApiClient | None = None,
        listen_source: ListenSource | None = None,
        controller_name: str | None = None,
        publish_service: str | None = None,
    ):
        """
        Args:
            k8s_client: Kubernetes API client, created on first use if omitted
            listen_source: Source of data-plane listens (defaults from settings)
            controller_name: Controller identity (defaults from settings)
            publish_service: Default publish service for 'true'-valued annotations
        """
        self.k8s_client = k8s_client
        self.listen_source = listen_source
        self.controller_name = controller_name or settings.controller_name
        self.publish_service = (
            settings.publish_service if publish_service is None else publish_service
        )
        self.logger = OperatorLogger(self.__class__.__name__)

    @property
    def kubernetes_client(self) -> client.ApiClient:
        """Get or create Kubernetes API client."""
        if self.k8s_client is None:
            self.k8s_client = get_kubernetes_client()
        return self.k8s_client

    async def reconcile(self, body: dict[str, Any]) -> dict[str, Any] | None:
        """
        Reconcile one Gateway.

        Args:
            body: Gateway body as delivered by kopf or the API

        Returns:
            The status written, or None when nothing was written

        Raises:
            kopf.TemporaryError: On retryable failures
            kopf.PermanentError: On failures retrying cannot fix
        """
        try:
            gateway = Gateway.model_validate(dict(body))
        except SchemaValidationError as e:
            raise ValidationError(f"malformed Gateway: {e}").as_kopf_error() from e

        start_time = time.time()
        self.logger.log_reconciliation_start(
            resource_type=RESOURCE_TYPE,
            resource_name=gateway.name,
            namespace=gateway.namespace,
        )

        try:
            async with metrics_collector.track_reconciliation(
                namespace=gateway.namespace
            ):
                result = await self.do_reconcile(gateway)
        except OperatorError as e:
            self._log_error(gateway, e, start_time)
            raise e.as_kopf_error() from e
        except ApiException as e:
            http_status = getattr(e, "status", None)
            error = KubernetesAPIError(
                message=str(e),
                reason=getattr(e, "reason", None),
                # 409 means a concurrent write; re-reading and retrying resolves it
                retryable=http_status is not None
                and (http_status >= 500 or http_status == 409),
            )
            self._log_error(gateway, error, start_time)
            raise error.as_kopf_error() from e
        except Exception as e:
            error = TemporaryError(f"Unexpected error during reconciliation: {e}")
            self._log_error(gateway, error, start_time)
            raise error.as_kopf_error() from e

        if result is not None:
            self.logger.log_reconciliation_success(
                resource_type=RESOURCE_TYPE,
                resource_name=gateway.name,
                namespace=gateway.namespace,
                duration=time.time() - start_time,
            )
        return result

    async def do_reconcile(self, gateway: Gateway) -> dict[str, Any] | None:
        """Run the reconciliation steps; errors propagate unmapped."""
        if gateway.is_deleting:
            return self._skip(gateway, "deleting")

        class_body = await asyncio.to_thread(
            get_gateway_class,
            gateway.spec.gateway_class_name,
            self.kubernetes_client,
        )
        if class_body is None:
            return self._skip(gateway, "gateway_class_not_found")
        gateway_class = GatewayClass.model_validate(class_body)

        if gateway_class.spec.controller_name != self.controller_name:
            return self._skip(gateway, "foreign_controller")

        if not is_gateway_in_class_and_unmanaged(
            gateway_class, gateway, self.controller_name
        ):
            # Provisioning data planes for managed Gateways is not supported
            return self._skip(gateway, "managed_mode_unsupported")

        publish_ref = self._resolve_publish_service(gateway)
        now = format_transition_time()

        was_scheduled = is_gateway_scheduled(gateway)
        if not was_scheduled:
            self.logger.info(
                f"Marking Gateway {gateway.key} as scheduled",
                resource_type=RESOURCE_TYPE,
                resource_name=gateway.name,
                namespace=gateway.namespace,
            )
            gateway.status.conditions = set_condition(
                gateway.status.conditions,
                Condition(
                    type=GATEWAY_CONDITION_SCHEDULED,
                    status=CONDITION_TRUE,
                    reason=GATEWAY_REASON_SCHEDULED,
                    message=MESSAGE_GATEWAY_SCHEDULED,
                    observed_generation=gateway.generation,
                    last_transition_time=now,
                ),
            )
        elif is_gateway_ready(gateway):
            return self._skip(gateway, "already_ready")

        service = await asyncio.to_thread(
            get_service, publish_ref.name, publish_ref.namespace, self.kubernetes_client
        )
        listen_source = self.listen_source or get_listen_source()
        listens = map_listens_to_service_ports(
            await listen_source.get_listens(), service
        )

        gateway.status.listeners = compute_listener_statuses(gateway, listens, now)
        gateway.status.addresses = addresses_from_service(service)
        gateway.status.conditions = set_condition(
            gateway.status.conditions,
            Condition(
                type=GATEWAY_CONDITION_READY,
                status=CONDITION_TRUE,
                reason=GATEWAY_REASON_READY,
                message=MESSAGE_GATEWAY_READY,
                observed_generation=gateway.generation,
                last_transition_time=now,
            ),
        )
        prune_gateway_status_conditions(gateway)

        status = gateway.status.to_patch()
        await asyncio.to_thread(
            patch_gateway_status,
            gateway.name,
            gateway.namespace,
            status,
            self.kubernetes_client,
        )
        metrics_collector.record_listener_statuses(
            gateway.namespace, gateway.name, gateway.status.listeners
        )
        return status

    async def reconcile_requests(self, requests: Iterable[NamespacedName]) -> int:
        """
        Reconcile Gateways by reference, re-reading each one first.

        Gateways deleted since the request was made are skipped. A Gateway
        failing permanently does not stop the others; retryable failures
        are collected and reported once all requests were attempted.

        Returns:
            Number of Gateways reconciled

        Raises:
            kopf.TemporaryError: If any Gateway failed with a retryable error
        """
        reconciled = 0
        retryable_failures: list[str] = []

        for request in requests:
            body = await asyncio.to_thread(
                get_gateway, request.name, request.namespace, self.kubernetes_client
            )
            if body is None:
                self.logger.debug(
                    f"Gateway {request} no longer exists, skipping",
                    resource_type=RESOURCE_TYPE,
                    resource_name=request.name,
                    namespace=request.namespace,
                )
                continue

            try:
                await self.reconcile(body)
            except kopf.TemporaryError:
                retryable_failures.append(str(request))
                continue
            except kopf.PermanentError:
                continue
            reconciled += 1

        if retryable_failures:
            raise kopf.TemporaryError(
                f"Failed to reconcile Gateways: {', '.join(retryable_failures)}",
                delay=10,
            )
        return reconciled

    def _resolve_publish_service(self, gateway: Gateway) -> NamespacedName:
        value, _ = extract_unmanaged_gateway_mode(gateway.annotations)
        if not value or value == GATEWAY_UNMANAGED_DEFAULT_VALUE:
            value = self.publish_service
        return get_ref_from_publish_service(value)

    def _skip(self, gateway: Gateway, reason: str) -> None:
        self.logger.log_reconciliation_skip(
            resource_type=RESOURCE_TYPE,
            resource_name=gateway.name,
            namespace=gateway.namespace,
            reason=reason,
        )
        metrics_collector.record_reconciliation_skip(gateway.namespace, reason)
        return None

    def _log_error(
        self, gateway: Gateway, error: Exception, start_time: float
    ) -> None:
        self.logger.log_reconciliation_error(
            resource_type=RESOURCE_TYPE,
            resource_name=gateway.name,
            namespace=gateway.namespace,
            error=error,
            duration=time.time() - start_time,
        )
