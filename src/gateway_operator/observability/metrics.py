"""
Prometheus metrics for the gateway operator.

This module provides metrics collection for monitoring Gateway
reconciliation and the listener conditions it produces.
"""

import logging
import time
from collections.abc import Iterable
from contextlib import asynccontextmanager

from aiohttp.web import Application, AppRunner, Request, Response, TCPSite
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from gateway_operator.constants import CONDITION_TRUE
from gateway_operator.models.gateway import ListenerStatus

logger = logging.getLogger(__name__)

# Global metrics registry
_metrics_registry: CollectorRegistry | None = None

RECONCILIATION_TOTAL = Counter(
    "gateway_operator_reconciliation_total",
    "Total number of Gateway reconciliation attempts",
    ["namespace", "result"],
    registry=None,  # Registered in get_metrics_registry
)

RECONCILIATION_DURATION = Histogram(
    "gateway_operator_reconciliation_duration_seconds",
    "Time spent reconciling Gateways",
    ["namespace", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
    registry=None,
)

RECONCILIATION_ERRORS = Counter(
    "gateway_operator_reconciliation_errors_total",
    "Total number of Gateway reconciliation errors",
    ["namespace", "error_type", "retryable"],
    registry=None,
)

RECONCILIATION_SKIPPED_TOTAL = Counter(
    "gateway_operator_reconciliation_skipped_total",
    "Total number of Gateway reconciliations that ended without a status write",
    ["namespace", "reason"],
    registry=None,
)

LISTENER_CONDITION = Gauge(
    "gateway_operator_listener_condition",
    "Listener condition status (1=True, 0=otherwise)",
    ["namespace", "gateway", "listener", "condition"],
    registry=None,
)

CLASS_FANOUT_REQUESTS_TOTAL = Counter(
    "gateway_operator_class_fanout_requests_total",
    "Gateway reconciliations requested by GatewayClass events",
    ["gateway_class"],
    registry=None,
)


def get_metrics_registry() -> CollectorRegistry:
    """Get or create the global metrics registry."""
    global _metrics_registry

    if _metrics_registry is None:
        _metrics_registry = CollectorRegistry()
        for metric in [
            RECONCILIATION_TOTAL,
            RECONCILIATION_DURATION,
            RECONCILIATION_ERRORS,
            RECONCILIATION_SKIPPED_TOTAL,
            LISTENER_CONDITION,
            CLASS_FANOUT_REQUESTS_TOTAL,
        ]:
            _metrics_registry.register(metric)

    return _metrics_registry


class MetricsCollector:
    """Collects and manages metrics for the gateway operator."""

    def __init__(self):
        self.registry = get_metrics_registry()

    @asynccontextmanager
    async def track_reconciliation(self, namespace: str, operation: str = "reconcile"):
        """
        Context manager to track a reconciliation.

        Args:
            namespace: Namespace of the Gateway
            operation: Type of operation being performed
        """
        start_time = time.time()
        result = "unknown"

        try:
            yield
            result = "success"
        except Exception as e:
            result = "error"
            retryable = "true" if getattr(e, "retryable", False) else "false"
            RECONCILIATION_ERRORS.labels(
                namespace=namespace,
                error_type=type(e).__name__,
                retryable=retryable,
            ).inc()
            raise
        finally:
            RECONCILIATION_TOTAL.labels(namespace=namespace, result=result).inc()
            RECONCILIATION_DURATION.labels(
                namespace=namespace, operation=operation
            ).observe(time.time() - start_time)

    def record_reconciliation_skip(self, namespace: str, reason: str) -> None:
        RECONCILIATION_SKIPPED_TOTAL.labels(namespace=namespace, reason=reason).inc()

    def record_listener_statuses(
        self, namespace: str, gateway: str, statuses: Iterable[ListenerStatus]
    ) -> None:
        """Publish the conditions of each listener as gauges."""
        for status in statuses:
            for condition in status.conditions:
                LISTENER_CONDITION.labels(
                    namespace=namespace,
                    gateway=gateway,
                    listener=status.name,
                    condition=condition.type,
                ).set(1 if condition.status == CONDITION_TRUE else 0)

    def record_class_fanout(self, gateway_class: str, requests: int) -> None:
        CLASS_FANOUT_REQUESTS_TOTAL.labels(gateway_class=gateway_class).inc(requests)


class MetricsServer:
    """HTTP server for exposing Prometheus metrics."""

    def __init__(self, port: int = 8081, host: str = "0.0.0.0"):
        """
        Initialize metrics server.

        Args:
            port: Port to serve metrics on
            host: Host interface to bind to
        """
        self.port = port
        self.host = host
        self.app = Application()
        self.runner: AppRunner | None = None
        self.site: TCPSite | None = None
        self.app.router.add_get("/metrics", self._metrics_handler)
        self.app.router.add_get("/healthz", self._healthz_handler)

    async def _metrics_handler(self, request: Request) -> Response:
        """Handle /metrics endpoint for Prometheus scraping."""
        try:
            metrics_data = generate_latest(get_metrics_registry())
            # aiohttp rejects a charset inside content_type
            return Response(
                body=metrics_data, headers={"Content-Type": CONTENT_TYPE_LATEST}
            )
        except Exception as e:
            logger.error(f"Failed to generate metrics: {e}")
            return Response(
                text=f"Error generating metrics: {type(e).__name__}. Check logs for details.",
                status=500,
            )

    async def _healthz_handler(self, request: Request) -> Response:
        return Response(text="ok")

    async def start(self) -> None:
        """Start the metrics server."""
        self.runner = AppRunner(self.app)
        await self.runner.setup()
        self.site = TCPSite(self.runner, self.host, self.port)
        await self.site.start()
        logger.info(f"Metrics available at http://{self.host}:{self.port}/metrics")

    async def stop(self) -> None:
        """Stop the metrics server."""
        if self.site:
            await self.site.stop()
            self.site = None
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
        logger.info("Metrics server stopped")


# Global metrics collector instance
metrics_collector = MetricsCollector()
