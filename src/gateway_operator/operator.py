#!/usr/bin/env python3
"""
Gateway Operator - Main entry point for the Kopf-based Gateway status controller.

This operator acknowledges Gateways of its GatewayClasses that run in
unmanaged mode and keeps their status in line with the data plane:
- Scheduled and Ready conditions on the Gateway
- Conflicted, Detached and Ready conditions per listener
- Addresses taken from the publish Service

Usage:
    gateway-operator
    # Or with kopf directly:
    kopf run -m gateway_operator.operator --all-namespaces

Environment Variables:
    GATEWAY_OPERATOR_NAMESPACES: Comma-separated list of namespaces to watch
    GATEWAY_CONTROLLER_NAME: Controller name GatewayClasses must reference
    PUBLISH_SERVICE: Default publish Service as namespace/name
    DATAPLANE_ADMIN_URL / DATAPLANE_LISTENS: Where data-plane listens come from
"""

import logging
import sys

import kopf
from kubernetes import config

# Import all handler modules to register them with kopf
from gateway_operator.handlers import gateway, gatewayclass  # noqa: F401
from gateway_operator.observability.logging import setup_structured_logging
from gateway_operator.observability.metrics import MetricsServer
from gateway_operator.services.dataplane import parse_static_listens
from gateway_operator.settings import settings as operator_settings

# Global reference to metrics server for cleanup
_global_metrics_server: MetricsServer | None = None


def configure_logging() -> None:
    """Configure structured logging for the operator based on operator_settings."""
    setup_structured_logging(
        log_level=operator_settings.log_level.upper(),
        enable_json_formatting=operator_settings.json_logs,
        correlation_id_enabled=operator_settings.correlation_ids,
    )


def get_watched_namespaces() -> list[str] | None:
    """
    Get the list of namespaces to watch from operator_settings.

    Returns:
        List of namespace names, or None to watch all namespaces
    """
    return operator_settings.watched_namespaces


def check_listen_configuration() -> None:
    """Fail fast on unusable data-plane listen settings."""
    if operator_settings.dataplane_admin_url:
        logging.info(
            f"Reading data-plane listens from {operator_settings.dataplane_admin_url}"
        )
        return

    listens = parse_static_listens(operator_settings.dataplane_listens)
    if not listens:
        logging.warning(
            "Neither DATAPLANE_ADMIN_URL nor DATAPLANE_LISTENS is set; "
            "every listener will be reported as detached"
        )
    else:
        logging.info(
            "Using static data-plane listens: "
            + ", ".join(f"{listen.protocol}:{listen.port}" for listen in listens)
        )


@kopf.on.startup()
async def startup_handler(settings: kopf.OperatorSettings, **_) -> None:
    """
    Operator startup configuration.

    This handler runs once when the operator starts up and:
    - Tunes kopf watching and execution settings
    - Loads the Kubernetes configuration
    - Validates the data-plane listen configuration
    - Starts the metrics and health endpoint
    """
    logging.info("Starting Gateway Operator...")
    settings.watching.reconnect_backoff = 1.0
    settings.execution.max_workers = 20
    # The Gateway status schema has no room for kopf's progress records
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage(
        prefix="gateway-operator.konghq.com"
    )

    watched_namespaces = get_watched_namespaces()
    if watched_namespaces:
        logging.info(f"Watching namespaces: {', '.join(watched_namespaces)}")
    else:
        logging.info("Watching all namespaces (cluster-wide mode)")
    logging.info(f"Controller name: {operator_settings.controller_name}")

    # Load Kubernetes configuration if not already loaded
    try:
        config.load_incluster_config()
        logging.info("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        try:
            config.load_kube_config()
            logging.info("Loaded kubeconfig configuration")
        except config.ConfigException:
            logging.error("Failed to load Kubernetes configuration")
            raise

    check_listen_configuration()

    if not operator_settings.enable_metrics:
        logging.info("Metrics server disabled")
        return

    try:
        metrics_server = MetricsServer(
            port=operator_settings.metrics_port, host=operator_settings.metrics_host
        )
        await metrics_server.start()

        # OperatorSettings doesn't support custom attributes
        global _global_metrics_server
        _global_metrics_server = metrics_server

    except Exception as e:
        logging.error(f"Failed to start metrics server: {e}")
        # Don't fail operator startup if metrics server fails
        logging.warning("Continuing without metrics server")


@kopf.on.cleanup()
async def cleanup_handler(**_) -> None:
    """Stop the metrics server on shutdown."""
    logging.info("Shutting down Gateway Operator...")

    global _global_metrics_server
    if _global_metrics_server:
        try:
            await _global_metrics_server.stop()
        except Exception as e:
            logging.error(f"Error stopping metrics server: {e}")
        _global_metrics_server = None


@kopf.on.probe(id="controller")
async def controller_probe(**_) -> str:
    """Report the controller identity on the liveness endpoint."""
    return operator_settings.controller_name


def main() -> None:
    """
    Main entry point for the operator.

    This function:
    1. Configures logging
    2. Determines namespace scope
    3. Runs the kopf operator
    """
    configure_logging()

    watched_namespaces = get_watched_namespaces()

    try:
        if watched_namespaces:
            kopf.run(
                namespaces=watched_namespaces,
                liveness_endpoint="http://0.0.0.0:8080/healthz",
            )
        else:
            # Watch all namespaces (cluster-wide)
            kopf.run(
                clusterwide=True,
                liveness_endpoint="http://0.0.0.0:8080/healthz",
            )
    except KeyboardInterrupt:
        logging.info("Received shutdown signal")
        sys.exit(0)
    except Exception as e:
        logging.error(f"Operator failed with error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
