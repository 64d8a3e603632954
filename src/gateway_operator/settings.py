"""Centralized operator settings using pydantic-settings.

This module provides a single source of truth for all operator configuration
loaded from environment variables. Uses pydantic for automatic validation,
type coercion, and documentation.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from gateway_operator.constants import DEFAULT_CONTROLLER_NAME


class Settings(BaseSettings):
    """Operator configuration loaded from environment variables.

    All settings have sensible defaults for production use. Override via
    environment variables as documented per field.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Controller identification
    controller_name: str = Field(
        default=DEFAULT_CONTROLLER_NAME,
        description="Controller name matched against GatewayClass.spec.controllerName",
        validation_alias="GATEWAY_CONTROLLER_NAME",
    )
    operator_namespace: str = Field(
        default="kong",
        description="Namespace where the operator is deployed",
        validation_alias="OPERATOR_NAMESPACE",
    )

    # Data plane
    publish_service: str = Field(
        default="",
        description="Default publish service for unmanaged Gateways (namespace/name)",
        validation_alias="PUBLISH_SERVICE",
    )
    dataplane_admin_url: str = Field(
        default="",
        description="Base URL of the data-plane admin API used to discover listens",
        validation_alias="DATAPLANE_ADMIN_URL",
    )
    dataplane_admin_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for data-plane admin API requests",
        validation_alias="DATAPLANE_ADMIN_TIMEOUT_SECONDS",
    )
    dataplane_listens: str = Field(
        default="",
        description="Static data-plane listens as PROTOCOL:port pairs, comma-separated "
        "(used when no admin URL is configured)",
        validation_alias="DATAPLANE_LISTENS",
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_logs: bool = Field(
        default=True,
        validation_alias="JSON_LOGS",
        description="Enable JSON formatted logging for structured log aggregation",
    )
    correlation_ids: bool = Field(
        default=True,
        validation_alias="CORRELATION_IDS",
        description="Enable correlation IDs in logs for request tracing",
    )

    # Namespace watching
    namespaces: str = Field(
        default="",
        validation_alias="GATEWAY_OPERATOR_NAMESPACES",
        description="Comma-separated list of namespaces to watch (empty = all namespaces)",
    )

    # Metrics
    enable_metrics: bool = Field(
        default=True,
        validation_alias="ENABLE_METRICS",
        description="Serve Prometheus metrics",
    )
    metrics_port: int = Field(
        default=8081,
        validation_alias="METRICS_PORT",
        description="Port for Prometheus metrics endpoint",
    )
    metrics_host: str = Field(
        default="0.0.0.0",
        validation_alias="METRICS_HOST",
        description="Host address to bind metrics server",
    )

    @property
    def watched_namespaces(self) -> list[str] | None:
        """Parse watched namespaces from comma-separated string.

        Returns:
            List of namespace names, or None to watch all namespaces
        """
        if self.namespaces:
            return [ns.strip() for ns in self.namespaces.split(",") if ns.strip()]
        return None


# Global settings instance - initialized once at module import
settings = Settings()
