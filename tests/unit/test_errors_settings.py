"""Unit tests for the error hierarchy and operator settings."""

import kopf
import pytest

from gateway_operator.constants import DEFAULT_CONTROLLER_NAME
from gateway_operator.errors import (
    ConfigurationError,
    DataPlaneError,
    KubernetesAPIError,
    TemporaryError,
    ValidationError,
)
from gateway_operator.settings import Settings


class TestErrors:
    """Tests for error categorization and kopf mapping."""

    def test_validation_error_is_permanent(self):
        error = ValidationError("bad value", field="publishService")

        assert error.field == "publishService"
        assert "publishService" in str(error)
        assert "Action required" in str(error)
        assert isinstance(error.as_kopf_error(), kopf.PermanentError)

    def test_temporary_error_delay(self):
        kopf_error = TemporaryError("later", delay=5).as_kopf_error()

        assert isinstance(kopf_error, kopf.TemporaryError)
        assert kopf_error.delay == 5

    @pytest.mark.parametrize(
        ("reason", "retryable"),
        [("Forbidden", False), ("Unauthorized", False), ("Invalid", False), ("Conflict", True)],
    )
    def test_kubernetes_reasons(self, reason, retryable):
        assert KubernetesAPIError("failed", reason=reason).retryable is retryable

    def test_kubernetes_error_mapping(self):
        error = KubernetesAPIError("patch failed", reason="Forbidden", retryable=True)

        assert error.reason == "Forbidden"
        assert str(error).startswith("Kubernetes API error: patch failed (reason: Forbidden)")
        assert isinstance(error.as_kopf_error(), kopf.PermanentError)

        retried = KubernetesAPIError("read failed", reason="ServiceUnavailable").as_kopf_error()
        assert isinstance(retried, kopf.TemporaryError)
        assert retried.delay == 10

    def test_dataplane_error(self):
        error = DataPlaneError("unreachable", status_code=502)

        assert error.retryable
        assert error.delay == 15
        assert str(error).startswith("Data-plane admin API error: HTTP 502: unreachable")

    def test_configuration_error_not_retryable(self):
        assert not ConfigurationError("bad listens").retryable


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch):
        for var in ("GATEWAY_CONTROLLER_NAME", "GATEWAY_OPERATOR_NAMESPACES", "PUBLISH_SERVICE"):
            monkeypatch.delenv(var, raising=False)

        settings = Settings(_env_file=None)

        assert settings.controller_name == DEFAULT_CONTROLLER_NAME
        assert settings.watched_namespaces is None
        assert settings.metrics_port == 8081

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("GATEWAY_CONTROLLER_NAME", "example.com/gateway")
        monkeypatch.setenv("GATEWAY_OPERATOR_NAMESPACES", "edge, ,internal")
        monkeypatch.setenv("PUBLISH_SERVICE", "kong/kong-proxy")
        monkeypatch.setenv("DATAPLANE_LISTENS", "HTTP:80")

        settings = Settings(_env_file=None)

        assert settings.controller_name == "example.com/gateway"
        assert settings.watched_namespaces == ["edge", "internal"]
        assert settings.publish_service == "kong/kong-proxy"
        assert settings.dataplane_listens == "HTTP:80"
