"""
Errors raised while reconciling Gateways.

Every error knows whether retrying can help and converts itself into the
matching kopf exception, so handlers only need to call ``as_kopf_error()``.
"""

import kopf


class OperatorError(Exception):
    """
    Base class for errors the reconciler maps onto kopf's retry semantics.

    Args:
        message: What went wrong
        retryable: Whether kopf should run the handler again
        delay: Seconds kopf waits before the retry
        user_action: Hint appended to the message for whoever reads the event
    """

    def __init__(
        self,
        message: str,
        retryable: bool = True,
        delay: int = 30,
        user_action: str | None = None,
    ):
        super().__init__(message)
        self.retryable = retryable
        self.delay = delay
        self.user_action = user_action

    def as_kopf_error(self) -> kopf.TemporaryError | kopf.PermanentError:
        if self.retryable:
            return kopf.TemporaryError(str(self), delay=self.delay)
        return kopf.PermanentError(str(self))

    def __str__(self) -> str:
        message = super().__str__()
        if self.user_action:
            return f"{message}\nAction required: {self.user_action}"
        return message


class ValidationError(OperatorError):
    """A Gateway, its annotations or a reference in them is malformed."""

    def __init__(
        self, message: str, field: str | None = None, user_action: str | None = None
    ):
        if field:
            message = f"Validation error in field '{field}': {message}"
        super().__init__(
            message,
            retryable=False,
            user_action=user_action or "Fix the Gateway and apply it again",
        )
        self.field = field


class ConfigurationError(OperatorError):
    """The operator's own settings cannot be used."""

    def __init__(
        self, message: str, retryable: bool = False, user_action: str | None = None
    ):
        super().__init__(
            message,
            retryable=retryable,
            user_action=user_action or "Review the operator environment variables",
        )


class TemporaryError(OperatorError):
    """Unexpected failure worth another attempt."""

    def __init__(self, message: str, delay: int = 30):
        super().__init__(
            message,
            delay=delay,
            user_action="Wait for the automatic retry or check the operator logs",
        )


class DataPlaneError(OperatorError):
    """The data-plane admin API could not report its listens."""

    def __init__(self, message: str, status_code: int | None = None):
        if status_code:
            message = f"HTTP {status_code}: {message}"
        super().__init__(
            f"Data-plane admin API error: {message}",
            delay=15,
            user_action="Check that the data plane is running and its admin API is reachable",
        )
        self.status_code = status_code


# Kubernetes API reasons that a retry will not fix
NON_RETRYABLE_REASONS = frozenset({"Forbidden", "Unauthorized", "Invalid"})


class KubernetesAPIError(OperatorError):
    """Reading Gateway resources or writing their status failed."""

    def __init__(self, message: str, reason: str | None = None, retryable: bool = True):
        if reason:
            message = f"{message} (reason: {reason})"
        super().__init__(
            f"Kubernetes API error: {message}",
            retryable=retryable and reason not in NON_RETRYABLE_REASONS,
            delay=10,
            user_action="Check RBAC permissions and cluster connectivity",
        )
        self.reason = reason
