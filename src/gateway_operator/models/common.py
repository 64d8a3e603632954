"""
Common models shared across different resource types.

This module defines shared data structures used by multiple resource models,
such as namespaced references used as reconciliation requests.
"""

from pydantic import BaseModel, Field

from gateway_operator.constants import ERROR_INVALID_REFERENCE
from gateway_operator.errors import ValidationError


class NamespacedName(BaseModel):
    """Namespace and name identifying a namespaced resource."""

    model_config = {"populate_by_name": True, "frozen": True}

    namespace: str = Field("", description="Namespace of the resource")
    name: str = Field(..., description="Name of the resource")

    @classmethod
    def parse(cls, value: str, field: str | None = None) -> "NamespacedName":
        """
        Parse a 'namespace/name' reference.

        Args:
            value: Reference to parse
            field: Field the value came from, named in the error

        Raises:
            ValidationError: If the value is not exactly two non-empty parts
        """
        parts = value.split("/")
        if len(parts) != 2 or not all(parts):
            raise ValidationError(
                ERROR_INVALID_REFERENCE.format(value),
                field=field,
                user_action="Use the form 'namespace/name'",
            )
        return cls(namespace=parts[0], name=parts[1])

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"
