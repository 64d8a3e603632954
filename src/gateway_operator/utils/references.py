"""Parsing of publish service references."""

from gateway_operator.models.common import NamespacedName


def get_ref_from_publish_service(publish_service: str) -> NamespacedName:
    """
    Split a publish service reference into namespace and name.

    Args:
        publish_service: Reference in 'namespace/name' form

    Returns:
        Parsed reference

    Raises:
        ValidationError: If the value is not exactly 'namespace/name'
    """
    return NamespacedName.parse(publish_service, field="publishService")
