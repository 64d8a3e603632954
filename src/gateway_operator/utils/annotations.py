"""Gateway annotation parsing."""

from collections.abc import Mapping

from gateway_operator.constants import GATEWAY_UNMANAGED_ANNOTATION


def extract_unmanaged_gateway_mode(
    annotations: Mapping[str, str] | None,
) -> tuple[str, bool]:
    """
    Extract the unmanaged-mode annotation from a Gateway.

    The annotation value is either a publish service reference in
    'namespace/name' form or 'true' to use the operator's configured
    publish service.

    Args:
        annotations: Gateway annotations (may be None)

    Returns:
        Tuple of (annotation value, whether the annotation is present)
    """
    if not annotations or GATEWAY_UNMANAGED_ANNOTATION not in annotations:
        return "", False
    return annotations[GATEWAY_UNMANAGED_ANNOTATION], True
