"""Shared logging utilities for kopf handlers.

This module provides common logging functions used across all handler modules
to ensure consistent logging format and behavior.
"""

import logging
from typing import Any

from gateway_operator.constants import HANDLER_ENTRY_LOG_LEVEL
from gateway_operator.utils.objectmeta import ObjectInfo

logger = logging.getLogger(__name__)


def log_handler_entry(
    handler_type: str,
    info: ObjectInfo,
    extra: dict[str, Any] | None = None,
) -> None:
    """Log handler invocation at configurable level.

    The log level is controlled by the HANDLER_ENTRY_LOG_LEVEL environment
    variable (default: INFO). Set to DEBUG to reduce noise in production.

    Args:
        handler_type: Type of handler (create, update, delete, resume)
        info: Description of the object the handler was invoked for
        extra: Additional context to include in structured log
    """
    log_extra: dict[str, Any] = {
        "handler_type": handler_type,
        "handler_phase": "invoked",
        **info.log_fields(),
    }
    if extra:
        log_extra.update(extra)

    location = f"{info.namespace}/{info.name}" if info.namespace else info.name
    logger.log(
        HANDLER_ENTRY_LOG_LEVEL,
        f"Handler invoked: {handler_type} {info.group_version_kind} {location}",
        extra=log_extra,
    )
