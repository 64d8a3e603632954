"""
Watch event variants for GatewayClass handlers.

kopf delivers create, update, delete and resume notifications through
separate handlers. Each is wrapped in one of the variants below so that
predicates can match on the event kind explicitly and pull out the
object(s) it carries: one body for create/delete/generic, the old and new
bodies for update.
"""

from dataclasses import dataclass
from typing import Any, TypeAlias

ObjectBody: TypeAlias = dict[str, Any]


@dataclass(frozen=True)
class CreateEvent:
    """An object was created."""

    obj: ObjectBody


@dataclass(frozen=True)
class UpdateEvent:
    """An object changed; both revisions are carried."""

    old: ObjectBody
    new: ObjectBody


@dataclass(frozen=True)
class DeleteEvent:
    """An object was deleted."""

    obj: ObjectBody


@dataclass(frozen=True)
class GenericEvent:
    """Any other notification, such as a resume after operator restart."""

    obj: ObjectBody


WatchEvent: TypeAlias = CreateEvent | UpdateEvent | DeleteEvent | GenericEvent
