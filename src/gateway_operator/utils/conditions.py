"""
Status condition bookkeeping.

Conditions are computed as a mapping keyed by condition type, so at most one
condition of each type exists, and only converted to the ordered list stored
on the resource at the boundary. The Gateway-level list is capped by the API
server, so it is pruned before every write.
"""

from collections.abc import Iterable
from datetime import UTC, datetime

from gateway_operator.constants import MAX_GATEWAY_CONDITIONS
from gateway_operator.models.gateway import Condition, Gateway


def format_transition_time(moment: datetime | None = None) -> str:
    """Format a timestamp the way metav1.Time serializes (RFC 3339, seconds)."""
    moment = moment or datetime.now(UTC)
    return moment.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def find_condition(
    conditions: Iterable[Condition], condition_type: str
) -> Condition | None:
    """Return the first condition of the given type, if any."""
    for condition in conditions:
        if condition.type == condition_type:
            return condition
    return None


def _carry_transition_time(
    condition: Condition, previous: Condition | None
) -> Condition:
    # Only a change of status or reason counts as a transition
    if (
        previous is not None
        and previous.last_transition_time
        and previous.status == condition.status
        and previous.reason == condition.reason
    ):
        return condition.model_copy(
            update={"last_transition_time": previous.last_transition_time}
        )
    return condition


def set_condition(
    conditions: list[Condition], condition: Condition
) -> list[Condition]:
    """
    Add or replace the condition of the same type.

    The replacement is appended at the end so the list keeps the order in
    which conditions were last written, which is the order pruning relies on.

    Args:
        conditions: Existing conditions
        condition: Condition to set

    Returns:
        New condition list
    """
    previous = find_condition(conditions, condition.type)
    filtered = [c for c in conditions if c.type != condition.type]
    filtered.append(_carry_transition_time(condition, previous))
    return filtered


def prune_gateway_status_conditions(gateway: Gateway) -> Gateway:
    """
    Drop the oldest Gateway conditions beyond the API maximum.

    Keeps the most recently appended conditions in their original order.
    A Gateway already within the limit is returned untouched.
    """
    conditions = gateway.status.conditions
    if len(conditions) > MAX_GATEWAY_CONDITIONS:
        gateway.status.conditions = conditions[len(conditions) - MAX_GATEWAY_CONDITIONS :]
    return gateway


class ConditionSet:
    """Conditions for one object, keyed by type, for a single computation."""

    def __init__(
        self,
        generation: int,
        now: str | None = None,
        previous: Iterable[Condition] = (),
    ):
        """
        Args:
            generation: Generation every condition is observed against
            now: Transition time for conditions that changed
            previous: Conditions from the prior status, for transition times
        """
        self.generation = generation
        self.now = now or format_transition_time()
        self._previous = {c.type: c for c in previous}
        self._conditions: dict[str, Condition] = {}

    def set(
        self, condition_type: str, status: str, reason: str, message: str = ""
    ) -> Condition:
        condition = _carry_transition_time(
            Condition(
                type=condition_type,
                status=status,
                reason=reason,
                message=message,
                observed_generation=self.generation,
                last_transition_time=self.now,
            ),
            self._previous.get(condition_type),
        )
        self._conditions[condition_type] = condition
        return condition

    def get(self, condition_type: str) -> Condition | None:
        return self._conditions.get(condition_type)

    def has(self, condition_type: str, status: str) -> bool:
        condition = self._conditions.get(condition_type)
        return condition is not None and condition.status == status

    def __contains__(self, condition_type: str) -> bool:
        return condition_type in self._conditions

    def __len__(self) -> int:
        return len(self._conditions)

    def to_list(self) -> list[Condition]:
        return list(self._conditions.values())
