"""Readiness evaluation and status condition bookkeeping."""

from simpledb.crd.base import CRDCondition

from .errors import InvariantViolation


READY = "Ready"
REASON_AVAILABLE = "Available"
REASON_CREATING = "Creating"


def find_condition(conditions, condition_type):
    """Return the stored condition of ``condition_type``, or None.

    Raises:
        InvariantViolation: more than one condition has that type
    """
    matches = [c for c in conditions if c.type == condition_type]
    if len(matches) > 1:
        raise InvariantViolation(
            f"{len(matches)} conditions of type {condition_type!r} are stored"
        )
    return matches[0] if matches else None


def is_ready(workload) -> bool:
    """A workload is ready once every counter has caught up with the desired count."""
    desired = workload.replicas
    observed = workload.status
    return (
        observed.updatedReplicas == desired
        and observed.readyReplicas == desired
        and observed.availableReplicas == desired
    )


def ready_condition(ready: bool) -> CRDCondition:
    if ready:
        return CRDCondition(
            type=READY,
            status="True",
            reason=REASON_AVAILABLE,
            message="Database is ready",
        )
    return CRDCondition(
        type=READY,
        status="False",
        reason=REASON_CREATING,
        message="Database is being created",
    )


def needs_update(existing, condition) -> bool:
    """Whether ``condition`` differs from ``existing`` enough to be written.

    Only status and reason count; a new message alone is not a transition.
    """
    if existing is None:
        return True
    return existing.status != condition.status or existing.reason != condition.reason


def set_condition(conditions, condition, now):
    """Upsert ``condition`` by type and return the new list.

    Order of insertion is kept. ``lastTransitionTime`` moves to ``now`` only
    when the condition is new or its status or reason changed.
    """
    existing = find_condition(conditions, condition.type)
    if existing is None:
        return [*conditions, condition.model_copy(update={"lastTransitionTime": now})]

    transition_time = existing.lastTransitionTime
    if needs_update(existing, condition) or transition_time is None:
        transition_time = now

    updated = condition.model_copy(update={"lastTransitionTime": transition_time})
    return [updated if c.type == condition.type else c for c in conditions]
