"""Reconciliation of a SimpleDB against its Deployment.

A pass reads the SimpleDB and its workload, decides on a single corrective
action, applies at most one write and reports an outcome to the driver. The
driver owns queueing, retries and backoff; nothing here sleeps or retries.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from typing import Optional

from .conditions import (
    READY,
    find_condition,
    is_ready,
    needs_update,
    ready_condition,
    set_condition,
)
from .errors import BackendWriteFailure, InvariantViolation
from .workload import WorkloadDescriptor, build_desired_workload

logger = logging.getLogger(__name__)


# Decisions


@dataclass(frozen=True)
class Create:
    workload: WorkloadDescriptor


@dataclass(frozen=True)
class UpdateReplicas:
    workload: WorkloadDescriptor


@dataclass(frozen=True)
class NoAction:
    pass


# Outcomes


@dataclass(frozen=True)
class Done:
    status_written: bool = False


@dataclass(frozen=True)
class Requeue:
    pass


@dataclass(frozen=True)
class RequeueAfter:
    delay: float


@dataclass(frozen=True)
class Failed:
    error: Exception


class WorkloadBackend(ABC):
    """Reads and writes SimpleDBs and their workloads.

    Getters return None when the object does not exist; any other failure
    is raised.
    """

    @abstractmethod
    def get_desired_state(self, ref):
        pass

    @abstractmethod
    def get_workload(self, ref):
        pass

    @abstractmethod
    def create_workload(self, workload):
        pass

    @abstractmethod
    def update_workload(self, workload):
        pass

    @abstractmethod
    def write_status(self, ref, conditions):
        pass


def utc_now():
    return datetime.now(timezone.utc).replace(microsecond=0)


def decide(db, current: Optional[WorkloadDescriptor]):
    """Pick the corrective action for ``db`` given its current workload.

    Only the replica count is reconciled. A missing workload is always
    created first, whatever the replica counts say.

    Raises:
        InvariantViolation: the declared replica count is below 1
    """
    if db.spec.replicas < 1:
        raise InvariantViolation(
            f"{db.ref} declares {db.spec.replicas} replicas, at least 1 is required"
        )

    if current is None:
        return Create(build_desired_workload(db))

    if current.replicas != db.spec.replicas:
        return UpdateReplicas(current.model_copy(update={"replicas": db.spec.replicas}))

    return NoAction()


def evaluate_status(db, workload, now):
    """Return the conditions to store for ``db``, or None if nothing changed."""
    condition = ready_condition(is_ready(workload))
    existing = find_condition(db.status.conditions, READY)
    if not needs_update(existing, condition):
        return None
    return set_condition(db.status.conditions, condition, now)


class Reconciler:
    """Runs reconciliation passes against a WorkloadBackend."""

    def __init__(self, backend: WorkloadBackend, clock=utc_now):
        self.backend = backend
        self.clock = clock

    def reconcile(self, ref):
        """Run one pass for the SimpleDB identified by ``ref``."""
        try:
            db = self.backend.get_desired_state(ref)
            if db is None:
                logger.info(f"SimpleDB {ref} not found, nothing to do")
                return Done()
            current = self.backend.get_workload(ref)
        except Exception as e:
            logger.error(f"Failed to read state for {ref}: {e}")
            return Failed(e)

        try:
            decision = decide(db, current)
        except InvariantViolation as e:
            logger.error(f"Refusing to reconcile {ref}: {e}")
            return Failed(e)

        if isinstance(decision, Create):
            logger.info(f"Creating Deployment {ref}")
            return self._write("create", ref, self.backend.create_workload, decision.workload)

        if isinstance(decision, UpdateReplicas):
            logger.info(
                f"Scaling Deployment {ref} from {current.replicas} "
                f"to {decision.workload.replicas} replicas"
            )
            return self._write("update", ref, self.backend.update_workload, decision.workload)

        try:
            conditions = evaluate_status(db, current, self.clock())
        except InvariantViolation as e:
            logger.error(f"Refusing to update status of {ref}: {e}")
            return Failed(e)

        if conditions is None:
            logger.debug(f"Status of {ref} unchanged, skipping write")
            return Done(status_written=False)

        logger.info(f"Updating status of SimpleDB {ref}")
        outcome = self._write("status write", ref, self.backend.write_status, ref, conditions)
        if isinstance(outcome, Failed):
            return outcome
        return Done(status_written=True)

    def _write(self, operation, ref, write, *args):
        """Apply a single backend write and ask to be requeued on success.

        Observed counters are stale right after a workload write, so the
        next pass evaluates readiness.
        """
        try:
            write(*args)
        except Exception as e:
            logger.error(f"Failed to {operation} for {ref}: {e}")
            return Failed(BackendWriteFailure(operation, ref, e))
        return Requeue()
