"""Reconciliation core for SimpleDB resources."""

from .errors import BackendWriteFailure, InvariantViolation, ReconcileError
from .reconciler import (
    Create,
    Done,
    Failed,
    NoAction,
    Reconciler,
    Requeue,
    RequeueAfter,
    UpdateReplicas,
    WorkloadBackend,
    decide,
    evaluate_status,
)
from .workload import WorkloadDescriptor, build_desired_workload, labels_for

__all__ = [
    "BackendWriteFailure",
    "InvariantViolation",
    "ReconcileError",
    "Create",
    "Done",
    "Failed",
    "NoAction",
    "Reconciler",
    "Requeue",
    "RequeueAfter",
    "UpdateReplicas",
    "WorkloadBackend",
    "decide",
    "evaluate_status",
    "WorkloadDescriptor",
    "build_desired_workload",
    "labels_for",
]
