"""Kopf handlers driving SimpleDB reconciliation."""

from collections import defaultdict
import logging
import threading
from typing import Dict

import kopf

from simpledb import config
from simpledb.controller.errors import InvariantViolation
from simpledb.controller.reconciler import Done, Failed, Reconciler, Requeue, RequeueAfter
from simpledb.controller.workload import APP_LABEL
from simpledb.models.simpledb import GROUP, PLURAL, VERSION, NamespacedName
from simpledb.services.kubernetes_backend import KubernetesBackend

logger = logging.getLogger(__name__)

_reconciler = None

# One pass at a time per SimpleDB, across change handlers, timers and
# Deployment events
reconciliation_locks: Dict[NamespacedName, threading.Lock] = defaultdict(threading.Lock)
_locks_guard = threading.Lock()


def get_reconciler():
    """Get the shared Reconciler, creating it on first use."""
    global _reconciler
    if _reconciler is None:
        _reconciler = Reconciler(KubernetesBackend())
    return _reconciler


def run_pass(ref):
    """Run one reconciliation pass for ``ref`` while holding its lock."""
    with _locks_guard:
        lock = reconciliation_locks[ref]
    with lock:
        return get_reconciler().reconcile(ref)


def apply_outcome(ref, outcome):
    """Translate a reconciliation outcome into kopf's retry semantics.

    Requeue and RequeueAfter become a TemporaryError with the matching delay;
    backend failures are left to kopf's backoff and invariant violations are
    not retried.
    """
    if isinstance(outcome, Done):
        return

    if isinstance(outcome, Requeue):
        raise kopf.TemporaryError(f"{ref} changed, requeueing", delay=config.requeue_delay())

    if isinstance(outcome, RequeueAfter):
        raise kopf.TemporaryError(f"{ref} requeued", delay=outcome.delay)

    if isinstance(outcome, Failed):
        if isinstance(outcome.error, InvariantViolation):
            raise kopf.PermanentError(str(outcome.error))
        raise kopf.TemporaryError(f"Reconciliation of {ref} failed: {outcome.error}")

    raise TypeError(f"Unknown reconciliation outcome: {outcome!r}")


def reconcile(name, namespace):
    """Run one reconciliation pass and hand the outcome to kopf."""
    ref = NamespacedName(namespace, name)
    outcome = run_pass(ref)
    logger.debug(f"Reconciled {ref}: {outcome}")
    apply_outcome(ref, outcome)


@kopf.on.resume(GROUP, VERSION, PLURAL)
@kopf.on.create(GROUP, VERSION, PLURAL)
@kopf.on.update(GROUP, VERSION, PLURAL)
def reconcile_simpledb(name, namespace, **kwargs):
    reconcile(name, namespace)


@kopf.timer(GROUP, VERSION, PLURAL, interval=config.resync_interval())
def resync_simpledb(name, namespace, **kwargs):
    """Periodic pass so drift is corrected even when an event is missed."""
    reconcile(name, namespace)


@kopf.on.event("apps", "v1", "deployments", labels={"app": APP_LABEL})
def on_deployment_event(body, **kwargs):
    """Reconcile the SimpleDB that owns a changed Deployment.

    Event handlers are not retried by kopf, so the outcome is only logged;
    the SimpleDB's own handlers and the resync timer pick up any requeue.
    """
    metadata = body.get("metadata", {})
    owner = metadata.get("labels", {}).get("owner")
    if not owner:
        return

    ref = NamespacedName(metadata.get("namespace"), owner)
    outcome = run_pass(ref)
    if isinstance(outcome, Failed):
        logger.error(f"Reconciliation of {ref} after Deployment change failed: {outcome.error}")
    else:
        logger.debug(f"Reconciled {ref} after Deployment change: {outcome}")
