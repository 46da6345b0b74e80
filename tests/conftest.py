"""Pytest configuration and fixtures."""

from datetime import datetime, timezone

import pytest

from simpledb.controller.reconciler import WorkloadBackend
from simpledb.models.simpledb import SimpleDB

T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_simpledb(
    name="orders",
    namespace="default",
    replicas=3,
    image="postgres:14",
    db_name="orders",
    conditions=None,
    uid="0b4f6c1e-uid",
):
    """Build a SimpleDB the way the API server would return it."""
    body = {
        "apiVersion": "database.my.domain/v1",
        "kind": "SimpleDB",
        "metadata": {"name": name, "namespace": namespace, "uid": uid, "generation": 1},
        "spec": {"replicas": replicas, "image": image, "dbName": db_name},
    }
    if conditions is not None:
        body["status"] = {"conditions": conditions}
    return SimpleDB.from_body(body)


class FakeClock:
    def __init__(self, now=T0):
        self.now = now

    def __call__(self):
        return self.now


class FakeBackend(WorkloadBackend):
    """In-memory backend that records every write."""

    def __init__(self):
        self.dbs = {}
        self.workloads = {}
        self.writes = []
        self.errors = {}

    def add(self, db):
        self.dbs[db.ref] = db
        return db

    def _maybe_fail(self, operation):
        if operation in self.errors:
            raise self.errors[operation]

    def get_desired_state(self, ref):
        self._maybe_fail("get_desired_state")
        return self.dbs.get(ref)

    def get_workload(self, ref):
        self._maybe_fail("get_workload")
        return self.workloads.get(ref)

    def create_workload(self, workload):
        self._maybe_fail("create")
        self.writes.append(("create", workload))
        self.workloads[workload.ref] = workload

    def update_workload(self, workload):
        self._maybe_fail("update")
        self.writes.append(("update", workload))
        current = self.workloads[workload.ref]
        self.workloads[workload.ref] = current.model_copy(
            update={"replicas": workload.replicas}
        )

    def write_status(self, ref, conditions):
        self._maybe_fail("status")
        self.writes.append(("status", list(conditions)))
        db = self.dbs[ref]
        db.status = db.status.model_copy(update={"conditions": list(conditions)})

    def roll_out(self, ref):
        """Bring observed counters in line with the desired replica count."""
        workload = self.workloads[ref]
        n = workload.replicas
        self.workloads[ref] = workload.model_copy(
            update={
                "status": workload.status.model_copy(
                    update={"updatedReplicas": n, "readyReplicas": n, "availableReplicas": n}
                )
            }
        )


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def clock():
    return FakeClock()
