"""Tests for readiness evaluation and condition upserts."""

from datetime import timedelta

import pytest

from simpledb.controller.conditions import (
    find_condition,
    is_ready,
    needs_update,
    ready_condition,
    set_condition,
)
from simpledb.controller.errors import InvariantViolation
from simpledb.controller.workload import WorkloadStatus, build_desired_workload
from simpledb.crd.base import CRDCondition

from conftest import T0, make_simpledb

T1 = T0 + timedelta(minutes=5)


def workload_with(replicas, updated, ready, available):
    workload = build_desired_workload(make_simpledb(replicas=replicas))
    return workload.model_copy(
        update={
            "status": WorkloadStatus(
                updatedReplicas=updated, readyReplicas=ready, availableReplicas=available
            )
        }
    )


def condition(type_="Ready", status="True", reason="Available", message="Database is ready", at=None):
    return CRDCondition(
        type=type_, status=status, reason=reason, message=message, lastTransitionTime=at
    )


class TestIsReady:
    def test_all_counters_match(self):
        assert is_ready(workload_with(3, 3, 3, 3)) is True

    @pytest.mark.parametrize(
        "counters",
        [(2, 3, 3), (3, 2, 3), (3, 3, 2), (0, 0, 0), (4, 4, 4)],
    )
    def test_any_counter_off(self, counters):
        assert is_ready(workload_with(3, *counters)) is False


class TestReadyCondition:
    def test_ready(self):
        c = ready_condition(True)
        assert (c.type, c.status, c.reason, c.message) == (
            "Ready",
            "True",
            "Available",
            "Database is ready",
        )

    def test_not_ready(self):
        c = ready_condition(False)
        assert (c.type, c.status, c.reason, c.message) == (
            "Ready",
            "False",
            "Creating",
            "Database is being created",
        )


class TestFindCondition:
    def test_missing(self):
        assert find_condition([condition(type_="Other")], "Ready") is None

    def test_found(self):
        ready = condition()
        assert find_condition([condition(type_="Other"), ready], "Ready") is ready

    def test_duplicate_types_are_an_invariant_violation(self):
        with pytest.raises(InvariantViolation):
            find_condition([condition(), condition(status="False")], "Ready")


class TestNeedsUpdate:
    def test_absent_condition_needs_write(self):
        assert needs_update(None, ready_condition(True)) is True

    def test_same_status_and_reason(self):
        assert needs_update(condition(), ready_condition(True)) is False

    def test_message_only_difference_is_ignored(self):
        assert needs_update(condition(message="old text"), ready_condition(True)) is False

    def test_status_change(self):
        assert needs_update(condition(), ready_condition(False)) is True

    def test_reason_change(self):
        assert needs_update(condition(reason="Other"), ready_condition(True)) is True


class TestSetCondition:
    """Tests for set_condition upsert semantics."""

    def test_inserts_with_transition_time(self):
        result = set_condition([], ready_condition(False), T0)
        assert len(result) == 1
        assert result[0].lastTransitionTime == T0

    def test_appends_after_existing_types(self):
        other = condition(type_="Progressing", at=T0)
        result = set_condition([other], ready_condition(True), T1)
        assert [c.type for c in result] == ["Progressing", "Ready"]

    def test_overwrites_in_place_and_moves_timestamp_on_transition(self):
        other = condition(type_="Progressing", at=T0)
        existing = condition(status="False", reason="Creating", at=T0)
        result = set_condition([existing, other], ready_condition(True), T1)
        assert [c.type for c in result] == ["Ready", "Progressing"]
        assert result[0].status == "True"
        assert result[0].lastTransitionTime == T1

    def test_message_only_change_keeps_timestamp(self):
        existing = condition(message="old text", at=T0)
        result = set_condition([existing], ready_condition(True), T1)
        assert result[0].message == "Database is ready"
        assert result[0].lastTransitionTime == T0

    def test_does_not_mutate_input(self):
        existing = condition(status="False", reason="Creating", at=T0)
        conditions = [existing]
        set_condition(conditions, ready_condition(True), T1)
        assert conditions == [existing]
        assert existing.status == "False"
