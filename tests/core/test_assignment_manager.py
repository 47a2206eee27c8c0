"""
Tests for AssignmentManager: candidate walking, collision handling,
single merging commit, history and suggestions.
"""

import csv
import io
import json
from unittest.mock import AsyncMock, patch

import pytest

from objid.core.assignment import AssignmentManager, AssignmentOptions
from objid.core.backend import ConsumptionInfo, NetworkError, NextIdInfo
from objid.core.backend.errors import NOT_AUTHORIZED_MESSAGE
from objid.core.ranges import Range


@pytest.fixture
def lowest_free(backend):
    """get_next answers the lowest ID of the searched ranges."""

    async def get_next(request, commit=False):
        if not request.ranges:
            return NextIdInfo(available=False)
        return NextIdInfo(id=request.ranges[0].from_, available=True)

    backend.get_next.side_effect = get_next
    return backend


@pytest.fixture
def beta_consumed(backend):
    async def consumption(app_id, auth_key):
        if auth_key == "key-beta":
            return ConsumptionInfo.from_backend({"table": [50060]})
        return ConsumptionInfo()

    backend.get_consumption.side_effect = consumption
    return backend


@pytest.fixture
def manager(backend, detector, store):
    return AssignmentManager(backend, detector, store)


@pytest.fixture
def alpha(workspace):
    return workspace.get_project("Alpha")


class TestAssignIds:
    @pytest.mark.asyncio
    async def test_walks_forward_and_commits_once(self, manager, backend, lowest_free, alpha):
        result = await manager.assign_ids(alpha, AssignmentOptions(kind="table", count=3))

        assert result.success is True
        assert result.ids == [50000, 50001, 50002]
        assert result.message == "Assigned IDs: 50000, 50001, 50002"

        searched = [call.args[0].ranges[0].from_ for call in backend.get_next.await_args_list]
        assert searched == [50000, 50001, 50002]
        assert all(call.kwargs.get("commit", False) is False for call in backend.get_next.await_args_list)

        backend.sync_ids.assert_awaited_once()
        request = backend.sync_ids.await_args.args[0]
        assert request.ids == {"table": [50000, 50001, 50002]}
        assert request.merge is True
        assert request.auth_key == "key-alpha"

    @pytest.mark.asyncio
    async def test_explicit_ranges(self, manager, backend, lowest_free, alpha):
        options = AssignmentOptions(kind="page", ranges=[Range(from_=50090, to=50099)])
        result = await manager.assign_ids(alpha, options)
        assert result.ids == [50090]

    @pytest.mark.asyncio
    async def test_unauthorized(self, manager, backend, workspace):
        result = await manager.assign_ids(workspace.get_project("Gamma"), AssignmentOptions(kind="table"))
        assert result.success is False
        assert result.message == NOT_AUTHORIZED_MESSAGE
        backend.get_next.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_exhausted_ranges(self, manager, backend, alpha):
        backend.get_next.return_value = NextIdInfo(available=False)
        result = await manager.assign_ids(alpha, AssignmentOptions(kind="table", count=2))
        assert result.success is False
        assert result.message == "No IDs available in the specified ranges"
        backend.sync_ids.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_commit(self, manager, backend, lowest_free, alpha):
        backend.sync_ids.return_value = False
        result = await manager.assign_ids(alpha, AssignmentOptions(kind="table"))
        assert result.success is False
        assert result.message == "Failed to commit IDs 50000"
        assert manager.get_history() == []

    @pytest.mark.asyncio
    async def test_backend_error_becomes_result(self, manager, backend, alpha):
        backend.get_next.side_effect = NetworkError("Connection refused", code="ECONNREFUSED")
        result = await manager.assign_ids(alpha, AssignmentOptions(kind="table"))
        assert result.success is False
        assert result.message == "Assignment failed: Connection refused"

    @pytest.mark.asyncio
    async def test_listener_notified(self, manager, lowest_free, alpha):
        seen = []
        manager.on_assignment(seen.append)
        await manager.assign_ids(alpha, AssignmentOptions(kind="table"))
        assert [r.ids for r in seen] == [[50000]]


class TestCollisions:
    @pytest.mark.asyncio
    async def test_colliding_candidate_skipped(self, manager, backend, lowest_free, beta_consumed, alpha):
        options = AssignmentOptions(
            kind="table", ranges=[Range(from_=50060, to=50060)], check_collisions=True
        )
        result = await manager.assign_ids(alpha, options)

        assert result.success is False
        assert result.ids == []
        assert [(c.id, c.conflicting_projects) for c in result.collisions] == [(50060, ["Beta"])]
        assert result.message == "Collisions detected: ID 50060 conflicts with Beta"
        backend.sync_ids.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_alternatives_suggested(self, manager, backend, lowest_free, beta_consumed, alpha):
        options = AssignmentOptions(
            kind="table",
            ranges=[Range(from_=50060, to=50099)],
            check_collisions=True,
            suggest_alternatives=True,
        )
        result = await manager.assign_ids(alpha, options)

        assert result.success is True
        assert result.ids == [50060]
        assert result.alternatives == [50061, 50062, 50063, 50064, 50065]
        assert result.message == (
            "Assigned IDs: 50060. Collisions detected: ID 50060 conflicts with Beta. "
            "Alternative IDs available: 50061, 50062, 50063, 50064, 50065"
        )

    @pytest.mark.asyncio
    async def test_payload_shape(self, manager, lowest_free, beta_consumed, alpha):
        options = AssignmentOptions(kind="table", check_collisions=True)
        payload = (await manager.assign_ids(alpha, options)).to_payload()
        assert payload["objectType"] == "table"
        assert payload["appName"] == "Alpha"
        assert "collisions" not in payload


class TestHistory:
    @pytest.mark.asyncio
    async def test_recorded_in_session_and_store(self, manager, store, lowest_free, alpha):
        await manager.assign_ids(alpha, AssignmentOptions(kind="table", count=2, description="Setup"))

        [record] = manager.get_history(app_id=alpha.app_id)
        assert record.ids == [50000, 50001]
        assert record.description == "Setup"
        assert record.app_name == "Alpha"
        assert [r.ids for r in store.get_assignment_history(app_id=alpha.app_id)] == [[50000, 50001]]
        assert store.get_pattern(alpha.app_id, "table").last_used_id == 50001

    def test_session_history_capped(self, manager, alpha):
        for i in range(105):
            manager.record_assignment(alpha, "table", [i], None)
        history = manager.get_history()
        assert len(history) == 100
        assert min(r.ids[0] for r in history) == 5

    def test_pending_assignments(self, manager, workspace):
        alpha = workspace.get_project("Alpha")
        beta = workspace.get_project("Beta")
        manager.record_assignment(alpha, "table", [1], None)
        manager.record_assignment(alpha, "table", [2], None)
        manager.record_assignment(beta, "page", [3], None)

        assert manager.get_pending_assignments(alpha.app_id) == {f"{alpha.app_id}-table": [1, 2]}
        manager.clear_pending_assignments(alpha.app_id)
        assert list(manager.get_pending_assignments()) == [f"{beta.app_id}-page"]
        manager.clear_pending_assignments()
        assert manager.get_pending_assignments() == {}

    def test_export_json(self, manager, alpha):
        manager.record_assignment(alpha, "table", [50000], "First")
        [entry] = json.loads(manager.export_history("json"))
        assert entry["objectType"] == "table"
        assert entry["appId"] == alpha.app_id

    def test_export_csv(self, manager, alpha):
        manager.record_assignment(alpha, "table", [50000, 50001], None)
        rows = list(csv.reader(io.StringIO(manager.export_history("csv"))))
        assert rows[0] == ["Timestamp", "App", "Object Type", "IDs", "Description"]
        assert rows[1][1:] == ["Alpha", "table", "50000;50001", ""]

    def test_export_unknown_format(self, manager):
        with pytest.raises(ValueError):
            manager.export_history("xml")


class TestBatchAndRanges:
    @pytest.mark.asyncio
    async def test_batch_forces_collision_checks(self, manager, lowest_free, alpha):
        requests = [AssignmentOptions(kind="table"), AssignmentOptions(kind="page", count=2)]
        with patch("objid.core.assignment.manager.asyncio.sleep", new_callable=AsyncMock) as sleep:
            with patch.object(manager, "assign_ids", wraps=manager.assign_ids) as assign:
                results = await manager.batch_assign(alpha, requests)

        assert [r.ids for r in results] == [[50000], [50000, 50001]]
        assert all(call.args[1].check_collisions for call in assign.await_args_list)
        assert all(call.args[1].suggest_alternatives for call in assign.await_args_list)
        sleep.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_reserve_range(self, manager, backend, alpha):
        reservation = await manager.reserve_range(alpha, "table", 50010, 50014)

        assert reservation.count == 5
        assert reservation.to_payload()["range"] == {"from": 50010, "to": 50014}
        request = backend.sync_ids.await_args.args[0]
        assert request.ids == {"table": [50010, 50011, 50012, 50013, 50014]}
        assert request.merge is True
        assert manager.get_history()[0].description == "Reserved range 50010-50014"

    @pytest.mark.asyncio
    async def test_reserve_inverted_range(self, manager, alpha):
        with pytest.raises(ValueError):
            await manager.reserve_range(alpha, "table", 50014, 50010)

    @pytest.mark.asyncio
    async def test_reserve_unauthorized_or_failed(self, manager, backend, workspace, alpha):
        assert await manager.reserve_range(workspace.get_project("Gamma"), "table", 1, 2) is None
        backend.sync_ids.return_value = False
        assert await manager.reserve_range(alpha, "table", 1, 2) is None


class TestSuggestions:
    @pytest.mark.asyncio
    async def test_full_suggestions(self, manager, backend, lowest_free, alpha):
        backend.get_consumption.return_value = ConsumptionInfo.from_backend(
            {"table": [50000, 50001, 50002]}
        )
        manager.record_assignment(alpha, "table", [50002], None)

        suggestions = await manager.get_suggestions(alpha, "table")

        assert suggestions.next_available == 50000
        assert [(r.from_, r.to) for r in suggestions.suggested_ranges] == [(50003, 50099)]
        assert suggestions.recently_used == [50002]
        assert suggestions.patterns[0].pattern == "Sequential"

    @pytest.mark.asyncio
    async def test_unauthorized_only_recent(self, manager, backend, workspace):
        gamma = workspace.get_project("Gamma")
        manager.record_assignment(gamma, "table", [60000], None)
        suggestions = await manager.get_suggestions(gamma, "table")
        assert suggestions.next_available is None
        assert suggestions.recently_used == [60000]
        backend.get_next.assert_not_awaited()
