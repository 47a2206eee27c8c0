"""
Tests for the persisted state document and its debounced store.
"""

import asyncio
import json

import pytest

from objid.core.persistence import AssignmentRecord, StateStore, UsagePattern
from objid.core.persistence.models import CURRENT_VERSION, HISTORY_LIMIT, migrate, needs_migration
from objid.core.polling import PollingConfig
from objid.core.ranges import Range


def read_document(store: StateStore) -> dict:
    return json.loads(store.path.read_text())


class TestLoad:
    def test_missing_file_gives_defaults(self, store):
        document = store.document
        assert document.version == CURRENT_VERSION
        assert document.workspaces == {}
        assert document.polling.enabled is False
        assert document.preferences.default_ranges == [Range(from_=50000, to=99999)]
        assert document.preferences.log_level == "info"

    def test_malformed_file_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{ not json")
        assert StateStore(path).document.workspaces == {}

    def test_non_object_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[]")
        assert StateStore(path).document.version == CURRENT_VERSION

    def test_round_trip_through_disk(self, store, workspace):
        store.save_workspace("/ws", workspace.get_projects(), active_app_id="abc")
        reloaded = StateStore(store.path)
        assert reloaded.get_active_app_id("/ws") == "abc"
        assert [a.name for a in reloaded.get_workspace("/ws").apps] == ["Alpha", "Beta", "Gamma"]


class TestMigration:
    def test_version_comparison(self):
        assert needs_migration({})
        assert needs_migration({"version": "0.9.0"})
        assert not needs_migration({"version": CURRENT_VERSION})

    def test_known_sections_merged(self, tmp_path):
        raw = {
            "version": "0.9.0",
            "workspaces": {"/ws": {"apps": [{"appId": "a", "name": "A"}], "activeAppId": "a"}},
            "preferences": {"logLevel": "debug"},
            "legacyThing": True,
        }
        path = tmp_path / "config.json"
        path.write_text(json.dumps(raw))

        document = StateStore(path).document

        assert document.version == CURRENT_VERSION
        assert document.workspaces["/ws"].active_app_id == "a"
        assert document.preferences.log_level == "debug"
        assert document.preferences.auto_sync is True
        assert "legacyThing" not in document.to_payload()

    def test_migrate_without_sections(self):
        assert migrate({"version": "0.1"}).workspaces == {}


class TestSaving:
    def test_immediate_save_without_loop(self, store):
        store.set_active_app_id("/ws", "abc")
        assert store.is_dirty is False
        assert read_document(store)["workspaces"]["/ws"]["activeAppId"] == "abc"

    def test_camel_case_keys_and_no_credentials(self, store, workspace):
        store.save_workspace("/ws", workspace.get_projects())
        text = store.path.read_text()
        document = json.loads(text)
        assert "lastUpdated" in document
        assert document["workspaces"]["/ws"]["apps"][0]["ranges"] == [{"from": 50000, "to": 50099}]
        assert "key-alpha" not in text
        assert "authKey" not in text

    def test_no_temp_files_left(self, store):
        store.save()
        assert [p.name for p in store.path.parent.iterdir()] == ["config.json"]

    @pytest.mark.asyncio
    async def test_debounced_inside_loop(self, store):
        store.save_preferences(log_level="debug")
        store.save_preferences(auto_sync=False)
        assert store.is_dirty is True
        assert not store.path.exists()

        await asyncio.sleep(0.05)

        assert store.is_dirty is False
        preferences = read_document(store)["preferences"]
        assert preferences["logLevel"] == "debug"
        assert preferences["autoSync"] is False

    @pytest.mark.asyncio
    async def test_flush_writes_pending(self, tmp_path):
        store = StateStore(tmp_path / "config.json", save_delay=60)
        store.save_polling_config(PollingConfig(enabled=True, interval=5000))
        store.flush()
        assert read_document(store)["polling"]["interval"] == 5000

    @pytest.mark.asyncio
    async def test_context_manager_flushes(self, tmp_path):
        with StateStore(tmp_path / "config.json", save_delay=60) as store:
            store.set_active_app_id("/ws", "abc")
            assert store.is_dirty
        assert read_document(store)["workspaces"]["/ws"]["activeAppId"] == "abc"


class TestPreferences:
    def test_camel_and_snake_keys(self, store):
        preferences = store.save_preferences(collisionChecking=False, suggest_alternatives=False)
        assert preferences.collision_checking is False
        assert preferences.suggest_alternatives is False

    def test_returns_copy(self, store):
        store.get_preferences().log_level = "error"
        assert store.get_preferences().log_level == "info"

    def test_ranges_accept_strings(self, store):
        preferences = store.save_preferences(defaultRanges=["70000..70099"])
        assert preferences.default_ranges == [Range(from_=70000, to=70099)]


class TestHistory:
    def test_newest_first_and_filtered(self, store):
        store.add_assignment_history(AssignmentRecord(timestamp=1, app_id="a", kind="table", ids=[1]))
        store.add_assignment_history(AssignmentRecord(timestamp=3, app_id="a", kind="page", ids=[2]))
        store.add_assignment_history(AssignmentRecord(timestamp=2, app_id="b", kind="table", ids=[3]))

        assert [r.ids for r in store.get_assignment_history()] == [[2], [3], [1]]
        assert [r.ids for r in store.get_assignment_history(app_id="a")] == [[2], [1]]
        assert [r.ids for r in store.get_assignment_history(kind="table", limit=1)] == [[3]]

    def test_object_type_alias(self, store):
        store.add_assignment_history(AssignmentRecord(app_id="a", kind="table", ids=[1]))
        assert read_document(store)["assignments"]["history"][0]["objectType"] == "table"

    def test_capped(self, tmp_path):
        store = StateStore(tmp_path / "config.json")
        for i in range(HISTORY_LIMIT + 5):
            store.document.assignments.history.append(
                AssignmentRecord(timestamp=i, app_id="a", kind="table", ids=[i])
            )
        store.add_assignment_history(AssignmentRecord(timestamp=9999, app_id="a", kind="table", ids=[0]))
        history = store.document.assignments.history
        assert len(history) == HISTORY_LIMIT
        assert history[0].timestamp == 6

    def test_records_are_frozen(self):
        record = AssignmentRecord(app_id="a", kind="table", ids=[1])
        with pytest.raises(ValueError):
            record.ids = [2]


class TestPatternsAndWorkspaces:
    def test_save_and_get_pattern(self, store):
        store.save_pattern("a", "table", UsagePattern(last_used_id=50010))
        assert store.get_pattern("a", "table").last_used_id == 50010
        assert store.get_pattern("a", "page") is None

    def test_clear_workspace_drops_its_patterns(self, store, workspace):
        projects = workspace.get_projects()
        store.save_workspace("/ws", projects)
        store.save_pattern(projects[0].app_id, "table", UsagePattern(last_used_id=1))
        store.save_pattern("unrelated", "table", UsagePattern(last_used_id=2))

        store.clear_workspace("/ws")

        assert store.get_workspace("/ws") is None
        assert store.get_pattern(projects[0].app_id, "table") is None
        assert store.get_pattern("unrelated", "table") is not None


class TestWholeDocument:
    def test_export_import(self, store, tmp_path):
        store.set_active_app_id("/ws", "abc")
        exported = store.export_config()

        other = StateStore(tmp_path / "other.json")
        assert other.import_config(exported) is True
        assert other.get_active_app_id("/ws") == "abc"
        assert (tmp_path / "other.json").exists()

    @pytest.mark.parametrize(
        "content",
        ["not json", "[]", json.dumps({"version": "1.0.0"}), json.dumps({"workspaces": {}})],
    )
    def test_import_rejects_invalid(self, store, content):
        store.set_active_app_id("/ws", "abc")
        assert store.import_config(content) is False
        assert store.get_active_app_id("/ws") == "abc"

    def test_import_migrates_old_version(self, store):
        assert store.import_config(json.dumps({"version": "0.5.0", "workspaces": {}})) is True
        assert store.document.version == CURRENT_VERSION

    def test_clear_all(self, store):
        store.set_active_app_id("/ws", "abc")
        store.clear_all()
        assert read_document(store)["workspaces"] == {}

    def test_statistics(self, store, workspace):
        store.save_workspace("/ws", workspace.get_projects())
        store.add_assignment_history(AssignmentRecord(app_id="a", kind="table", ids=[1]))
        store.save_pattern("a", "table", UsagePattern(last_used_id=1))

        stats = store.get_statistics()

        assert stats["workspaceCount"] == 1
        assert stats["appCount"] == 3
        assert stats["assignmentCount"] == 1
        assert stats["patternCount"] == 1
        assert stats["path"] == str(store.path)
