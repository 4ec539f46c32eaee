"""Tests for activities, notes and customer equipment on a project.

Covers:
- max-plus-one ids within each project collection
- pre-captured labels in delete log entries
- note authorship, modification history and always-logged note updates
- note-tag taxonomy operations
"""

import pytest

from jobsite_crm.domain.enums import ChangeAction, StatusColor
from jobsite_crm.domain.schemas import NoteChange, NoteUpdate
from jobsite_crm.services.entity_store import derive_tag_id

USER = 7
OTHER_USER = 9


@pytest.fixture
def project(store, make_project_data):
    return store.create_project(make_project_data(), acting_user_id=USER)


def _activity(kind="Site Visit", description="Walked the site"):
    return {"assigneeId": 1, "activityType": kind, "date": "2026-03-01T10:00:00Z", "description": description}


def _equipment(**overrides):
    data = {"companyId": "ACME", "equipmentType": "Excavator", "make": "CAT", "model": "320", "year": 2019}
    data.update(overrides)
    return data


class TestActivities:
    def test_ids_are_per_project(self, store, project, make_project_data):
        other = store.create_project(make_project_data("Other"), acting_user_id=USER)
        a1 = store.add_activity(project.id, _activity(), acting_user_id=USER)
        a2 = store.add_activity(project.id, _activity("Phone Call"), acting_user_id=USER)
        b1 = store.add_activity(other.id, _activity(), acting_user_id=USER)

        assert (a1.id, a2.id, b1.id) == (1, 2, 1)

    def test_add_logs_activity_type(self, store, project):
        store.add_activity(project.id, _activity("Demo"), acting_user_id=USER)
        entry = store.get_change_log(project.id)[-1]
        assert entry.action == ChangeAction.ACTIVITY_ADDED
        assert "Demo" in entry.summary

    def test_ids_never_repeat_after_middle_delete(self, store, project):
        for _ in range(3):
            store.add_activity(project.id, _activity(), acting_user_id=USER)
        store.delete_activity(project.id, 2, acting_user_id=USER)
        added = store.add_activity(project.id, _activity(), acting_user_id=USER)

        ids = [a.id for a in store.get_project(project.id).activities]
        assert ids == [1, 3, 4]
        assert added.id == 4

    def test_delete_summary_uses_captured_label(self, store, project):
        store.add_activity(project.id, _activity("Meeting"), acting_user_id=USER)
        removed = store.delete_activity(project.id, 1, acting_user_id=USER)

        assert removed.activity_type == "Meeting"
        entry = store.get_change_log(project.id)[-1]
        assert entry.action == ChangeAction.ACTIVITY_DELETED
        assert "Meeting" in entry.summary
        assert entry.details.entity_id == 1

    def test_update_is_diff_gated(self, store, project):
        store.add_activity(project.id, _activity(), acting_user_id=USER)
        count = len(store.change_log)

        store.update_activity(project.id, 1, {"description": "Walked the site"}, acting_user_id=USER)
        assert len(store.change_log) == count

        updated = store.update_activity(project.id, 1, {"description": "Second visit"}, acting_user_id=USER)
        assert updated.description == "Second visit"
        assert store.get_change_log(project.id)[-1].action == ChangeAction.ACTIVITY_UPDATED

    def test_deleting_twice_records_once(self, store, project):
        store.add_activity(project.id, _activity(), acting_user_id=USER)
        store.delete_activity(project.id, 1, acting_user_id=USER)
        count = len(store.change_log)

        assert store.delete_activity(project.id, 1, acting_user_id=USER) is None
        assert len(store.change_log) == count

    def test_incomplete_activity_is_accepted(self, store, project):
        added = store.add_activity(project.id, {"description": ""}, acting_user_id=USER)
        assert added.activity_type == "Other"


class TestNotes:
    def test_author_is_acting_user(self, store, project, clock):
        note = store.add_note(project.id, {"content": "Initial", "tagIds": ["SAFETY"]}, acting_user_id=OTHER_USER)

        assert note.id == 1
        assert note.created_by_id == OTHER_USER
        assert note.created_at == clock.current
        assert note.modification_history == []
        assert store.get_change_log(project.id)[-1].changed_by_id == OTHER_USER

    def test_content_only_update(self, store, project):
        store.add_note(project.id, {"content": "Initial", "tagIds": ["SAFETY"]}, acting_user_id=USER)

        updated = store.update_note(project.id, 1, {"content": "Revised", "tagIds": ["SAFETY"]}, acting_user_id=USER)

        [mod] = updated.modification_history
        assert "Content updated" in mod.summary
        assert "Tags changed" not in mod.summary
        assert mod.previous_content == "Initial"
        assert mod.previous_tag_ids is None

    def test_tags_only_update(self, store, project):
        store.add_note(project.id, {"content": "Initial", "tagIds": ["SAFETY"]}, acting_user_id=USER)
        updated = store.update_note(project.id, 1, NoteUpdate(tag_ids=["SAFETY", "PRICING"]), acting_user_id=USER)

        [mod] = updated.modification_history
        assert mod.summary == "Tags changed"
        assert mod.previous_tag_ids == ["SAFETY"]
        assert mod.previous_content is None
        assert updated.content == "Initial"

    def test_attachment_change_is_reported(self, store, project):
        store.add_note(project.id, {"content": "Photos"}, acting_user_id=USER)
        updated = store.update_note(
            project.id, 1,
            {"attachments": [{"id": 1, "fileName": "site.jpg", "fileSize": 1024}]},
            acting_user_id=USER,
        )
        assert updated.modification_history[0].summary == "Attachments changed"

    def test_history_accumulates_with_previous_state(self, store, project, clock):
        store.add_note(project.id, {"content": "v0"}, acting_user_id=USER)
        for k in range(1, 4):
            clock.tick()
            store.update_note(project.id, 1, {"content": f"v{k}"}, acting_user_id=USER)

        note = store.get_project(project.id).notes[0]
        assert len(note.modification_history) == 3
        assert [m.previous_content for m in note.modification_history] == ["v0", "v1", "v2"]
        assert note.last_modified_at == clock.current

    def test_noop_update_still_logs(self, store, project):
        store.add_note(project.id, {"content": "Same"}, acting_user_id=USER)
        count = len(store.change_log)

        updated = store.update_note(project.id, 1, {"content": "Same"}, acting_user_id=OTHER_USER)

        assert updated.modification_history[0].summary == "Note updated"
        assert updated.last_modified_by_id == OTHER_USER
        assert updated.created_by_id == USER
        assert len(store.change_log) == count + 1
        entry = store.get_change_log(project.id)[-1]
        assert entry.action == ChangeAction.NOTE_UPDATED
        assert isinstance(entry.details, NoteChange)
        assert entry.details.note_id == 1

    def test_delete_note(self, store, project):
        store.add_note(project.id, {"content": "Temporary remark"}, acting_user_id=USER)
        removed = store.delete_note(project.id, 1, acting_user_id=USER)

        assert removed.content == "Temporary remark"
        assert store.get_project(project.id).notes == []
        entry = store.get_change_log(project.id)[-1]
        assert entry.action == ChangeAction.NOTE_DELETED
        assert "Temporary remark" in entry.summary

    def test_missing_note_is_a_no_op(self, store, project):
        count = len(store.change_log)
        assert store.update_note(project.id, 5, {"content": "x"}, acting_user_id=USER) is None
        assert store.delete_note(project.id, 5, acting_user_id=USER) is None
        assert len(store.change_log) == count


class TestCustomerEquipment:
    def test_add_update_delete(self, store, project):
        added = store.add_customer_equipment(project.id, _equipment(), acting_user_id=USER)
        assert added.id == 1
        assert "2019 CAT 320" in store.get_change_log(project.id)[-1].summary

        updated = store.update_customer_equipment(project.id, 1, {"hours": 5400}, acting_user_id=USER)
        assert updated.hours == 5400
        assert store.get_change_log(project.id)[-1].action == ChangeAction.EQUIPMENT_UPDATED

        removed = store.delete_customer_equipment(project.id, 1, acting_user_id=USER)
        assert removed.model == "320"
        entry = store.get_change_log(project.id)[-1]
        assert entry.action == ChangeAction.EQUIPMENT_DELETED
        assert "CAT 320" in entry.summary

    def test_ids_increase_after_delete(self, store, project):
        for _ in range(2):
            store.add_customer_equipment(project.id, _equipment(), acting_user_id=USER)
        store.delete_customer_equipment(project.id, 1, acting_user_id=USER)
        added = store.add_customer_equipment(project.id, _equipment(make="Deere"), acting_user_id=USER)
        assert added.id == 3

    def test_unchanged_update_records_nothing(self, store, project):
        store.add_customer_equipment(project.id, _equipment(), acting_user_id=USER)
        count = len(store.change_log)
        store.update_customer_equipment(project.id, 1, {"make": "CAT"}, acting_user_id=USER)
        assert len(store.change_log) == count


class TestNoteTags:
    @pytest.mark.parametrize("label,expected", [
        ("Safety", "SAFETY"),
        ("Follow up", "FOLLOW_UP"),
        ("  site / access!! ", "SITE_ACCESS"),
        ("Q3 pricing", "Q3_PRICING"),
    ])
    def test_derive_tag_id(self, label, expected):
        assert derive_tag_id(label) == expected

    def test_add_tag_appends_with_next_display_order(self, store):
        tag = store.add_note_tag("Site Access", StatusColor.VIOLET)

        assert tag.id == "SITE_ACCESS"
        assert tag.display_order == 6
        assert tag.color == "violet"
        assert store.note_tags()[-1].id == "SITE_ACCESS"

    def test_duplicate_derived_id_is_ignored(self, store):
        assert store.add_note_tag("safety") is None
        assert len(store.note_tags()) == 5

    def test_tag_changes_are_not_audited(self, store):
        store.add_note_tag("Permits")
        store.update_note_tag("PERMITS", color=StatusColor.ROSE)
        store.delete_note_tag("PERMITS")
        assert len(store.change_log) == 0

    def test_update_keeps_id(self, store):
        tag = store.update_note_tag("SAFETY", label="Site Safety")
        assert (tag.id, tag.label) == ("SAFETY", "Site Safety")

    def test_delete_leaves_note_references(self, store, project):
        store.add_note(project.id, {"content": "x", "tagIds": ["PRICING"]}, acting_user_id=USER)
        store.delete_note_tag("PRICING")

        assert "PRICING" not in [t.id for t in store.note_tags()]
        assert store.get_project(project.id).notes[0].tag_ids == ["PRICING"]

    def test_reorder(self, store):
        tags = store.reorder_note_tags(["GENERAL", "SAFETY", "UNKNOWN", "GENERAL"])

        assert [t.id for t in tags] == ["GENERAL", "SAFETY", "FOLLOW_UP", "PRICING", "EQUIPMENT"]
        assert [t.display_order for t in tags] == [1, 2, 3, 4, 5]
