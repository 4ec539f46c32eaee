"""Tests for preference persistence.

Covers:
- defaults when nothing has been stored
- save/load of filters, note tags and status colors
- unreadable stored values falling back to defaults without raising
- independent restore of each slice into a Workspace
"""

from jobsite_crm.domain.enums import StatusColor
from jobsite_crm.domain.models import Preference
from jobsite_crm.domain.schemas import Filters, NoteTag
from jobsite_crm.services.preferences import (
    DEFAULT_NOTE_TAGS,
    FILTERS_KEY,
    NOTE_TAGS_KEY,
    STATUS_COLORS_KEY,
    PreferenceService,
    default_status_colors,
)


async def _store_raw(db_session, key, value):
    db_session.add(Preference(key=key, value=value))
    await db_session.commit()


class TestDefaults:
    async def test_empty_table_yields_defaults(self, db_session):
        prefs = PreferenceService(db_session)

        assert await prefs.load_filters() == Filters()
        assert [t.id for t in await prefs.load_note_tags()] == [t.id for t in DEFAULT_NOTE_TAGS]
        assert await prefs.load_status_colors() == default_status_colors()

    async def test_hide_completed_defaults_on(self, db_session):
        filters = await PreferenceService(db_session).load_filters()
        assert filters.hide_completed is True


class TestRoundTrip:
    async def test_filters(self, db_session):
        prefs = PreferenceService(db_session)
        await prefs.save_filters(Filters(sales_rep_id="2", show_behind_par=True))
        await prefs.save_filters(Filters(sales_rep_id="3"))

        loaded = await prefs.load_filters()
        assert loaded.sales_rep_id == "3"
        assert loaded.show_behind_par is False

    async def test_filters_stored_as_camel_case(self, db_session):
        await PreferenceService(db_session).save_filters(Filters(show_behind_par=True))
        row = await db_session.get(Preference, FILTERS_KEY)
        assert '"showBehindPar":true' in row.value

    async def test_note_tags(self, db_session):
        prefs = PreferenceService(db_session)
        tags = [NoteTag(id="PERMITS", label="Permits", display_order=1, color=StatusColor.VIOLET.value)]
        await prefs.save_note_tags(tags)

        assert await prefs.load_note_tags() == tags

    async def test_status_colors(self, db_session):
        prefs = PreferenceService(db_session)
        await prefs.save_status_colors({"Bidding": StatusColor.VIOLET})

        assert await prefs.load_status_colors() == {"Bidding": StatusColor.VIOLET}


class TestCorruptValues:
    async def test_invalid_json_falls_back(self, db_session):
        await _store_raw(db_session, FILTERS_KEY, "{not json")
        assert await PreferenceService(db_session).load_filters() == Filters()

    async def test_wrong_shape_falls_back(self, db_session):
        await _store_raw(db_session, NOTE_TAGS_KEY, '{"id": "SAFETY"}')
        tags = await PreferenceService(db_session).load_note_tags()
        assert len(tags) == len(DEFAULT_NOTE_TAGS)

    async def test_unknown_color_falls_back(self, db_session):
        await _store_raw(db_session, STATUS_COLORS_KEY, '{"Active": "chartreuse"}')
        assert await PreferenceService(db_session).load_status_colors() == default_status_colors()


class TestWorkspaceRestore:
    async def test_slices_restore_independently(self, db_session, workspace):
        await _store_raw(db_session, STATUS_COLORS_KEY, "garbage")
        prefs = PreferenceService(db_session)
        await prefs.save_filters(Filters(status="On Hold"))
        await prefs.save_note_tags([NoteTag(id="ONLY", label="Only", display_order=1)])

        await workspace.restore_preferences(prefs)

        assert workspace.filters.status == "On Hold"
        assert [t.id for t in workspace.store.note_tags()] == ["ONLY"]
        assert workspace.status_colors == default_status_colors()

    def test_status_without_mapping_renders_slate(self, workspace):
        assert workspace.status_color_for("Bidding") == StatusColor.SLATE
        workspace.update_status_color("Bidding", StatusColor.VIOLET)
        assert workspace.status_color_for("Bidding") == StatusColor.VIOLET
