"""Tests for seed loading and workspace construction.

Covers:
- both on-disk table formats ({"content": [...]} and bare arrays)
- missing files as empty tables, malformed files as SeedLoadError
- the packaged seed data building a fully migrated Workspace
"""

import json

import pytest

from jobsite_crm.app.config import DEFAULT_SEED_DIR, Settings
from jobsite_crm.domain.enums import ChangeAction
from jobsite_crm.infra.seed_loader import SeedData, SeedLoadError, load_seed, read_seed_file
from jobsite_crm.services.workspace import Workspace

LEGACY_AUTHOR = 1


class TestReadSeedFile:
    def test_content_wrapper(self, tmp_path):
        path = tmp_path / "projects.json"
        path.write_text(json.dumps({"content": [{"id": 1}, {"id": 2}]}))
        assert read_seed_file(path) == [{"id": 1}, {"id": 2}]

    def test_bare_array_skips_non_objects(self, tmp_path):
        path = tmp_path / "projects.json"
        path.write_text(json.dumps([{"id": 1}, "junk", 3]))
        assert read_seed_file(path) == [{"id": 1}]

    def test_missing_file_is_empty(self, tmp_path):
        assert read_seed_file(tmp_path / "absent.json") == []

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "projects.json"
        path.write_text("{oops")
        with pytest.raises(SeedLoadError) as exc_info:
            read_seed_file(path)
        assert exc_info.value.path == path

    def test_wrong_top_level_shape_raises(self, tmp_path):
        path = tmp_path / "projects.json"
        path.write_text(json.dumps({"content": {"id": 1}}))
        with pytest.raises(SeedLoadError):
            read_seed_file(path)

    def test_load_seed_tolerates_partial_directory(self, tmp_path):
        (tmp_path / "sales_reps.json").write_text(json.dumps([{"salesrepid": 1, "firstname": "A", "lastname": "B"}]))
        seed = load_seed(tmp_path)
        assert seed.projects == []
        assert len(seed.sales_reps) == 1


class TestSettings:
    def test_seed_path_defaults_to_packaged_data(self):
        assert Settings(seed_data_dir="").seed_path == DEFAULT_SEED_DIR

    def test_seed_path_override(self, tmp_path):
        assert Settings(seed_data_dir=str(tmp_path)).seed_path == tmp_path


class TestWorkspaceFromSeed:
    @pytest.fixture
    def seeded(self, clock):
        seed = load_seed(DEFAULT_SEED_DIR)
        return Workspace.from_seed(seed, LEGACY_AUTHOR, current_user_id=3, clock=clock)

    def test_packaged_tables_load(self, seeded):
        assert len(seeded.store.projects()) == 4
        assert len(seeded.store.opportunities()) == 7
        assert len(seeded.reference.sales_reps()) == 4
        assert [t.name for t in seeded.reference.types()] == ["Sale", "Rental", "Service"]

    def test_legacy_project_is_migrated(self, seeded, clock):
        route9 = seeded.store.get_project(2)

        assert route9.sales_rep_ids == [2]
        [company] = route9.project_companies
        assert company.association_id == 1
        assert company.primary_contact.name == "Greg Lam"
        assert [n.content for n in route9.notes][0].startswith("Final walkthrough")
        assert all(n.created_by_id == LEGACY_AUTHOR for n in route9.notes)
        assert route9.notes[0].created_at == clock.current
        assert route9.address.has_coordinates

    def test_single_contact_company_is_migrated(self, seeded):
        [company] = seeded.store.get_project(3).project_companies
        assert [c.name for c in company.company_contacts] == ["Nadia Ford"]

    def test_job_site_id_is_migrated(self, seeded):
        assert seeded.store.get_opportunity(100004).project_id == 3
        assert seeded.store.get_opportunity(100007).project_id is None

    def test_opaque_opportunity_fields_are_kept(self, seeded):
        assert seeded.store.get_opportunity(100001).model_extra["caseNumber"] == "C-20418"

    def test_loading_writes_no_change_log(self, seeded):
        assert len(seeded.store.change_log) == 0

    def test_acting_user_comes_from_workspace(self, seeded):
        assert seeded.current_user_id == 3
        project = seeded.store.create_project({"name": "New"}, acting_user_id=seeded.current_user_id)
        [entry] = seeded.store.get_change_log(project.id)
        assert entry.action == ChangeAction.PROJECT_CREATED
        assert entry.changed_by_id == 3
        assert project.id == 5

    def test_empty_seed(self):
        workspace = Workspace.from_seed(SeedData(), LEGACY_AUTHOR)
        assert workspace.store.projects() == []
        assert len(workspace.store.note_tags()) == 5
