"""Tests for API routes."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from lasalias.api.routes import router
from lasalias.dictionary import DictionaryStorage
from lasalias.manager import AliasManager
from lasalias.session import ChangeSession, IGNORE_MARKER


@pytest.fixture
def manager(mock_settings, dictionary, make_analysis, tmp_path):
    """Manager with a saved dictionary and two files already in the session."""
    path = tmp_path / "aliases.csv"
    DictionaryStorage(path).save(dictionary)

    m = AliasManager(session=ChangeSession(dictionary), settings=mock_settings)
    m.dictionary_path = path
    m.session.load_files(
        [
            make_analysis("a.las", ["GR", "DEN", "XYZ", "CALI"]),
            make_analysis("b.las", ["XYZ", "CALI"]),
        ]
    )
    return m


@pytest.fixture
def test_client(manager):
    """Create a test client with the manager patched in (no lifespan)."""
    app = FastAPI()
    app.include_router(router, prefix="/api")

    with patch("lasalias.api.routes.get_manager", return_value=manager):
        yield TestClient(app)


class TestHealthEndpoint:
    """Test the /api/health endpoint."""

    def test_health_check_returns_ok_status(self, test_client):
        response = test_client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "lasalias"
        assert data["config"]["dictionary_loaded"] is True


class TestLocking:
    """Test that reads are serialized with writes."""

    @pytest.mark.parametrize(
        "path",
        [
            "/api/health",
            "/api/dictionary/statistics",
            "/api/dictionary/classify?name=GR",
            "/api/dictionary/base-names",
            "/api/dictionary/base-names/GR/aliases",
            "/api/files",
            "/api/files/curves?file_id=a.las",
            "/api/curves/unknown",
            "/api/session/summary",
        ],
    )
    def test_read_routes_hold_the_lock(self, test_client, path):
        lock = MagicMock()
        with patch("lasalias.api.routes._lock", lock):
            response = test_client.get(path)

        assert response.status_code == 200
        lock.__enter__.assert_called_once()
        lock.__exit__.assert_called_once()


class TestDictionaryEndpoints:
    """Test dictionary endpoints."""

    def test_statistics(self, test_client):
        response = test_client.get("/api/dictionary/statistics")
        assert response.json() == {"base_count": 3, "alias_count": 4, "ignored_count": 2}

    def test_classify(self, test_client):
        data = test_client.get("/api/dictionary/classify", params={"name": "zden"}).json()
        assert data["classification"] == "mapped"
        assert data["base_name"] == "RHOB"

    def test_list_base_names(self, test_client):
        data = test_client.get("/api/dictionary/base-names").json()
        assert data["base_names"] == ["CAL", "GR", "RHOB"]
        assert IGNORE_MARKER in data["markers"]

    def test_add_base_name(self, test_client, manager):
        response = test_client.post("/api/dictionary/base-names", json={"name": "XYZ"})
        assert response.status_code == 200
        assert manager.session.get_row("a.las", 2).assigned_base_name == "XYZ"

    def test_add_existing_base_name(self, test_client):
        response = test_client.post("/api/dictionary/base-names", json={"name": "gr"})
        assert response.status_code == 409

    def test_aliases(self, test_client):
        data = test_client.get("/api/dictionary/base-names/RHOB/aliases").json()
        assert data["aliases"] == ["DEN", "ZDEN"]
        assert data["usage_count"] == 1

    def test_remove_base_name_in_use(self, test_client):
        response = test_client.delete("/api/dictionary/base-names/GR")
        assert response.status_code == 409

    def test_remove_base_name(self, test_client, manager):
        response = test_client.delete("/api/dictionary/base-names/CAL")
        assert response.status_code == 200
        assert not manager.dictionary.is_base_name("CAL")

    def test_remove_missing_base_name(self, test_client):
        assert test_client.delete("/api/dictionary/base-names/NOPE").status_code == 404

    def test_rename(self, test_client, manager):
        response = test_client.post(
            "/api/dictionary/base-names/rename", json={"old_name": "RHOB", "new_name": "DENS"}
        )
        assert response.status_code == 200
        assert manager.session.get_row("a.las", 1).assigned_base_name == "DENS"

    def test_rename_collision(self, test_client):
        response = test_client.post(
            "/api/dictionary/base-names/rename", json={"old_name": "RHOB", "new_name": "GR"}
        )
        assert response.status_code == 409

    def test_save_and_load(self, test_client, tmp_path):
        target = tmp_path / "saved.csv"
        response = test_client.post("/api/dictionary/save", json={"path": str(target)})
        assert response.status_code == 200
        assert target.exists()

        response = test_client.post("/api/dictionary/load", json={"path": str(target)})
        assert response.status_code == 200
        assert response.json()["statistics"]["base_count"] == 3

    def test_load_missing(self, test_client, tmp_path):
        response = test_client.post(
            "/api/dictionary/load", json={"path": str(tmp_path / "missing.csv")}
        )
        assert response.status_code == 404


class TestSessionEndpoints:
    """Test files, curves and session endpoints."""

    def test_list_files(self, test_client):
        data = test_client.get("/api/files").json()
        assert [f["file_id"] for f in data["files"]] == ["a.las", "b.las"]
        assert data["files"][0]["unknown_count"] == 2

    def test_list_curves(self, test_client):
        data = test_client.get("/api/files/curves", params={"file_id": "a.las"}).json()
        assert [c["field_name"] for c in data["curves"]] == ["GR", "DEN", "XYZ", "CALI"]

        data = test_client.get(
            "/api/files/curves", params={"file_id": "a.las", "only_unknown": True}
        ).json()
        assert [c["row_index"] for c in data["curves"]] == [2, 3]

    def test_list_curves_unknown_file(self, test_client):
        response = test_client.get("/api/files/curves", params={"file_id": "nope.las"})
        assert response.status_code == 404

    def test_unknown_curves(self, test_client):
        data = test_client.get("/api/curves/unknown").json()
        assert data["unknown"] == {"XYZ": ["a.las", "b.las"], "CALI": ["a.las", "b.las"]}

    def test_assign_and_undo(self, test_client):
        response = test_client.post(
            "/api/curves/assign", json={"file_id": "a.las", "row_index": 2, "value": "GR"}
        )
        assert response.status_code == 200
        assert response.json()["curve"]["is_modified"] is True
        assert response.json()["summary"]["unsaved_changes_count"] == 1

        data = test_client.post("/api/session/undo").json()
        assert data["undone"] is True
        assert data["summary"]["unsaved_changes_count"] == 0

    def test_assign_bad_row(self, test_client):
        response = test_client.post(
            "/api/curves/assign", json={"file_id": "a.las", "row_index": 42, "value": "GR"}
        )
        assert response.status_code == 404

    def test_propagate_and_commit(self, test_client, manager):
        test_client.post(
            "/api/curves/assign", json={"file_id": "a.las", "row_index": 3, "value": "CAL"}
        )
        data = test_client.post("/api/files/propagate", json={"file_id": "a.las"}).json()
        assert data["changed"] == 1

        data = test_client.post("/api/session/commit").json()
        assert data["success"] is True
        assert data["result"]["applied"] == 2
        assert manager.dictionary.classify("CALI").base_name == "CAL"
        assert data["summary"]["has_unsaved_changes"] is False

    def test_clear_changes(self, test_client):
        test_client.post(
            "/api/curves/assign", json={"file_id": "b.las", "row_index": 0, "value": "GR"}
        )
        data = test_client.post("/api/session/clear-changes").json()
        assert data["reverted"] == 1
        assert test_client.get("/api/session/summary").json()["has_unsaved_changes"] is False

    def test_load_folder_missing_directory(self, test_client, tmp_path):
        response = test_client.post(
            "/api/folder/load", json={"directory": str(tmp_path / "nope")}
        )
        assert response.status_code == 400


class TestExportEndpoints:
    """Test ListNamesAlias export."""

    def test_export_whole_dictionary(self, test_client, tmp_path):
        path = tmp_path / "ListNamesAlias.txt"
        response = test_client.post(
            "/api/export/list-names", json={"path": str(path), "user_defined_only": False}
        )
        assert response.status_code == 200
        assert response.json()["entries"] == 9
        assert path.exists()

    def test_clear_history(self, test_client, manager):
        manager.remember_mapping("XYZ", "GR")
        assert test_client.post("/api/export/history/clear").status_code == 200
        assert manager.user_mappings == {}


class TestExportSelectedEndpoints:
    """Test selecting curves and exporting the selection."""

    def test_select_curve(self, test_client):
        response = test_client.post(
            "/api/curves/select", json={"file_id": "a.las", "row_index": 1, "selected": True}
        )
        assert response.status_code == 200
        assert response.json()["curve"]["selected_for_export"] is True
        assert response.json()["summary"]["selected_count"] == 1

    def test_select_bad_row(self, test_client):
        response = test_client.post(
            "/api/curves/select", json={"file_id": "a.las", "row_index": 42}
        )
        assert response.status_code == 404

    def test_select_and_deselect_all(self, test_client):
        data = test_client.post("/api/curves/select-all", json={"file_id": "b.las"}).json()
        assert data["changed"] == 2
        assert data["summary"]["selected_count"] == 2

        data = test_client.post("/api/curves/deselect-all", json={}).json()
        assert data["changed"] == 2
        assert data["summary"]["selected_count"] == 0

    def test_export_selected(self, test_client, tmp_path):
        test_client.post(
            "/api/curves/assign", json={"file_id": "a.las", "row_index": 2, "value": IGNORE_MARKER}
        )
        test_client.post("/api/curves/select-all", json={"file_id": "a.las"})

        path = tmp_path / "ListNamesAlias.txt"
        response = test_client.post("/api/export/selected", json={"path": str(path)})

        assert response.status_code == 200
        assert response.json()["curves"] == 3
        assert path.exists()

    def test_export_with_nothing_selected(self, test_client, tmp_path):
        response = test_client.post(
            "/api/export/selected", json={"path": str(tmp_path / "ListNamesAlias.txt")}
        )
        assert response.status_code == 400
