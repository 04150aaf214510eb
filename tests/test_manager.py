"""Tests for the AliasManager facade."""

from unittest.mock import Mock

import pytest

from lasalias.analysis import FileAnalysis
from lasalias.dictionary import DictionaryNotLoadedError, DictionaryStorage
from lasalias.export import ListNamesAliasExporter
from lasalias.las import LasHeaderReader
from lasalias.manager import AliasManager
from lasalias.session import IGNORE_MARKER, NEW_BASE_MARKER


@pytest.fixture
def dictionary_file(tmp_path, dictionary):
    path = tmp_path / "aliases.csv"
    DictionaryStorage(path).save(dictionary)
    return path


@pytest.fixture
def manager(mock_settings, dictionary_file):
    m = AliasManager(settings=mock_settings)
    m.load_dictionary(dictionary_file)
    return m


@pytest.fixture
def las_dir(tmp_path, write_las):
    write_las("wells/a.las", ["DEPT", "GR", "DEN", "XYZ"])
    write_las("wells/b.LAS", ["DEPT", "GGK", "XYZ"])
    write_las("wells/deep/c.las", ["DEPT", "TIME"])
    return tmp_path / "wells"


class TestDictionaryFile:
    """Test loading and saving through the manager."""

    def test_load_dictionary(self, manager, dictionary_file):
        assert manager.is_dictionary_loaded
        assert manager.dictionary_path == dictionary_file
        assert manager.dictionary.classify("ZDEN").base_name == "RHOB"

    def test_load_missing_file(self, mock_settings, tmp_path):
        with pytest.raises(FileNotFoundError):
            AliasManager(settings=mock_settings).load_dictionary(tmp_path / "nope.csv")

    def test_save_without_path(self, mock_settings):
        with pytest.raises(DictionaryNotLoadedError):
            AliasManager(settings=mock_settings).save_dictionary()

    def test_save_to_other_path(self, manager, tmp_path):
        target = manager.save_dictionary(tmp_path / "copy.csv")
        assert target.exists()
        assert manager.dictionary_path == target

    def test_autosave_on_base_name_change(self, manager, dictionary_file):
        manager.settings.autosave_dictionary = True
        assert manager.add_base_name("NPHI")

        reloaded, _ = DictionaryStorage(dictionary_file).load()
        assert reloaded.is_base_name("NPHI")

    def test_no_autosave_when_disabled(self, manager, dictionary_file):
        manager.rename_base_name("CAL", "CALIPER")
        reloaded, _ = DictionaryStorage(dictionary_file).load()
        assert reloaded.is_base_name("CAL")


class TestAnalysis:
    """Test reading and classifying LAS files."""

    def test_analyze_file(self, manager, write_las):
        result = manager.analyze_file(write_las("one.las", ["DEPT", "GR", "TENS"]))
        assert result.total_curves == 3
        assert result.classification.mapped_field_names == {"GR": ["GR"]}
        assert result.classification.ignored_field_names == ["TENS"]
        assert result.classification.unknown_field_names == ["DEPT"]

    def test_read_error_is_captured(self, mock_settings):
        reader = Mock(spec=LasHeaderReader)
        reader.read.side_effect = ValueError("broken header")
        result = AliasManager(reader=reader, settings=mock_settings).analyze_file("x.las")

        assert result.has_error
        assert "broken header" in result.error

    def test_analyze_directory(self, manager, las_dir):
        results = manager.analyze_directory(las_dir)
        assert [r.file_name for r in results] == ["a.las", "b.LAS", "c.las"]

    def test_analyze_directory_not_recursive(self, manager, las_dir):
        results = manager.analyze_directory(las_dir, recursive=False)
        assert [r.file_name for r in results] == ["a.las", "b.LAS"]

    def test_batch_continues_after_error(self, manager, las_dir):
        real_read = manager.reader.read

        def flaky(path):
            if path.name == "b.LAS":
                raise OSError("unreadable")
            return real_read(path)

        manager.reader = Mock(read=Mock(side_effect=flaky))
        results = manager.analyze_directory(las_dir)

        assert [r.has_error for r in results] == [False, True, False]

    def test_unknown_curve_helpers(self, manager, las_dir):
        results = manager.analyze_directory(las_dir)

        assert manager.get_all_unknown_curves(results) == ["DEPT", "XYZ"]
        grouped = manager.get_unknown_curves_grouped(results)
        assert len(grouped["DEPT"]) == 3
        assert len(grouped["XYZ"]) == 2

    def test_no_directory(self, manager):
        with pytest.raises(ValueError):
            manager.analyze_directory()

    def test_load_folder(self, manager, las_dir):
        summary = manager.load_folder(las_dir)
        assert summary.total_files == 3
        assert summary.total_curves == 9
        assert summary.unknown_count == 5


class TestCommitAndExport:
    """Test commit bookkeeping and ListNamesAlias export."""

    def test_commit_records_export_history(self, manager, las_dir):
        manager.load_folder(las_dir)
        session = manager.session
        a_id = next(fid for fid in session.files if fid.endswith("a.las"))
        xyz = session.rows_for_field("XYZ")[0]
        dept = next(r for r in session.get_file(a_id).rows if r.field_name == "DEPT")
        session.record_assignment(xyz, "GR")
        session.record_assignment(dept, IGNORE_MARKER)

        result = manager.commit()

        assert result.success
        assert manager.user_mappings == {"XYZ": "GR"}
        assert manager.user_ignored == ["DEPT"]

    def test_history_is_case_insensitive_and_exclusive(self, manager):
        manager.remember_ignored("X")
        manager.remember_mapping("X", "GR")
        manager.remember_mapping("gr1", "GR")
        manager.remember_mapping("GR1", "GR")

        assert manager.user_mappings == {"X": "GR", "gr1": "GR"}
        assert manager.user_ignored == []

        manager.remember_ignored("x")
        assert manager.user_mappings == {"gr1": "GR"}
        assert manager.user_ignored == ["X"]

    def test_commit_moves_name_from_ignored_to_mapped(self, manager, las_dir):
        manager.load_folder(las_dir)
        session = manager.session
        xyz_rows = session.rows_for_field("XYZ")
        session.record_assignment(xyz_rows[0], IGNORE_MARKER)
        manager.commit()
        assert manager.user_ignored == ["XYZ"]

        session.record_assignment(session.rows_for_field("XYZ")[1], "GR")
        manager.commit()

        assert manager.user_mappings == {"XYZ": "GR"}
        assert manager.user_ignored == []

    def test_export_lists_each_name_once(self, manager, tmp_path):
        manager.remember_ignored("X")
        manager.remember_mapping("X", "GR")
        manager.remember_mapping("gr1", "GR")
        manager.remember_mapping("GR1", "GR")

        path = tmp_path / "ListNamesAlias.txt"
        assert manager.export_list_names(path) == 3
        text = path.read_text(encoding="cp1251")
        assert "No" not in text.split()
        assert "GR1" not in text.split()

    def test_export_user_defined(self, manager, tmp_path):
        manager.remember_mapping("XYZ", "GR")
        manager.remember_ignored("DEPT")

        path = tmp_path / "ListNamesAlias.txt"
        assert manager.export_list_names(path) == 3
        manager.clear_export_history()
        assert manager.user_mappings == {}
        assert manager.user_ignored == []

    def test_export_whole_dictionary(self, manager, tmp_path):
        path = tmp_path / "ListNamesAlias.txt"
        count = manager.export_list_names(path, user_defined_only=False)
        assert count == 9

    def test_export_merges_existing_file(self, manager, tmp_path):
        path = tmp_path / "ListNamesAlias.txt"
        manager.remember_mapping("XYZ", "GR")
        manager.export_list_names(path)
        manager.clear_export_history()
        manager.remember_mapping("ABC", "CAL")
        assert manager.export_list_names(path) == 4

    def test_analysis_model_defaults(self):
        assert FileAnalysis(file_path="x.las").total_curves == 0


class TestExportSelected:
    """Test exporting the curves selected for export."""

    @pytest.fixture
    def loaded(self, manager, make_analysis):
        manager.session.load_files(
            [
                make_analysis("a.las", ["GR", "DEN", "XYZ", "CALI"]),
                make_analysis("b.las", ["TIME", "XYZ", "NEW"]),
            ]
        )
        return manager

    def test_exports_current_values_of_selected_rows(self, loaded, tmp_path):
        session = loaded.session
        session.assign("a.las", 2, "gr")
        session.assign("b.las", 2, NEW_BASE_MARKER)
        for file_id, index in (("a.las", 1), ("a.las", 2), ("b.las", 0), ("b.las", 2)):
            session.set_selected_for_export(file_id, index, True)

        path = tmp_path / "ListNamesAlias.txt"
        assert loaded.export_selected(path) == 4

        entries = loaded_entries(path)
        assert ("GR", "XYZ") in entries
        assert ("RHOB", "DEN") in entries
        assert ("NEW", "NEW") in entries
        assert ("No", "TIME") in entries
        assert not loaded.dictionary.is_base_name("NEW")

    def test_empty_rows_are_skipped(self, loaded, tmp_path):
        loaded.session.set_selected_for_export("a.las", 3, True)
        with pytest.raises(ValueError):
            loaded.export_selected(tmp_path / "ListNamesAlias.txt")

    def test_nothing_selected(self, loaded, tmp_path):
        path = tmp_path / "ListNamesAlias.txt"
        with pytest.raises(ValueError):
            loaded.export_selected(path)
        assert not path.exists()

    def test_appends_to_existing_file(self, loaded, tmp_path):
        path = tmp_path / "ListNamesAlias.txt"
        loaded.session.set_selected_for_export("a.las", 0, True)
        loaded.export_selected(path)

        loaded.session.deselect_all_for_export()
        loaded.session.set_selected_for_export("a.las", 1, True)
        loaded.export_selected(path)

        entries = loaded_entries(path)
        assert ("GR", "GR") in entries
        assert ("RHOB", "DEN") in entries


def loaded_entries(path):
    return ListNamesAliasExporter("cp1251").load_entries(path)
