"""API routes for the LAS Alias Manager."""

import threading
from typing import TYPE_CHECKING, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ..dictionary import BaseNameInUseError, DictionaryNotLoadedError, LasAliasError
from ..session import MARKERS, CurveRow, FileNotLoadedError, LoadedFile, RowNotFoundError

if TYPE_CHECKING:
    from ..manager import AliasManager

router = APIRouter()

# Every route touching session or dictionary state holds this; sync routes run on a thread pool
_lock = threading.Lock()


def get_manager() -> "AliasManager":
    """Get the global manager instance."""
    from .app import get_manager as _get_manager

    return _get_manager()


def _http_error(error: Exception) -> HTTPException:
    """Translate a domain error to an HTTP error."""
    if isinstance(error, (FileNotLoadedError, RowNotFoundError, FileNotFoundError)):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, BaseNameInUseError):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, (DictionaryNotLoadedError, NotADirectoryError, ValueError, LasAliasError)):
        return HTTPException(status_code=400, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))


def _row_to_dict(index: int, row: CurveRow) -> dict:
    return {
        "row_index": index,
        "field_name": row.field_name,
        "position": row.position,
        "assigned_base_name": row.assigned_base_name,
        "original_base_name": row.original_base_name,
        "classification": row.classification.value,
        "status": row.status,
        "is_modified": row.is_modified,
        "selected_for_export": row.selected_for_export,
        "units": row.units,
        "description": row.description,
    }


def _file_to_dict(loaded: LoadedFile) -> dict:
    return {
        "file_id": loaded.file_id,
        "file_name": loaded.file_name,
        "file_size": loaded.file_size,
        "well_info": loaded.well_info.model_dump(),
        "curve_count": loaded.curve_count,
        "mapped_count": loaded.mapped_count,
        "ignored_count": loaded.ignored_count,
        "unknown_count": loaded.unknown_count,
        "modified_count": loaded.modified_count,
    }


class PathRequest(BaseModel):
    """Request naming an optional file path."""

    path: Optional[str] = None


class FolderLoadRequest(BaseModel):
    """Request to load a folder of LAS files."""

    directory: Optional[str] = None
    recursive: Optional[bool] = None


class BaseNameRequest(BaseModel):
    """Request to add a base name."""

    name: str


class RenameRequest(BaseModel):
    """Request to rename a base name."""

    old_name: str
    new_name: str


class AssignRequest(BaseModel):
    """Request to assign a value to one curve row."""

    file_id: str
    row_index: int
    value: str = ""


class PropagateRequest(BaseModel):
    """Request to apply one file's mappings to every other file."""

    file_id: str


class ExportRequest(BaseModel):
    """Request to export mappings to ListNamesAlias.txt."""

    path: str
    user_defined_only: bool = True


class SelectRequest(BaseModel):
    """Request to mark one curve row for the selected-curves export."""

    file_id: str
    row_index: int
    selected: bool = True


class SelectAllRequest(BaseModel):
    """Request to select or deselect every row of one file, or of every file."""

    file_id: Optional[str] = None


class ExportSelectedRequest(BaseModel):
    """Request to export the selected curves to ListNamesAlias.txt."""

    path: str


# Health check


@router.get("/health")
def health_check():
    """Health check endpoint with diagnostics."""
    from ..config import settings

    manager = get_manager()
    with _lock:
        dictionary_loaded = manager.is_dictionary_loaded
    return {
        "status": "ok",
        "service": "lasalias",
        "config": {
            "dictionary_path": str(settings.database_path),
            "dictionary_loaded": dictionary_loaded,
            "autosave_dictionary": settings.autosave_dictionary,
            "max_parse_workers": settings.max_parse_workers,
        },
    }


# Dictionary endpoints


@router.post("/dictionary/load")
def load_dictionary(request: PathRequest):
    """Load a CSV dictionary. Pending edits are dropped."""
    manager = get_manager()
    with _lock:
        try:
            report = manager.load_dictionary(request.path)
        except (OSError, LasAliasError) as e:
            raise _http_error(e)
        return {
            "report": report.model_dump(),
            "statistics": manager.dictionary.get_statistics().model_dump(),
            "summary": manager.session.summary.model_dump(),
        }


@router.post("/dictionary/save")
def save_dictionary(request: PathRequest):
    """Save the dictionary to CSV."""
    manager = get_manager()
    with _lock:
        try:
            path = manager.save_dictionary(request.path)
        except (OSError, LasAliasError) as e:
            raise _http_error(e)
    return {"status": "ok", "path": str(path)}


@router.get("/dictionary/statistics")
def get_statistics():
    """Counts of base names, aliases and ignored names."""
    manager = get_manager()
    with _lock:
        return manager.dictionary.get_statistics().model_dump()


@router.get("/dictionary/classify")
def classify_name(name: str):
    """Resolve one field name against the dictionary."""
    manager = get_manager()
    with _lock:
        result = manager.dictionary.classify(name)
    return {"field_name": name, "classification": result.kind.value, "base_name": result.base_name}


@router.get("/dictionary/base-names")
def list_base_names():
    """List base names and the values a row can be assigned."""
    manager = get_manager()
    with _lock:
        base_names = manager.dictionary.get_all_base_names()
    return {"base_names": base_names, "markers": list(MARKERS)}


@router.post("/dictionary/base-names")
def add_base_name(request: BaseNameRequest):
    """Add a base name."""
    manager = get_manager()
    with _lock:
        try:
            added = manager.add_base_name(request.name)
        except (OSError, ValueError, LasAliasError) as e:
            raise _http_error(e)
        if not added:
            raise HTTPException(
                status_code=409, detail=f"Base name '{request.name}' already exists"
            )
        return {"status": "ok", "base_name": manager.dictionary.get_base_name(request.name)}


@router.get("/dictionary/base-names/{name}/aliases")
def get_aliases(name: str):
    """List the aliases of a base name."""
    manager = get_manager()
    with _lock:
        if not manager.dictionary.is_base_name(name):
            raise HTTPException(status_code=404, detail=f"Base name '{name}' not found")
        return {
            "base_name": manager.dictionary.get_base_name(name),
            "aliases": manager.dictionary.get_aliases_for_base(name),
            "usage_count": manager.session.count_usage(name),
        }


@router.delete("/dictionary/base-names/{name}")
def remove_base_name(name: str):
    """Remove a base name and its aliases. Refused while loaded curves use it."""
    manager = get_manager()
    with _lock:
        try:
            removed = manager.remove_base_name(name)
        except (OSError, LasAliasError) as e:
            raise _http_error(e)
    if not removed:
        raise HTTPException(status_code=404, detail=f"Base name '{name}' not found")
    return {"status": "ok", "message": f"Base name '{name}' removed"}


@router.post("/dictionary/base-names/rename")
def rename_base_name(request: RenameRequest):
    """Rename a base name, moving its aliases and re-pointing loaded curves."""
    manager = get_manager()
    with _lock:
        try:
            renamed = manager.rename_base_name(request.old_name, request.new_name)
        except (OSError, LasAliasError) as e:
            raise _http_error(e)
        if not renamed:
            raise HTTPException(
                status_code=409,
                detail=f"Cannot rename '{request.old_name}' to '{request.new_name}'",
            )
        return {"status": "ok", "base_name": manager.dictionary.get_base_name(request.new_name)}


# Files and curves


@router.post("/folder/load")
def load_folder(request: FolderLoadRequest):
    """Analyze a folder of LAS files and open them in the session."""
    manager = get_manager()
    with _lock:
        try:
            summary = manager.load_folder(request.directory, request.recursive)
        except (OSError, ValueError, LasAliasError) as e:
            raise _http_error(e)
        return {
            "summary": summary.model_dump(),
            "failed_files": dict(manager.session.failed_files),
        }


@router.get("/files")
def list_files(only_unknown: bool = False):
    """List loaded files with their curve counts."""
    manager = get_manager()
    with _lock:
        files = [
            _file_to_dict(loaded)
            for loaded in manager.session.files.values()
            if not only_unknown or loaded.has_unknown
        ]
        return {"files": files, "failed_files": dict(manager.session.failed_files)}


@router.get("/files/curves")
def list_curves(file_id: str, only_unknown: bool = False):
    """List the curve rows of one file."""
    manager = get_manager()
    with _lock:
        try:
            loaded = manager.session.get_file(file_id)
        except LasAliasError as e:
            raise _http_error(e)
        rows = [
            _row_to_dict(index, row)
            for index, row in enumerate(loaded.rows)
            if not only_unknown or row.is_unknown
        ]
        return {"file": _file_to_dict(loaded), "curves": rows}


@router.get("/curves/unknown")
def list_unknown_curves():
    """Unknown field names across loaded files, with the files they occur in."""
    manager = get_manager()
    grouped: dict[str, list[str]] = {}
    with _lock:
        for row in manager.session.iter_rows():
            if row.is_unknown:
                files = grouped.setdefault(row.field_name, [])
                if row.file_id not in files:
                    files.append(row.file_id)
    return {"unknown": grouped}


@router.post("/curves/assign")
def assign_curve(request: AssignRequest):
    """Assign a base name or marker to one curve row."""
    manager = get_manager()
    with _lock:
        try:
            row = manager.session.assign(request.file_id, request.row_index, request.value)
        except LasAliasError as e:
            raise _http_error(e)
        return {
            "curve": _row_to_dict(request.row_index, row),
            "summary": manager.session.summary.model_dump(),
        }


@router.post("/curves/select")
def select_curve(request: SelectRequest):
    """Mark or unmark one curve row for the selected-curves export."""
    manager = get_manager()
    with _lock:
        try:
            row = manager.session.set_selected_for_export(
                request.file_id, request.row_index, request.selected
            )
        except LasAliasError as e:
            raise _http_error(e)
        return {
            "curve": _row_to_dict(request.row_index, row),
            "summary": manager.session.summary.model_dump(),
        }


@router.post("/curves/select-all")
def select_all_curves(request: SelectAllRequest):
    """Select every curve of one file, or of every file when no file is given."""
    manager = get_manager()
    with _lock:
        try:
            changed = manager.session.select_all_for_export(request.file_id)
        except LasAliasError as e:
            raise _http_error(e)
        return {"changed": changed, "summary": manager.session.summary.model_dump()}


@router.post("/curves/deselect-all")
def deselect_all_curves(request: SelectAllRequest):
    """Clear the export selection of one file, or of every file."""
    manager = get_manager()
    with _lock:
        try:
            changed = manager.session.deselect_all_for_export(request.file_id)
        except LasAliasError as e:
            raise _http_error(e)
        return {"changed": changed, "summary": manager.session.summary.model_dump()}


@router.post("/files/propagate")
def propagate_file(request: PropagateRequest):
    """Apply one file's mappings to the same field names in every other file."""
    manager = get_manager()
    with _lock:
        try:
            changed = manager.session.propagate(request.file_id)
        except LasAliasError as e:
            raise _http_error(e)
        return {"changed": changed, "summary": manager.session.summary.model_dump()}


# Session


@router.get("/session/summary")
def get_summary():
    """Current session totals."""
    manager = get_manager()
    with _lock:
        return manager.session.summary.model_dump()


@router.post("/session/undo")
def undo():
    """Undo the most recent edit or batch operation."""
    manager = get_manager()
    with _lock:
        undone = manager.session.undo_last()
        return {"undone": undone, "summary": manager.session.summary.model_dump()}


@router.post("/session/clear-changes")
def clear_changes():
    """Revert every pending edit."""
    manager = get_manager()
    with _lock:
        reverted = manager.session.clear_changes()
        return {"reverted": reverted, "summary": manager.session.summary.model_dump()}


@router.post("/session/commit")
def commit():
    """Write pending edits to the dictionary."""
    manager = get_manager()
    with _lock:
        try:
            result = manager.commit()
        except (OSError, LasAliasError) as e:
            raise _http_error(e)
        return {
            "result": result.model_dump(),
            "success": result.success,
            "summary": manager.session.summary.model_dump(),
        }


# Export


@router.post("/export/list-names")
def export_list_names(request: ExportRequest):
    """Write committed mappings to a ListNamesAlias.txt file."""
    manager = get_manager()
    with _lock:
        try:
            count = manager.export_list_names(request.path, request.user_defined_only)
        except OSError as e:
            raise _http_error(e)
    return {"status": "ok", "path": request.path, "entries": count}


@router.post("/export/selected")
def export_selected(request: ExportSelectedRequest):
    """Write the curves selected for export to a ListNamesAlias.txt file."""
    manager = get_manager()
    with _lock:
        try:
            count = manager.export_selected(request.path)
        except (OSError, ValueError) as e:
            raise _http_error(e)
    return {"status": "ok", "path": request.path, "curves": count}


@router.post("/export/history/clear")
def clear_export_history():
    """Forget the committed mappings remembered for export."""
    manager = get_manager()
    with _lock:
        manager.clear_export_history()
    return {"status": "ok"}
