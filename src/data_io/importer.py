from __future__ import annotations

from datetime import datetime
from pathlib import PurePath

from src.core.schemas import ImportResult, ImportStats
from src.data_io.import_validator import validate_headers, validate_import_rows
from src.data_io.mapper import map_rows_to_drafts
from src.data_io.readers import Source, read_csv_rows, read_excel_rows
from src.utils.logging import get_logger

log = get_logger(__name__)


class ImportFormatError(ValueError):
    pass


def import_accounts(source: Source, filename: str, *, now: datetime) -> ImportResult:
    """Parse a CSV/Excel upload into account drafts plus row-level issues.

    Row problems never raise; only an unreadable or unsupported file does.
    """
    ext = PurePath(filename).suffix.lower()
    try:
        if ext == ".csv":
            rows = read_csv_rows(source)
        elif ext in (".xlsx", ".xls"):
            rows = read_excel_rows(source)
        else:
            raise ImportFormatError(f"Unsupported file type {ext or '(none)'!r}; use .csv, .xlsx or .xls")
    except ImportFormatError:
        raise
    except Exception as e:
        raise ImportFormatError(f"Failed to read {filename}: {e}") from e

    issues = validate_import_rows(rows, now=now)
    if rows:
        missing = validate_headers(list(rows[0].keys()))
        if missing:
            log.warning("import %s missing columns: %s", filename, missing)

    errors = [i for i in issues if i.severity == "error"]
    warnings = [i for i in issues if i.severity == "warning"]
    drafts = map_rows_to_drafts(rows, errors)

    stats = ImportStats(
        total_rows=len(rows),
        valid_rows=len(drafts),
        error_rows=len({i.row for i in errors if i.row > 0}),
        warning_rows=len({i.row for i in warnings}),
    )
    log.info(
        "import %s rows=%d valid=%d errors=%d warnings=%d",
        filename, stats.total_rows, stats.valid_rows, len(errors), len(warnings),
    )
    return ImportResult(accounts=drafts, errors=errors, warnings=warnings, stats=stats)
