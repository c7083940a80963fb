from __future__ import annotations

import io
from datetime import date, datetime
from typing import Any, BinaryIO, Dict, List, Union

import pandas as pd

Source = Union[str, bytes, BinaryIO]


def _as_buffer(source: Source) -> Union[str, BinaryIO]:
    if isinstance(source, (bytes, bytearray)):
        return io.BytesIO(source)
    return source


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and pd.isna(value):
        return ""
    if value is pd.NaT:
        return ""
    if isinstance(value, (pd.Timestamp, datetime, date)):
        return value.strftime("%Y-%m-%d")
    return str(value).strip()


def _frame_to_rows(df: pd.DataFrame) -> List[Dict[str, str]]:
    headers = [
        (str(c).strip() if not str(c).startswith("Unnamed:") else f"Column{i + 1}")
        for i, c in enumerate(df.columns)
    ]
    df.columns = headers

    rows: List[Dict[str, str]] = []
    for rec in df.to_dict(orient="records"):
        row = {k: _cell_text(v) for k, v in rec.items()}
        if any(v != "" for v in row.values()):
            rows.append(row)
    return rows


def read_csv_rows(source: Source, *, delimiter: str = ",") -> List[Dict[str, str]]:
    """Header row + string cells; blank lines dropped."""
    df = pd.read_csv(
        _as_buffer(source),
        sep=delimiter,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
    )
    return _frame_to_rows(df)


def read_excel_rows(source: Source) -> List[Dict[str, str]]:
    """First worksheet only; date cells come back as YYYY-MM-DD."""
    df = pd.read_excel(_as_buffer(source), sheet_name=0, dtype=object, engine="openpyxl")
    return _frame_to_rows(df)
