"""Export query results to CSV / JSON using pandas."""

from enum import Enum
from typing import Any, Dict, List, Tuple

import pandas as pd


class ExportFormat(str, Enum):
    CSV = "csv"
    JSON = "json"


MEDIA_TYPES = {
    ExportFormat.CSV: "text/csv",
    ExportFormat.JSON: "application/json",
}


def results_to_dataframe(columns: List[str], rows: List[Dict[str, Any]]) -> pd.DataFrame:
    """Build a DataFrame keeping the result's column order."""
    if columns:
        return pd.DataFrame(rows, columns=columns)
    return pd.DataFrame(rows)


def export_results(
    columns: List[str],
    rows: List[Dict[str, Any]],
    fmt: ExportFormat = ExportFormat.CSV,
) -> Tuple[str, str]:
    """
    Serialize rows. Returns (content, media_type).

    CSV has a header line and no index column; JSON is a list of records
    with missing values as null.
    """
    fmt = ExportFormat(fmt)
    df = results_to_dataframe(columns, rows)

    if fmt == ExportFormat.CSV:
        return df.to_csv(index=False), MEDIA_TYPES[fmt]
    return df.to_json(orient="records", force_ascii=False), MEDIA_TYPES[fmt]


def export_filename(fmt: ExportFormat, stem: str = "query_results") -> str:
    return f"{stem}.{ExportFormat(fmt).value}"
