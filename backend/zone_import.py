from __future__ import annotations

import io
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import pandas as pd


ALLOWED_MIME_TYPES = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel",
    "text/csv",
    "application/csv",
}
ALLOWED_EXTENSIONS = (".xlsx", ".xls", ".csv")
RESERVED_ZONE_NAMES = {"nationwide", "all", "global", "admin", "system"}
COLUMNS = ["zone_name", "pincode", "city", "state"]
SAMPLE_SHEET_NAME = "Zone Pincodes"
SAMPLE_FILENAME = "zone_pincodes_sample.xlsx"

_ZONE_NAME_RE = re.compile(r"^[a-zA-Z0-9\s\-_]+$")
_PINCODE_RE = re.compile(r"^[0-9]{6}$")

SAMPLE_ROWS = [
    ["DelhiZone", "110001", "New Delhi", "Delhi"],
    ["DelhiZone", "110002", "Delhi Cantt", "Delhi"],
    ["DelhiZone", "110003", "New Delhi GPO", "Delhi"],
    ["DelhiZone", "122001", "Gurgaon", "Haryana"],
    ["DelhiZone", "122002", "Sector 14 Gurgaon", "Haryana"],
    ["MumbaiZone", "400001", "Fort Mumbai", "Maharashtra"],
    ["MumbaiZone", "400002", "Kalbadevi", "Maharashtra"],
    ["MumbaiZone", "400003", "Mumbai GPO", "Maharashtra"],
    ["MumbaiZone", "400004", "Girgaon", "Maharashtra"],
    ["ChennaiZone", "600001", "Chennai GPO", "Tamil Nadu"],
    ["ChennaiZone", "600002", "Anna Salai", "Tamil Nadu"],
    ["ChennaiZone", "600003", "Egmore", "Tamil Nadu"],
    ["BangaloreZone", "560001", "Bangalore GPO", "Karnataka"],
    ["BangaloreZone", "560002", "Bangalore East", "Karnataka"],
    ["BangaloreZone", "560003", "Malleswaram", "Karnataka"],
    ["PuneZone", "411001", "Pune Camp", "Maharashtra"],
    ["PuneZone", "411002", "Pune Cantt", "Maharashtra"],
    ["HyderabadZone", "500001", "Hyderabad GPO", "Telangana"],
    ["HyderabadZone", "500003", "Secunderabad", "Telangana"],
]


class ZoneFileError(ValueError):
    """The upload could not be read as a spreadsheet at all."""


@dataclass
class PincodeRow:
    zone_name: str
    pincode: str
    city: str = ""
    state: str = ""
    row_number: int = 0


@dataclass
class ParseResult:
    data: List[PincodeRow]
    errors: List[Dict[str, Any]]
    total_rows: int

    @property
    def valid_rows(self) -> int:
        return len(self.data)

    @property
    def error_rows(self) -> int:
        return len(self.errors)

    def summary(self) -> Dict[str, int]:
        return {"total_rows": self.total_rows, "valid_rows": self.valid_rows, "error_rows": self.error_rows}


def max_upload_bytes() -> int:
    try:
        return int(os.getenv("UPLOAD_MAX_BYTES", str(10 * 1024 * 1024)))
    except ValueError:
        return 10 * 1024 * 1024


def validate_upload(filename: Optional[str], content_type: Optional[str], size: int) -> List[str]:
    if not filename:
        return ["No file uploaded"]

    errors: List[str] = []
    ext = os.path.splitext(filename)[1].lower()
    if (content_type or "") not in ALLOWED_MIME_TYPES and ext not in ALLOWED_EXTENSIONS:
        errors.append("Invalid file type. Please upload Excel (.xlsx, .xls) or CSV files only.")

    limit = max_upload_bytes()
    if size > limit:
        errors.append(f"File too large. Maximum size allowed is {limit // (1024 * 1024)}MB.")
    if size == 0:
        errors.append("File is empty.")
    return errors


def is_csv_upload(filename: Optional[str], content_type: Optional[str]) -> bool:
    return (content_type or "") in ("text/csv", "application/csv") or (filename or "").lower().endswith(".csv")


def _cell(v: Any) -> str:
    if v is None:
        return ""
    if isinstance(v, float):
        if pd.isna(v):
            return ""
        if v.is_integer():
            return str(int(v))
    return str(v).strip()


def _rows_from_frame(df: pd.DataFrame) -> ParseResult:
    records = [[_cell(v) for v in rec] for rec in df.values.tolist()]

    positions = {name: i for i, name in enumerate(COLUMNS)}
    first = next((i for i, values in enumerate(records) if any(values)), None)
    start = 0
    if first is not None:
        header = [v.lower() for v in records[first]]
        if "zone_name" in header and "pincode" in header:
            start = first + 1
            positions = {name: header.index(name) for name in COLUMNS if name in header}

    def _get(values: List[str], name: str) -> str:
        i = positions.get(name)
        return values[i] if i is not None and i < len(values) else ""

    data: List[PincodeRow] = []
    errors: List[Dict[str, Any]] = []
    total = 0
    for idx in range(start, len(records)):
        values = records[idx]
        if not any(values):
            continue
        total += 1
        row_number = idx + 1

        zone_name = _get(values, "zone_name")
        pincode = _get(values, "pincode")
        if not zone_name or not pincode:
            errors.append({"row": row_number, "error": "Missing required columns: zone_name, pincode", "data": values})
            continue
        if not _PINCODE_RE.match(pincode):
            errors.append(
                {"row": row_number, "error": f"Invalid pincode format: {pincode}. Should be 6 digits.", "data": values}
            )
            continue

        data.append(
            PincodeRow(
                zone_name=zone_name,
                pincode=pincode,
                city=_get(values, "city"),
                state=_get(values, "state"),
                row_number=row_number,
            )
        )

    return ParseResult(data=data, errors=errors, total_rows=total)


def parse_excel(content: bytes) -> ParseResult:
    try:
        df = pd.read_excel(io.BytesIO(content), sheet_name=0, header=None, dtype=object, engine="openpyxl")
    except Exception as e:
        raise ZoneFileError(f"Unable to read Excel file: {e}") from e
    if df.empty:
        raise ZoneFileError("Excel file is empty or has no data")
    return _rows_from_frame(df)


def parse_csv(content: bytes) -> ParseResult:
    try:
        df = pd.read_csv(
            io.BytesIO(content),
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=False,
            skipinitialspace=True,
            encoding="utf-8-sig",
        )
    except pd.errors.EmptyDataError as e:
        raise ZoneFileError("CSV file is empty or has no data") from e
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise ZoneFileError(f"Unable to read CSV file: {e}") from e
    if df.empty or df.isna().all().all():
        raise ZoneFileError("CSV file is empty or has no data")
    return _rows_from_frame(df)


def parse_upload(filename: Optional[str], content_type: Optional[str], content: bytes) -> ParseResult:
    if is_csv_upload(filename, content_type):
        return parse_csv(content)
    return parse_excel(content)


def validate_zone_names(names: List[str]) -> List[str]:
    errors: List[str] = []
    for name in names:
        if not name or not str(name).strip():
            errors.append(f"Invalid zone name: '{name}'. Must be a non-empty string.")
            continue
        if len(name) > 100:
            errors.append(f"Zone name too long: '{name}'. Maximum 100 characters allowed.")
        if not _ZONE_NAME_RE.match(name):
            errors.append(
                f"Invalid characters in zone name: '{name}'. "
                "Only letters, numbers, spaces, hyphens, and underscores are allowed."
            )
        if name.strip().lower() in RESERVED_ZONE_NAMES:
            errors.append(f"Reserved zone name: '{name}'. Please use a different name.")
    return errors


def group_by_zone(rows: List[PincodeRow]) -> Dict[str, List[PincodeRow]]:
    grouped: Dict[str, List[PincodeRow]] = {}
    for row in rows:
        grouped.setdefault(row.zone_name, []).append(row)
    return grouped


def display_name_for(zone_name: str) -> str:
    """'DelhiZone' -> 'Delhi Zone', 'NCRZone' -> 'NCR Zone'."""
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])", " ", zone_name).strip()


def build_sample_workbook() -> bytes:
    df = pd.DataFrame(SAMPLE_ROWS, columns=COLUMNS)
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=SAMPLE_SHEET_NAME, index=False)
        ws = writer.sheets[SAMPLE_SHEET_NAME]
        for col, width in zip("ABCD", (15, 10, 20, 15)):
            ws.column_dimensions[col].width = width
    return buf.getvalue()
