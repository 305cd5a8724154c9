import io

import pandas as pd
import pytest

from backend.zone_import import (
    SAMPLE_ROWS,
    SAMPLE_SHEET_NAME,
    ZoneFileError,
    build_sample_workbook,
    display_name_for,
    group_by_zone,
    parse_csv,
    parse_excel,
    parse_upload,
    validate_upload,
    validate_zone_names,
)


def test_csv_with_header_collects_row_errors():
    content = (
        b"zone_name,pincode,city,state\n"
        b"DelhiZone,110001,New Delhi,Delhi\n"
        b"DelhiZone,11001,Delhi,Delhi\n"
        b",400001,Mumbai,Maharashtra\n"
    )
    result = parse_csv(content)

    assert result.total_rows == 3
    assert result.valid_rows == 1
    assert result.data[0].pincode == "110001"
    assert result.data[0].city == "New Delhi"
    assert result.data[0].row_number == 2
    assert [e["row"] for e in result.errors] == [3, 4]
    assert "Invalid pincode format" in result.errors[0]["error"]
    assert "Missing required columns" in result.errors[1]["error"]
    assert result.summary() == {"total_rows": 3, "valid_rows": 1, "error_rows": 2}


def test_csv_without_header_reads_columns_by_position():
    result = parse_csv(b"MumbaiZone,400001,Fort Mumbai,Maharashtra\nMumbaiZone,400002,Kalbadevi,Maharashtra\n")

    assert result.errors == []
    assert [r.pincode for r in result.data] == ["400001", "400002"]
    assert result.data[0].row_number == 1
    assert result.data[1].state == "Maharashtra"


def test_csv_header_maps_columns_by_name():
    result = parse_csv(b"pincode,zone_name,state,city\n560001,BangaloreZone,Karnataka,Bangalore GPO\n")

    assert result.valid_rows == 1
    row = result.data[0]
    assert row.zone_name == "BangaloreZone"
    assert row.city == "Bangalore GPO"
    assert row.state == "Karnataka"


def test_empty_csv_is_a_file_error():
    with pytest.raises(ZoneFileError):
        parse_csv(b"")


def test_sample_workbook_parses_cleanly():
    content = build_sample_workbook()
    result = parse_excel(content)

    assert result.errors == []
    assert result.valid_rows == len(SAMPLE_ROWS)
    assert result.data[0].zone_name == "DelhiZone"
    assert result.data[0].pincode == "110001"

    df = pd.read_excel(io.BytesIO(content), sheet_name=SAMPLE_SHEET_NAME, dtype=str)
    assert list(df.columns) == ["zone_name", "pincode", "city", "state"]
    assert len(set(df["zone_name"])) == 6


def test_numeric_pincode_cells_are_read_as_digits():
    buf = io.BytesIO()
    pd.DataFrame([["PuneZone", 411001, "Pune Camp", "Maharashtra"]], columns=["zone_name", "pincode", "city", "state"]).to_excel(
        buf, index=False, engine="openpyxl"
    )
    result = parse_excel(buf.getvalue())

    assert result.errors == []
    assert result.data[0].pincode == "411001"


def test_garbage_excel_is_a_file_error():
    with pytest.raises(ZoneFileError):
        parse_excel(b"not a spreadsheet")


def test_parse_upload_routes_csv_by_extension():
    result = parse_upload("zones.csv", "application/octet-stream", b"DelhiZone,110001,,\n")
    assert result.valid_rows == 1


def test_validate_upload_messages(monkeypatch):
    monkeypatch.delenv("UPLOAD_MAX_BYTES", raising=False)

    assert validate_upload(None, None, 0) == ["No file uploaded"]
    assert validate_upload("zones.xlsx", "application/octet-stream", 10) == []
    assert validate_upload("zones.txt", "text/plain", 10) == [
        "Invalid file type. Please upload Excel (.xlsx, .xls) or CSV files only."
    ]
    assert validate_upload("zones.csv", "text/csv", 0) == ["File is empty."]
    assert validate_upload("zones.csv", "text/csv", 11 * 1024 * 1024) == [
        "File too large. Maximum size allowed is 10MB."
    ]


def test_zone_name_rules():
    errors = validate_zone_names(["Delhi Zone", "north-east_1", "bad!name", "ALL", "x" * 101])

    assert len(errors) == 3
    assert any("Invalid characters" in e and "bad!name" in e for e in errors)
    assert any("Reserved zone name" in e for e in errors)
    assert any("too long" in e for e in errors)


def test_group_by_zone_and_display_names():
    result = parse_csv(b"DelhiZone,110001,,\nMumbaiZone,400001,,\nDelhiZone,110002,,\n")
    grouped = group_by_zone(result.data)

    assert list(grouped) == ["DelhiZone", "MumbaiZone"]
    assert [r.pincode for r in grouped["DelhiZone"]] == ["110001", "110002"]
    assert display_name_for("DelhiZone") == "Delhi Zone"
    assert display_name_for("delhi_ncr") == "delhi_ncr"


def test_blank_csv_lines_keep_row_numbers_in_step_with_excel():
    content = b"zone_name,pincode\nDelhiZone,110001\n\nDelhiZone,12\n"
    result = parse_csv(content)

    assert result.valid_rows == 1
    assert result.total_rows == 2
    assert result.errors[0]["row"] == 4

    buf = io.BytesIO()
    pd.DataFrame([["zone_name", "pincode"], ["DelhiZone", "110001"], [None, None], ["DelhiZone", "12"]]).to_excel(
        buf, index=False, header=False, engine="openpyxl"
    )
    assert parse_excel(buf.getvalue()).errors[0]["row"] == 4


def test_blank_only_csv_is_a_file_error():
    with pytest.raises(ZoneFileError):
        parse_csv(b"\n\n\n")


def test_display_name_keeps_acronyms_together():
    assert display_name_for("NCR") == "NCR"
    assert display_name_for("NCRZone") == "NCR Zone"
    assert display_name_for("MumbaiWest2Zone") == "Mumbai West2 Zone"
