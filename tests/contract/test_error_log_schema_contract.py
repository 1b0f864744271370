from __future__ import annotations

import json

import jsonschema
import pytest
from jsonschema.exceptions import ValidationError

from matka_chart.config.loader import SCHEMA_PATH
from matka_chart.models.error_record import ErrorRecord

"""Error log JSON schema contract test."""

ERROR_SCHEMA_PATH = SCHEMA_PATH.parent / "error_log_schema.json"


@pytest.fixture()
def schema():
    return json.loads(ERROR_SCHEMA_PATH.read_text(encoding="utf-8"))


def test_created_record_matches_schema(schema):
    rec = ErrorRecord.create("kalyan_panel", "database", -1, "CHART_LOAD_ERROR", "query failed")
    jsonschema.validate(json.loads(rec.to_json_line()), schema)


def test_rejects_extra_key(schema):
    record = json.loads(ErrorRecord.create("k", "spreadsheet", 2, "ROW_ERROR", "x").to_json_line())
    record["extra"] = "not allowed"
    with pytest.raises(ValidationError):
        jsonschema.validate(record, schema)


@pytest.mark.parametrize(
    "field,value",
    [("row", -2), ("error_type", "chart_load_error"), ("source", "memory"), ("timestamp", "2024-01-01T00:00:00")],
)
def test_rejects_bad_values(schema, field, value):
    record = json.loads(ErrorRecord.create("k", "spreadsheet", 0, "ROW_ERROR", "x").to_json_line())
    record[field] = value
    with pytest.raises(ValidationError):
        jsonschema.validate(record, schema)
