from __future__ import annotations

from pathlib import Path

import pytest

from sheetdb.config.loader import (
    ConfigError,
    load_job_config,
    load_schemas,
    parse_job_config,
    schema_for,
    validate_payload,
)
from sheetdb.models.columns import DATA_TYPES, ColumnDefinition
from sheetdb.models.parsing import ParserConfig


def test_load_job_config_success(write_config: Path, temp_workdir: Path):
    cfg = load_job_config(write_config)
    assert cfg.source_file.resolve() == (temp_workdir / "data" / "sales.xlsx").resolve()
    assert cfg.database is not None
    assert cfg.database.resolve() == (temp_workdir / "workspace" / "data.db").resolve()
    assert cfg.default_max_rows == 20
    assert [s.sheet_name for s in cfg.sheets] == ["Sales", "People"]

    sales, people = cfg.sheets
    assert sales.table == "sales"
    assert sales.parser == ParserConfig(metadata_rows=1, header_row=2, data_start_row=3)
    assert sales.columns is None
    assert people.parser == ParserConfig()
    assert people.columns == [
        ColumnDefinition("id", "INTEGER", nullable=False),
        ColumnDefinition("name", "TEXT", nullable=False),
    ]


def test_load_job_config_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_job_config(temp_workdir / "config" / "not_exists.yml")


def test_load_job_config_invalid_yaml(temp_workdir: Path):
    cfg = temp_workdir / "config" / "broken.yml"
    cfg.write_text("sheets: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_job_config(cfg)


def test_load_job_config_top_level_list(temp_workdir: Path):
    cfg = temp_workdir / "config" / "list.yml"
    cfg.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_job_config(cfg)


def test_load_job_config_missing_required(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace("source_file: ../data/sales.xlsx\n", "")
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_job_config(write_config)
    assert "config validation failed" in str(e.value) and "required property" in str(e.value)


def test_load_job_config_sheet_without_table(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace("    table: people\n", "")
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_job_config(write_config)
    assert "config validation failed" in str(e.value)
    assert "People" in str(e.value)


def test_load_job_config_extra_field(write_config: Path):
    text = write_config.read_text(encoding="utf-8") + "extra_field: not_allowed\n"
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_job_config(write_config)


def test_load_job_config_rejects_unknown_data_type(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace("data_type: INTEGER", "data_type: BIGINT")
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_job_config(write_config)


def test_absolute_paths_are_kept(tmp_path: Path):
    source = tmp_path / "abs.xlsx"
    cfg = parse_job_config(
        {"source_file": str(source), "sheets": {"S": {"table": "t"}}},
        base_dir=Path("/somewhere/else"),
    )
    assert cfg.source_file == source
    assert cfg.database is None


def test_parse_job_config_mappings_and_dedupe(tmp_path: Path):
    cfg = parse_job_config(
        {
            "source_file": "in.csv",
            "default_max_rows": 5,
            "sheets": {
                "in": {
                    "table": "t",
                    "column_mappings": {"Order ID": "order_id"},
                    "dedupe_columns": True,
                }
            },
        },
        base_dir=tmp_path,
    )
    sheet = cfg.sheets[0]
    assert cfg.default_max_rows == 5
    assert cfg.source_file == tmp_path / "in.csv"
    assert sheet.column_mappings == {"Order ID": "order_id"}
    assert sheet.dedupe_columns is True


def test_validate_payload_parser_config():
    validate_payload({"metadata_rows": 1, "header_row": 2}, "parserConfig")
    with pytest.raises(ConfigError) as e:
        validate_payload({"header_row": 0}, "parserConfig", context="parser_config")
    assert str(e.value).startswith("parser_config validation failed")
    assert "header_row" in str(e.value)


def test_schema_for_unknown_definition():
    with pytest.raises(ConfigError, match="unknown schema definition"):
        schema_for("nope")
    assert schema_for("columnDefinition")["$ref"] == "#/$defs/columnDefinition"


def test_column_data_types_match_schema_enum():
    enum = load_schemas()["$defs"]["columnDefinition"]["properties"]["data_type"]["enum"]
    assert tuple(enum) == DATA_TYPES
