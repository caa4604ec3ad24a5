# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pandas as pd
import pytest

from sheetdb.logging.init import reset_logging


def make_excel(path: Path, sheets: dict[str, list[list[object]]]) -> Path:
    """Write a workbook whose sheets contain exactly the given rows (no header/index)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return path


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "workspace").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def clean_logging():
    # the logger binds sys.stdout at setup time; capsys swaps it per test
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def store(tmp_path: Path) -> Path:
    return tmp_path / "store.db"


@pytest.fixture()
def sales_workbook(temp_workdir: Path) -> Path:
    return make_excel(
        temp_workdir / "data" / "sales.xlsx",
        {
            "Sales": [
                ["Quarterly sales report", None],
                ["Order ID", "Customer Name", "Amount ($)"],
                [1, "Alice", 10.5],
                [2, "Bob", 20],
                [3, "Carol", 7.25],
            ],
            "People": [
                ["id", "name"],
                [1, "Alice"],
                [2, "Bob"],
            ],
        },
    )


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_file: ../data/sales.xlsx
database: ../workspace/data.db
sheets:
  Sales:
    table: sales
    parser:
      metadata_rows: 1
      header_row: 2
      data_start_row: 3
  People:
    table: people
    columns:
      - {name: id, data_type: INTEGER, nullable: false}
      - {name: name, data_type: TEXT, nullable: false}
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "load.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg
