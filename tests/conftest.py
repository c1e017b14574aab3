# Shared pytest fixtures
from __future__ import annotations
import tempfile
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from company_reconciler.logging.init import reset_logging

DB_SHEET = "Companies (AUTOMATION ONLY)"
TRACKER_SHEET = "Outreach Tracker"

DB_HEADER = [
    "No.", "Company Name", "Discipline", "Target Sponsorship Tier", "Previous Response",
    "Contact Name", "Role", "Email", "Phone", "Landline", "LinkedIn", "", "Remark",
    "PIC", "Last Updated", "Status", "Follow Ups Completed",
]


def db_row(
    company_id: str,
    name: str,
    *,
    contact: str = "",
    email: str = "",
    remark: str = "",
    pic: str = "",
    updated: str = "",
    status: str = "",
    follow_ups: Any = "",
) -> list[Any]:
    """One company-database row laid out like DB_HEADER."""
    return [
        company_id, name, "", "", "", contact, "", email, "", "", "", "", remark,
        pic, updated, status, follow_ups,
    ]


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("RECON_DATABASE_WORKBOOK", raising=False)
        monkeypatch.delenv("RECON_TRACKER_WORKBOOK", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """database:
  workbook: ./data/companies.xlsx
  sheet_marker: "AUTOMATION ONLY"
tracker:
  workbook: ./data/tracker.xlsx
  sheet: Outreach Tracker
identifier:
  prefix: ME
  width: 4
log_directory: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "reconcile.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def write_workbook(path: Path, sheets: dict[str, Sequence[Sequence[Any]]]) -> Path:
    """Write raw rows (no header interpretation) to an .xlsx, one tab per entry."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet_name, rows in sheets.items():
            pd.DataFrame([list(r) for r in rows]).to_excel(
                writer, sheet_name=sheet_name, header=False, index=False
            )
    return path


@pytest.fixture()
def make_workbook() -> Callable[[Path, dict[str, Sequence[Sequence[Any]]]], Path]:
    return write_workbook


@pytest.fixture()
def database_rows() -> list[list[Any]]:
    """Small messy company database: header, contacts, a blank id, a legend block."""
    return [
        DB_HEADER,
        db_row("ME-0001", "Acme Inc", contact="Alice", email="alice@acme.test", pic="Ben",
               updated="2024-03-01", status="Contacted", follow_ups=1),
        db_row("ME-0001", "Acme Inc", contact="Bob", email="bob@acme.test",
               updated="2024-04-15", status="Interested", follow_ups=2),
        db_row("", "Acme Inc", contact="Carol", remark="second office"),
        db_row("ME-0002", "Globex", contact="Dan", status="Completed"),
        [],
        db_row("ME-0005", "Initech", contact="Erin"),
        ["legend", "contacted for info"],
        ["", "Cold call"],
    ]


@pytest.fixture()
def database_workbook(temp_workdir: Path, database_rows) -> Path:
    return write_workbook(
        temp_workdir / "data" / "companies.xlsx",
        {"Notes": [["free text"]], DB_SHEET: database_rows},
    )
