from __future__ import annotations

from pathlib import Path

from company_reconciler.cli.__main__ import EXIT_FATAL, EXIT_SUCCESS, main as cli_main

"""Exit code contract: 0 on success, 1 on any configuration or run-level failure."""


def test_exit_code_success(database_workbook: Path, write_config: Path, capsys):
    assert cli_main(["gaps"]) == EXIT_SUCCESS == 0


def test_exit_code_missing_config(temp_workdir: Path, capsys):
    code = cli_main(["project"])
    assert code == EXIT_FATAL == 1
    assert "ERROR config:" in capsys.readouterr().out


def test_exit_code_missing_marker_sheet(temp_workdir: Path, write_config: Path, make_workbook, capsys):
    make_workbook(temp_workdir / "data" / "companies.xlsx", {"Sheet1": [["No.", "Company Name"]]})
    code = cli_main(["project"])
    out = capsys.readouterr().out
    assert code == EXIT_FATAL
    assert "ERROR project:" in out
    assert "AUTOMATION ONLY" in out


def test_exit_code_corrupt_workbook(temp_workdir: Path, write_config: Path, capsys):
    (temp_workdir / "data" / "companies.xlsx").write_bytes(b"this is not a workbook")
    code = cli_main(["duplicates"])
    out = capsys.readouterr().out
    assert code == EXIT_FATAL
    assert "ERROR duplicates:" in out
    # a failed run never writes the tracker
    assert not (temp_workdir / "data" / "tracker.xlsx").exists()
