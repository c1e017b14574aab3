from __future__ import annotations

import json
from pathlib import Path

import pytest

from company_reconciler.cli.__main__ import main as cli_main

"""JSON result document contract: fixed envelope, camelCase keys throughout."""

ENVELOPE = {"success", "operation", "dryRun", "counts"}
COUNT_KEYS = ["processed", "skipped", "allocated", "changed"]


def _document(out: str) -> dict:
    lines = [line for line in out.splitlines() if line.startswith("{")]
    assert len(lines) == 1, out
    return json.loads(lines[0])


def _keys(value) -> set[str]:
    if isinstance(value, dict):
        keys = set(value)
        for v in value.values():
            keys |= _keys(v)
        return keys
    if isinstance(value, list):
        keys: set[str] = set()
        for v in value:
            keys |= _keys(v)
        return keys
    return set()


@pytest.mark.parametrize(
    "command,payload_key",
    [
        ("project", "companies"),
        ("duplicates", "duplicates"),
        ("gaps", "gaps"),
        ("renumber", "changes"),
    ],
)
def test_document_envelope(command: str, payload_key: str, database_workbook: Path, write_config: Path, capsys):
    assert cli_main([command]) == 0
    doc = _document(capsys.readouterr().out)
    assert ENVELOPE <= set(doc)
    assert doc["operation"] == command
    assert list(doc["counts"]) == COUNT_KEYS
    assert payload_key in doc


def test_document_keys_are_camel_case(database_workbook: Path, write_config: Path, capsys):
    assert cli_main(["project", "--dry-run"]) == 0
    doc = _document(capsys.readouterr().out)
    assert not [k for k in _keys(doc) if "_" in k]
    assert {"urgencyScore", "followUpCount", "lastUpdate"} <= set(doc["companies"][0])


def test_failure_document(temp_workdir: Path, capsys):
    assert cli_main(["gaps"]) == 1
    doc = _document(capsys.readouterr().out)
    assert doc["success"] is False
    assert set(doc) == {"success", "message"}
