"""
Tests for hackstore/data/integrity.py

This module tests:
  - Creation of missing store files with exactly the header line.
  - Header repair that preserves every data row byte-for-byte.
  - The read-only check and idempotence of ensure_all().
"""

import logging

import pytest

from hackstore.data.codecs import IntCodec, TextCodec
from hackstore.data.entities import ALL_SCHEMAS, TEAM
from hackstore.data.integrity import IntegrityAction, IntegrityManager
from hackstore.data.repository import Repository
from hackstore.data.schemas import Field, ParseError, Schema


# ============================================================================
# Helper functions
# ============================================================================

def make_legacy_team_file(path, n_rows: int = 3, newline: str = "\n") -> bytes:
    """Write a team file with an outdated header and N valid rows; return its rows."""
    rows = "".join(
        TEAM.encode_record({"id": f"T{i}", "name": f"Team {i}"}) + newline
        for i in range(1, n_rows + 1)
    )
    path.write_bytes(("id,nombre,descripcion" + newline + rows).encode("utf-8"))
    return rows.encode("utf-8")


# ============================================================================
# ensure / ensure_all
# ============================================================================

def test_ensure_all_creates_every_file(tmp_path):
    data_dir = tmp_path / "data"
    manager = IntegrityManager(data_dir)

    results = manager.ensure_all()

    assert results == {schema.entity: IntegrityAction.CREATED for schema in ALL_SCHEMAS}
    for schema in ALL_SCHEMAS:
        assert (data_dir / schema.filename).read_text(encoding="utf-8") == schema.header + "\n"


def test_ensure_all_is_idempotent(tmp_path):
    manager = IntegrityManager(tmp_path)
    manager.ensure_all()
    snapshot = {p.name: p.read_bytes() for p in tmp_path.iterdir()}

    results = manager.ensure_all()

    assert set(results.values()) == {IntegrityAction.OK}
    assert {p.name: p.read_bytes() for p in tmp_path.iterdir()} == snapshot


def test_ensure_repairs_header_and_keeps_rows(tmp_path):
    path = tmp_path / TEAM.filename
    rows = make_legacy_team_file(path, n_rows=5)
    manager = IntegrityManager(tmp_path)

    assert manager.ensure(TEAM) is IntegrityAction.REPAIRED

    content = path.read_bytes()
    assert content == (TEAM.header + "\n").encode("utf-8") + rows
    assert [t["id"] for t in Repository(tmp_path).list_all(TEAM)] == [
        "T1", "T2", "T3", "T4", "T5"
    ]


def test_ensure_repair_preserves_crlf_rows(tmp_path):
    path = tmp_path / TEAM.filename
    rows = make_legacy_team_file(path, n_rows=2, newline="\r\n")

    IntegrityManager(tmp_path).ensure(TEAM)

    assert path.read_bytes() == (TEAM.header + "\r\n").encode("utf-8") + rows


def test_ensure_repairs_empty_file(tmp_path):
    path = tmp_path / TEAM.filename
    path.write_bytes(b"")

    assert IntegrityManager(tmp_path).ensure(TEAM) is IntegrityAction.REPAIRED
    assert path.read_text(encoding="utf-8") == TEAM.header + "\n"


def test_repair_does_not_fix_stale_rows(tmp_path):
    """Only line 1 is touched: rows with an old field count still fail to parse."""
    path = tmp_path / TEAM.filename
    path.write_text("id,name\nT1,Rocket\n", encoding="utf-8")

    IntegrityManager(tmp_path).ensure(TEAM)

    assert path.read_text(encoding="utf-8") == TEAM.header + "\nT1,Rocket\n"
    with pytest.raises(ParseError):
        Repository(tmp_path).list_all(TEAM)


def test_ensure_logs_actions(tmp_path, caplog):
    manager = IntegrityManager(tmp_path)
    make_legacy_team_file(tmp_path / TEAM.filename)

    with caplog.at_level(logging.INFO, logger="hackstore.data.integrity"):
        manager.ensure_all()

    assert "Created missing store file" in caplog.text
    assert "Repaired header of" in caplog.text
    assert "Store integrity verified" in caplog.text


# ============================================================================
# check
# ============================================================================

def test_check_is_read_only(tmp_path):
    manager = IntegrityManager(tmp_path)
    path = tmp_path / TEAM.filename

    assert manager.check(TEAM) is False
    assert not path.exists()

    make_legacy_team_file(path)
    assert manager.check(TEAM) is False

    manager.ensure(TEAM)
    assert manager.check(TEAM) is True


def test_custom_schema_set(tmp_path):
    tags = Schema("tag", "tags.csv", [
        Field("id", TextCodec(nullable=False), is_key=True),
        Field("weight", IntCodec()),
    ])

    results = IntegrityManager(tmp_path, schemas=[tags]).ensure_all()

    assert results == {"tag": IntegrityAction.CREATED}
    assert [p.name for p in tmp_path.iterdir()] == ["tags.csv"]
