"""
Tests for hackstore/data/repository.py

This module tests:
  - Round trips through the store file for real entity schemas.
  - Upsert semantics (last write wins, one row per key, append at end).
  - Delete precision and the not-found contract.
  - Malformed rows: abort by default, skip on request.
  - Query helpers (filter_by, find_first, count) and DataFrame export.

All tests use temporary directories (via tmp_path fixture) to avoid polluting
the real data/ directory.
"""

from datetime import datetime, timezone

import pytest

from hackstore.data.entities import (
    CATEGORY,
    FEEDBACK,
    MENTOR,
    TEAM,
    FeedbackStatus,
    MentorAvailability,
    ProjectStatus,
    TeamStatus,
    build_schemas,
)
from hackstore.data.repository import Repository
from hackstore.data.schemas import ParseError, RecordNotFoundError, SchemaDefinitionError
from hackstore.utils.time import FrozenClock

CREATED = datetime(2025, 11, 1, 9, 30, tzinfo=timezone.utc)


# ============================================================================
# Helper functions for test data generation
# ============================================================================

def make_team(team_id: str = "T1", **overrides) -> dict:
    """A fully populated team record whose values survive a round trip unchanged."""
    team = {
        "id": team_id,
        "name": "Rocket",
        "description": "Reusable launchers",
        "category": "space",
        "project_id": "P1",
        "mentor_id": None,
        "participants": ["u1", "u2"],
        "created_at": CREATED,
        "status": TeamStatus.ACTIVE,
        "chat_channel_id": "c-7",
        "score": 12,
        "history": [{"detail": "created", "timestamp": CREATED}],
    }
    team.update(overrides)
    return team


def make_feedback(feedback_id: str, project_id: str, status: FeedbackStatus) -> dict:
    return {
        "id": feedback_id,
        "mentor_id": "M1",
        "project_id": project_id,
        "content": "Nice demo",
        "status": status,
    }


def data_rows(repo: Repository, schema) -> list[str]:
    """Raw data lines of a store file (header excluded)."""
    return repo.path_for(schema).read_text(encoding="utf-8").splitlines()[1:]


# ============================================================================
# Reads on missing / empty files
# ============================================================================

def test_list_all_missing_file_is_empty(tmp_path):
    repo = Repository(tmp_path)

    assert repo.list_all(TEAM) == []
    assert repo.find_by_key(TEAM, "T1") is None
    assert repo.count(TEAM) == 0
    # Reading never creates the file
    assert not repo.path_for(TEAM).exists()


def test_header_only_file_is_empty(tmp_path):
    (tmp_path / "teams.csv").write_text(TEAM.header + "\n")
    assert Repository(tmp_path).list_all(TEAM) == []


# ============================================================================
# Round trip and normalisation
# ============================================================================

def test_upsert_then_find_round_trip(tmp_path):
    repo = Repository(tmp_path)
    team = make_team()

    repo.upsert(TEAM, team)

    assert repo.find_by_key(TEAM, "T1") == team


def test_file_layout_after_upsert(tmp_path):
    repo = Repository(tmp_path)
    repo.upsert(TEAM, make_team())

    content = repo.path_for(TEAM).read_text(encoding="utf-8")
    lines = content.splitlines()

    assert lines[0] == TEAM.header
    assert lines[1] == (
        "T1,Rocket,Reusable launchers,space,P1,,u1;u2,"
        "2025-11-01T09:30:00+00:00,active,c-7,12,"
        "created~2025-11-01T09:30:00+00:00"
    )
    assert content.endswith("\n")
    assert sorted(p.name for p in tmp_path.iterdir()) == ["teams.csv"]


def test_commas_in_text_are_normalised(tmp_path):
    """A comma inside free text reads back as a semicolon."""
    repo = Repository(tmp_path)
    repo.upsert(TEAM, make_team(description="fast, cheap\nand good"))

    stored = repo.find_by_key(TEAM, "T1")

    assert stored["description"] == "fast; cheap and good"
    assert len(data_rows(repo, TEAM)) == 1


def test_upsert_returns_normalised_record(tmp_path):
    """Missing fields get defaults, unknown fields are dropped, text is sanitised."""
    repo = Repository(tmp_path)

    result = repo.upsert(TEAM, {"id": "T1", "name": "Rocket, Inc", "nickname": "R"})

    assert result["name"] == "Rocket; Inc"
    assert result["status"] is TeamStatus.ACTIVE
    assert result["participants"] == []
    assert result["score"] == 0
    assert "nickname" not in result
    assert repo.find_by_key(TEAM, "T1") == result


# ============================================================================
# Upsert semantics
# ============================================================================

def test_upsert_replaces_existing_record(tmp_path):
    """Upserting T1 twice leaves exactly one T1 row holding the latest values."""
    repo = Repository(tmp_path)
    repo.upsert(TEAM, make_team("T1", participants=["u1", "u2"]))

    repo.upsert(TEAM, make_team("T1", participants=["u1", "u3"]))

    t1_rows = [row for row in data_rows(repo, TEAM) if row.split(",")[0] == "T1"]
    assert len(t1_rows) == 1
    assert repo.find_by_key(TEAM, "T1")["participants"] == ["u1", "u3"]


def test_upsert_is_idempotent(tmp_path):
    repo = Repository(tmp_path)
    repo.upsert(TEAM, make_team("T1"))
    repo.upsert(TEAM, make_team("T2"))
    before = repo.path_for(TEAM).read_bytes()

    repo.upsert(TEAM, make_team("T2"))

    assert repo.path_for(TEAM).read_bytes() == before


def test_upsert_moves_replaced_record_to_end(tmp_path):
    repo = Repository(tmp_path)
    for team_id in ("T1", "T2", "T3"):
        repo.upsert(TEAM, make_team(team_id))

    repo.upsert(TEAM, make_team("T1", name="Rocket II"))

    assert [t["id"] for t in repo.list_all(TEAM)] == ["T2", "T3", "T1"]


@pytest.mark.parametrize("record", [{"name": "Keyless"}, {"id": "", "name": "Blank"}, {"id": None}])
def test_upsert_without_key_rejected(tmp_path, record):
    repo = Repository(tmp_path)

    with pytest.raises(SchemaDefinitionError, match="key field 'id'"):
        repo.upsert(TEAM, record)
    assert not repo.path_for(TEAM).exists()


def test_keys_compare_in_encoded_form(tmp_path):
    """A category name with a comma matches its sanitised stored form."""
    repo = Repository(tmp_path)
    repo.upsert(CATEGORY, {"name": "AI, robotics", "active": True})

    repo.upsert(CATEGORY, {"name": "AI, robotics", "active": False})

    assert repo.count(CATEGORY) == 1
    stored = repo.find_by_key(CATEGORY, "AI, robotics")
    assert stored["name"] == "AI; robotics"
    assert stored["active"] is False


def test_now_fallback_dates_are_filled_on_read(tmp_path):
    """Project dates stored empty read back as the clock's "now"."""
    fixed = datetime(2025, 11, 16, tzinfo=timezone.utc)
    project = build_schemas(FrozenClock(fixed))["project"]
    repo = Repository(tmp_path)

    result = repo.upsert(project, {"id": "P1", "name": "Rover"})

    assert result["created_at"] == fixed
    assert result["status"] is ProjectStatus.IN_DEVELOPMENT
    assert repo.find_by_key(project, "P1")["updated_at"] == fixed


def test_utc_z_timestamps_survive_neighbour_rewrite(tmp_path):
    """Rows stored with "Z" timestamps keep them when another row is written."""
    legacy_row = TEAM.encode_record(make_team("T1")).replace("+00:00", "Z")
    (tmp_path / TEAM.filename).write_text(f"{TEAM.header}\n{legacy_row}\n", encoding="utf-8")
    repo = Repository(tmp_path)

    repo.upsert(TEAM, make_team("T2"))

    stored = repo.find_by_key(TEAM, "T1")
    assert stored["created_at"] == CREATED
    assert stored["history"] == [{"detail": "created", "timestamp": CREATED}]


# ============================================================================
# Delete
# ============================================================================

def test_delete_removes_only_that_row(tmp_path):
    """Every other row is rewritten byte-identically."""
    repo = Repository(tmp_path)
    for team_id in ("T1", "T2", "T3"):
        repo.upsert(TEAM, make_team(team_id))
    rows = data_rows(repo, TEAM)

    repo.delete(TEAM, "T2")

    assert data_rows(repo, TEAM) == [rows[0], rows[2]]
    assert repo.find_by_key(TEAM, "T2") is None


def test_delete_missing_key_raises_and_leaves_file(tmp_path):
    repo = Repository(tmp_path)
    repo.upsert(TEAM, make_team("T1"))
    before = repo.path_for(TEAM).read_bytes()

    with pytest.raises(RecordNotFoundError) as exc_info:
        repo.delete(TEAM, "T9")

    assert exc_info.value.key == "T9"
    assert repo.path_for(TEAM).read_bytes() == before


def test_delete_on_missing_file_raises(tmp_path):
    repo = Repository(tmp_path)

    with pytest.raises(RecordNotFoundError):
        repo.delete(TEAM, "T1")
    assert not repo.path_for(TEAM).exists()


def test_delete_last_record_leaves_header(tmp_path):
    repo = Repository(tmp_path)
    repo.upsert(TEAM, make_team("T1"))

    repo.delete(TEAM, "T1")

    assert repo.path_for(TEAM).read_text(encoding="utf-8") == TEAM.header + "\n"


# ============================================================================
# Malformed rows
# ============================================================================

def write_team_file_with_bad_row(tmp_path):
    good = TEAM.encode_record(make_team("T1"))
    content = f"{TEAM.header}\n{good}\n\nT2,only,three\n"
    path = tmp_path / TEAM.filename
    path.write_text(content, encoding="utf-8")
    return path


def test_malformed_row_aborts_list_all(tmp_path):
    write_team_file_with_bad_row(tmp_path)

    with pytest.raises(ParseError) as exc_info:
        Repository(tmp_path).list_all(TEAM)

    err = exc_info.value
    assert err.line == "T2,only,three"
    assert err.line_number == 4
    assert err.found == 3
    assert err.expected == len(TEAM.fields)


def test_malformed_row_skipped_on_request(tmp_path, caplog):
    write_team_file_with_bad_row(tmp_path)

    with caplog.at_level("WARNING", logger="hackstore.data.repository"):
        records = Repository(tmp_path).list_all(TEAM, skip_malformed=True)

    assert [r["id"] for r in records] == ["T1"]
    assert "Skipping malformed team row" in caplog.text


def test_write_over_malformed_row_raises_and_leaves_file(tmp_path):
    path = write_team_file_with_bad_row(tmp_path)
    before = path.read_bytes()
    repo = Repository(tmp_path)

    with pytest.raises(ParseError):
        repo.upsert(TEAM, make_team("T3"))
    with pytest.raises(ParseError):
        repo.delete(TEAM, "T1")

    assert path.read_bytes() == before


def test_header_line_is_skipped_whatever_it_says(tmp_path):
    good = TEAM.encode_record(make_team("T1"))
    (tmp_path / TEAM.filename).write_text(f"not,the,header\n{good}\n")

    assert [r["id"] for r in Repository(tmp_path).list_all(TEAM)] == ["T1"]


def test_crlf_rows_decode(tmp_path):
    good = TEAM.encode_record(make_team("T1"))
    (tmp_path / TEAM.filename).write_bytes(f"{TEAM.header}\r\n{good}\r\n".encode())

    assert Repository(tmp_path).find_by_key(TEAM, "T1") == make_team("T1")


# ============================================================================
# Query helpers
# ============================================================================

def test_filter_by_and_find_first(tmp_path):
    repo = Repository(tmp_path)
    repo.upsert(FEEDBACK, make_feedback("F1", "P1", FeedbackStatus.PENDING))
    repo.upsert(FEEDBACK, make_feedback("F2", "P2", FeedbackStatus.REVIEWED))
    repo.upsert(FEEDBACK, make_feedback("F3", "P1", FeedbackStatus.APPLIED))

    assert [f["id"] for f in repo.filter_by(FEEDBACK, "project_id", "P1")] == ["F1", "F3"]
    assert repo.filter_by(FEEDBACK, "project_id", "P9") == []
    assert repo.find_first(FEEDBACK, "project_id", "P2")["id"] == "F2"
    assert repo.find_first(FEEDBACK, "project_id", "P9") is None


def test_filter_by_enum_member_or_value(tmp_path):
    repo = Repository(tmp_path)
    repo.upsert(MENTOR, {"id": "M1", "name": "Ada", "availability": MentorAvailability.AVAILABLE})
    repo.upsert(MENTOR, {"id": "M2", "name": "Alan", "availability": MentorAvailability.BUSY})

    by_member = repo.filter_by(MENTOR, "availability", MentorAvailability.AVAILABLE)
    by_value = repo.filter_by(MENTOR, "availability", "available")

    assert [m["id"] for m in by_member] == ["M1"]
    assert by_member == by_value


def test_find_first_by_email(tmp_path):
    repo = Repository(tmp_path)
    repo.upsert(MENTOR, {"id": "M1", "name": "Ada", "email": "ada@example.org"})

    assert repo.find_first(MENTOR, "email", "ada@example.org")["id"] == "M1"


def test_filter_by_unknown_field_raises(tmp_path):
    with pytest.raises(SchemaDefinitionError):
        Repository(tmp_path).filter_by(TEAM, "colour", "red")


# ============================================================================
# DataFrame export
# ============================================================================

def test_to_dataframe_columns_follow_schema(tmp_path):
    repo = Repository(tmp_path)
    repo.upsert(TEAM, make_team("T1"))
    repo.upsert(TEAM, make_team("T2", status=TeamStatus.INACTIVE))

    df = repo.to_dataframe(TEAM)

    assert list(df.columns) == TEAM.field_names
    assert list(df["id"]) == ["T1", "T2"]
    assert list(df["status"]) == [TeamStatus.ACTIVE, TeamStatus.INACTIVE]


def test_to_dataframe_missing_file(tmp_path):
    df = Repository(tmp_path).to_dataframe(TEAM)

    assert df.empty
    assert list(df.columns) == TEAM.field_names
