"""
Store summary metrics.

**Conceptual**: A quick picture of the hackathon's state, computed straight
from the store files: how many participants registered, how many teams are
active, how many projects are still being built, and how each entity's
status column breaks down. The bootstrap logs it after the integrity check
and it is the natural payload for a dashboard.

Every entity is loaded into a pandas DataFrame through
Repository.to_dataframe(), so counts are plain column operations. Enum cells
are reduced to their string values before counting, which keeps the output
JSON-friendly.
"""

import enum
from typing import Any

import pandas as pd

from hackstore.data.entities import SCHEMAS
from hackstore.data.repository import Repository


def _plain_values(series: pd.Series) -> pd.Series:
    """Replace enum members with their string values."""
    return series.map(lambda v: v.value if isinstance(v, enum.Enum) else v)


def status_counts(df: pd.DataFrame, column: str = "status") -> dict[str, int]:
    """
    Count rows per value of a status-like column.

    Args:
        df: Entity DataFrame from Repository.to_dataframe().
        column: Column to break down (default "status").

    Returns:
        Dict mapping each value present to its row count, most frequent
        first. Empty if the frame is empty or has no such column.

    Example:
        >>> status_counts(teams_df)
        {'active': 8, 'inactive': 2}
    """
    if df.empty or column not in df.columns:
        return {}

    counts = _plain_values(df[column]).value_counts()
    return {str(value): int(count) for value, count in counts.items()}


def count_where(df: pd.DataFrame, column: str, value: Any) -> int:
    """Number of rows whose `column` equals `value` (enum or its string value)."""
    if df.empty or column not in df.columns:
        return 0

    if isinstance(value, enum.Enum):
        value = value.value
    return int((_plain_values(df[column]) == value).sum())


def summarize_store(repository: Repository, *, skip_malformed: bool = False) -> dict[str, Any]:
    """
    Compute the store summary.

    Args:
        repository: Repository over the data directory to summarise.
        skip_malformed: Passed to Repository.to_dataframe(); when False a
                        malformed row anywhere raises ParseError.

    Returns:
        Dict with:
          - total_participants: rows in the participant store
          - active_teams: teams with status "active"
          - projects_in_development: projects with status "in_development"
          - available_mentors: active mentors whose availability is "available"
          - pending_feedback: feedback entries with status "pending"
          - row_counts: entity name -> number of rows
          - status_counts: entity name -> status_counts() of its status
            column, for entities that have one
    """
    frames = {
        entity: repository.to_dataframe(schema, skip_malformed=skip_malformed)
        for entity, schema in SCHEMAS.items()
    }

    mentors = frames["mentor"]
    if mentors.empty:
        available_mentors = 0
    else:
        available = _plain_values(mentors["availability"]) == "available"
        available_mentors = int((available & mentors["active"].astype(bool)).sum())

    return {
        "total_participants": len(frames["participant"]),
        "active_teams": count_where(frames["team"], "status", "active"),
        "projects_in_development": count_where(frames["project"], "status", "in_development"),
        "available_mentors": available_mentors,
        "pending_feedback": count_where(frames["feedback"], "status", "pending"),
        "row_counts": {entity: len(df) for entity, df in frames.items()},
        "status_counts": {
            entity: status_counts(df)
            for entity, df in frames.items()
            if "status" in df.columns
        },
    }


def format_summary(summary: dict[str, Any]) -> list[str]:
    """Render a summary as human-readable lines for logs or the terminal."""
    lines = [
        f"Participants:             {summary['total_participants']}",
        f"Active teams:             {summary['active_teams']}",
        f"Projects in development:  {summary['projects_in_development']}",
        f"Available mentors:        {summary['available_mentors']}",
        f"Pending feedback:         {summary['pending_feedback']}",
    ]
    for entity, count in summary["row_counts"].items():
        lines.append(f"  {entity:12s} {count:6d} rows")
    return lines
