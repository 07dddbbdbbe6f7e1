"""
Entity schemas for the hackathon store.

Declares the closed status/level enums and one Schema per entity type:
teams, projects, participants, mentors, feedback, progress and categories.

**Conventions shared by every schema**:
  - `id` is non-nullable text; it is the key everywhere except categories,
    which are keyed by their unique name.
  - Optional references (project_id, mentor_id, ...) are nullable text.
  - Id lists use ";" except the project's progress and feedback references,
    which use "|".
  - Creation dates of projects and categories fall back to "now" when the
    stored text is missing or malformed. Every other timestamp falls back
    to None.

`build_schemas(clock)` builds the full set with a given clock for the "now"
fallbacks. The module-level constants use the real clock.
"""

import enum

from hackstore.data.codecs import (
    BoolCodec,
    DateTimeCodec,
    DateTimeFallback,
    EnumCodec,
    IntCodec,
    ListCodec,
    StructuredListCodec,
    TextCodec,
)
from hackstore.data.schemas import Field, Schema
from hackstore.utils.time import Clock, get_real_clock


class TeamStatus(enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ProjectStatus(enum.Enum):
    IN_DEVELOPMENT = "in_development"
    COMPLETED = "completed"
    PAUSED = "paused"


class ParticipantStatus(enum.Enum):
    ACTIVE = "active"
    PENDING = "pending"
    OFFLINE = "offline"


class MentorAvailability(enum.Enum):
    AVAILABLE = "available"
    BUSY = "busy"
    OFFLINE = "offline"


class ProgressStatus(enum.Enum):
    PENDING = "pending"
    IN_REVIEW = "in_review"
    APPROVED = "approved"


class FeedbackLevel(enum.Enum):
    INFORMATIVE = "informative"
    CORRECTION = "correction"
    PRAISE = "praise"


class FeedbackStatus(enum.Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    APPLIED = "applied"


class Visibility(enum.Enum):
    PUBLIC = "public"
    PRIVATE = "private"


ID = TextCodec(nullable=False)
NAME = TextCodec(nullable=False)
TEXT = TextCodec()
IDS = ListCodec(separator=";")
PIPE_IDS = ListCodec(separator="|")
OPTIONAL_TIME = DateTimeCodec(DateTimeFallback.NONE)


def build_schemas(clock: Clock | None = None) -> dict[str, Schema]:
    """
    Build every entity schema, keyed by entity name.

    Args:
        clock: Clock used by the "now" date fallbacks. Defaults to get_real_clock().

    Returns:
        Dict mapping entity name ("team", "project", ...) to its Schema, in
        the order the integrity check visits them.
    """
    clock = clock or get_real_clock()
    created_or_now = DateTimeCodec(DateTimeFallback.NOW, clock=clock)

    team = Schema("team", "teams.csv", (
        Field("id", ID, is_key=True),
        Field("name", NAME),
        Field("description", TEXT),
        Field("category", TEXT),
        Field("project_id", TEXT),
        Field("mentor_id", TEXT),
        Field("participants", IDS),
        Field("created_at", OPTIONAL_TIME),
        Field("status", EnumCodec(TeamStatus, TeamStatus.ACTIVE)),
        Field("chat_channel_id", TEXT),
        Field("score", IntCodec(default=0)),
        Field("history", StructuredListCodec(value_key="detail")),
    ))

    project = Schema("project", "projects.csv", (
        Field("id", ID, is_key=True),
        Field("name", NAME),
        Field("description", TEXT),
        Field("category", TEXT),
        Field("status", EnumCodec(ProjectStatus, ProjectStatus.IN_DEVELOPMENT)),
        Field("created_at", created_or_now),
        Field("updated_at", created_or_now),
        Field("team_id", TEXT),
        Field("mentor_id", TEXT),
        Field("progress_ids", PIPE_IDS),
        Field("feedback_ids", PIPE_IDS),
        Field("repository_url", TEXT),
        Field("score", IntCodec(default=0)),
        Field("visibility", EnumCodec(Visibility, Visibility.PUBLIC)),
        Field("tags", IDS),
    ))

    participant = Schema("participant", "participants.csv", (
        Field("id", ID, is_key=True),
        Field("name", NAME),
        Field("email", TEXT),
        Field("username", TEXT),
        Field("role", TEXT),
        Field("team_id", TEXT),
        Field("experience", TEXT),
        Field("registered_at", OPTIONAL_TIME),
        Field("status", EnumCodec(ParticipantStatus, ParticipantStatus.ACTIVE)),
        Field("last_seen_at", OPTIONAL_TIME),
        Field("messages", StructuredListCodec(value_key="message")),
        Field("channels", IDS),
        Field("session_token", TEXT),
        Field("profile_url", TEXT),
    ))

    mentor = Schema("mentor", "mentors.csv", (
        Field("id", ID, is_key=True),
        Field("name", NAME),
        Field("email", TEXT),
        Field("specialty", TEXT),
        Field("biography", TEXT),
        Field("assigned_teams", IDS),
        Field("availability", EnumCodec(MentorAvailability, MentorAvailability.OFFLINE)),
        Field("mentoring_channel_id", TEXT),
        Field("registered_at", OPTIONAL_TIME),
        Field("feedback_ids", IDS),
        Field("role", TEXT),
        Field("active", BoolCodec()),
    ))

    feedback = Schema("feedback", "feedback.csv", (
        Field("id", ID, is_key=True),
        Field("mentor_id", TEXT),
        Field("project_id", TEXT),
        Field("team_id", TEXT),
        Field("progress_id", TEXT),
        Field("content", TEXT),
        Field("created_at", OPTIONAL_TIME),
        Field("level", EnumCodec(FeedbackLevel, FeedbackLevel.INFORMATIVE)),
        Field("visibility", EnumCodec(Visibility, Visibility.PRIVATE)),
        Field("status", EnumCodec(FeedbackStatus, FeedbackStatus.PENDING)),
    ))

    progress = Schema("progress", "progress.csv", (
        Field("id", ID, is_key=True),
        Field("project_id", TEXT),
        Field("team_id", TEXT),
        Field("title", TEXT),
        Field("description", TEXT),
        Field("registered_at", OPTIONAL_TIME),
        Field("author_id", TEXT),
        Field("status", EnumCodec(ProgressStatus, ProgressStatus.PENDING)),
        Field("mentor_notes", TEXT),
        Field("attachments", StructuredListCodec(value_key="url")),
        # Revision counter starts at 1
        Field("version", IntCodec(default=1)),
    ))

    category = Schema("category", "categories.csv", (
        Field("id", TEXT),
        Field("name", NAME, is_key=True),
        Field("description", TEXT),
        Field("projects", IDS),
        Field("created_at", created_or_now),
        Field("creator_id", TEXT),
        Field("active", BoolCodec()),
    ))

    return {
        schema.entity: schema
        for schema in (category, feedback, mentor, participant, progress, project, team)
    }


SCHEMAS = build_schemas()

CATEGORY = SCHEMAS["category"]
FEEDBACK = SCHEMAS["feedback"]
MENTOR = SCHEMAS["mentor"]
PARTICIPANT = SCHEMAS["participant"]
PROGRESS = SCHEMAS["progress"]
PROJECT = SCHEMAS["project"]
TEAM = SCHEMAS["team"]

ALL_SCHEMAS = tuple(SCHEMAS.values())
