"""
Data models for the Dinostroids API.

Key Models:
    - LeaderboardEntry: A row added to the top-10 board
    - ScoreSubmission: Validated and normalized POST /leaderboard payload
    - CounterIncrement / CounterReading: Results of the games-played counter

Wire format:
    Fields are camelCase on the wire (createdAt, previousCount, newCount)
    because the browser client reads them directly.
"""

import math
from datetime import datetime, timezone
from typing import Any, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)


# Optional client-reported fields are stored as sent when they are JSON scalars
ClientValue = Union[str, int, float, bool, None]


def keep_scalar(value: Any) -> ClientValue:
    """Pass JSON scalars through, drop anything else (objects, arrays, NaN)."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, (str, int, float, bool)):
        return value
    return None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """
    Format an instant as ISO-8601 UTC with millisecond precision.

    Example:
        2025-05-28T12:34:56.789Z
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class LeaderboardEntry(BaseModel):
    """
    A newly submitted leaderboard row.

    Only used to build the row a submission adds. Rows already on the board
    are kept as the raw dicts the store returned and are never re-parsed, so
    fields this model doesn't know about survive every write.

    Attributes:
        initials: 1-3 uppercase characters
        score: Non-negative score (checked by ScoreSubmission)
        created_at: Creation instant (``createdAt`` on the wire)
        time: Game duration in milliseconds, if the client reported it
        difficulty: Difficulty played, if reported
        level: Level reached, if reported
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    initials: str
    score: int | float
    created_at: datetime = Field(default_factory=utc_now, alias="createdAt")
    time: ClientValue = None
    difficulty: ClientValue = None
    level: ClientValue = None

    @field_serializer("created_at")
    def serialize_created_at(self, value: datetime) -> str:
        return format_timestamp(value)

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict, omitting optional fields the client never sent."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ScoreSubmission(BaseModel):
    """
    A score submitted by the game client.

    Validation rules:
        - initials must be present and coercible to a non-empty string;
          falsy values (None, "", 0, False) are rejected
        - score must be a real number (not a bool or numeric string) >= 0

    Normalization:
        Initials are upper-cased and truncated to 3 characters. Longer input
        is accepted and cut, not rejected.

    The optional time/difficulty/level fields never fail a submission: JSON
    scalars are kept as sent, anything else is dropped.
    """
    initials: str
    score: int | float
    time: ClientValue = None
    difficulty: ClientValue = None
    level: ClientValue = None

    @field_validator("initials", mode="before")
    @classmethod
    def normalize_initials(cls, v):
        if not v:
            raise ValueError("initials are required")
        if isinstance(v, (dict, list, tuple, set)):
            raise ValueError("initials must be a string")
        return str(v).upper()[:3]

    @field_validator("score", mode="before")
    @classmethod
    def check_score(cls, v):
        # bool is an int subclass; "true" is not a score
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("score must be a number")
        if not math.isfinite(v) or v < 0:
            raise ValueError("score must be a non-negative number")
        return v

    @field_validator("time", "difficulty", "level", mode="before")
    @classmethod
    def drop_non_scalars(cls, v):
        return keep_scalar(v)


class CounterIncrement(BaseModel):
    """Result of incrementing the games-played counter."""
    model_config = ConfigDict(populate_by_name=True)

    previous_count: int | None = Field(default=None, serialization_alias="previousCount")
    new_count: int = Field(serialization_alias="newCount")


class CounterReading(BaseModel):
    """
    Result of reading the games-played counter.

    ``error`` is set when the store failed and ``count`` is the fallback
    display value rather than the stored one.
    """
    count: int
    error: str | None = None

    @property
    def degraded(self) -> bool:
        return self.error is not None
