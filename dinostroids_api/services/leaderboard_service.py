"""
Leaderboard service - bounded top-N maintenance.

System Design Concept:
    The whole board lives under one key as a JSON array of at most
    MAX_ENTRIES rows, sorted by descending score. A submission is a
    read-modify-write over the full array:

        1. Read current rows (empty if absent)
        2. Build the new entry (createdAt = now)
        3. Append it
        4. Stable sort, descending by score
        5. Truncate to MAX_ENTRIES
        6. SET the array back, overwriting whatever is stored

    Ties keep storage order, so a new entry ranks after existing entries
    with the same score.

Race Condition:
    Without compare-and-swap, two concurrent submissions can read the same
    rows and the second SET silently drops the first entry, although both
    callers were told they succeeded. Low write volume makes this
    acceptable by default. With ``serialize_submissions`` on, steps 1-6 run
    under a per-key store lock.

At Scale:
    - Redis sorted set (ZADD + ZREMRANGEBYRANK) makes insert-and-trim atomic
    - Or a Lua script performing append/sort/trim server-side
"""

import logging
from typing import Any, Dict, List

from pydantic import ValidationError as PydanticValidationError

from dinostroids_api.config import settings
from dinostroids_api.errors import StoreError, ValidationError
from dinostroids_api.models import LeaderboardEntry, ScoreSubmission, utc_now
from dinostroids_api.storage.base import KeyValueStore

logger = logging.getLogger(__name__)

INVALID_INPUT_MESSAGE = (
    "Invalid input. Requires initials (string) and score (positive number)."
)


Row = Dict[str, Any]


def row_score(row: Any) -> float:
    """
    Ranking key for a stored row.

    Rows without a numeric score (foreign or hand-edited data) rank below
    every scored row, so they are the first to be evicted.
    """
    score = row.get("score") if isinstance(row, dict) else None
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        return float("-inf")
    return score


def rank_entries(rows: List[Row]) -> List[Row]:
    """Sort descending by score, keeping storage order for equal scores."""
    return sorted(rows, key=row_score, reverse=True)


class LeaderboardService:
    """
    Top-N leaderboard over a single store key.

    Attributes:
        key: Store key holding the JSON array
        max_entries: Board capacity, enforced on write only
        serialize_submissions: Run submit under a store lock
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str | None = None,
        max_entries: int | None = None,
        serialize_submissions: bool | None = None,
        lock_timeout: float | None = None,
    ):
        self.store = store
        self.key = key or settings.leaderboard_key
        self.max_entries = (
            settings.leaderboard_max_entries if max_entries is None else max_entries
        )
        self.serialize_submissions = (
            settings.serialize_submissions
            if serialize_submissions is None
            else serialize_submissions
        )
        self.lock_timeout = (
            settings.submission_lock_timeout if lock_timeout is None else lock_timeout
        )

    async def _load(self) -> List[Row]:
        raw = await self.store.get(self.key)
        if raw is None:
            logger.info(f"[LEADERBOARD] No entries under {self.key}, starting empty")
            return []
        if not isinstance(raw, list):
            raise StoreError(f"Leaderboard {self.key} is not a list")

        logger.info(f"[LEADERBOARD] Retrieved {len(raw)} entries")
        return raw

    async def list(self) -> List[Row]:
        """
        Return the board, highest score first.

        Rows are returned exactly as stored, unfiltered. Re-sorts on read in
        case the stored array came from a racing writer or an older version.
        Does not trim and never writes.

        Raises:
            StoreError: If the store is unavailable
        """
        return rank_entries(await self._load())

    async def submit(
        self,
        initials: Any,
        score: Any,
        time: Any = None,
        difficulty: Any = None,
        level: Any = None,
    ) -> LeaderboardEntry:
        """
        Add a score to the board.

        Args:
            initials: Player initials; upper-cased and cut to 3 characters
            score: Non-negative number
            time: Optional game duration in milliseconds
            difficulty: Optional difficulty label, stored as sent
            level: Optional level reached

        Returns:
            The new entry, even when it ranked below the cut and was trimmed
            off the stored board

        Raises:
            ValidationError: On malformed input, before touching the store
            StoreError: If the read or the write fails
        """
        try:
            submission = ScoreSubmission(
                initials=initials,
                score=score,
                time=time,
                difficulty=difficulty,
                level=level,
            )
        except PydanticValidationError as e:
            logger.error(
                f"[LEADERBOARD] Invalid input: initials={initials!r}, score={score!r} "
                f"({e.error_count()} errors)"
            )
            raise ValidationError(INVALID_INPUT_MESSAGE) from e

        if self.serialize_submissions:
            async with self.store.lock(f"{self.key}:lock", timeout=self.lock_timeout):
                return await self._append(submission)
        return await self._append(submission)

    async def _append(self, submission: ScoreSubmission) -> LeaderboardEntry:
        rows = await self._load()

        entry = LeaderboardEntry(
            initials=submission.initials,
            score=submission.score,
            created_at=utc_now(),
            time=submission.time,
            difficulty=submission.difficulty,
            level=submission.level,
        )
        new_row = entry.to_wire()
        rows.append(new_row)
        logger.info(f"[LEADERBOARD] Added new entry: {new_row}")

        rows = rank_entries(rows)
        if len(rows) > self.max_entries:
            rows = rows[: self.max_entries]
            logger.info(f"[LEADERBOARD] Trimmed entries to max {self.max_entries}")

        await self.store.set(self.key, rows)
        logger.info(f"[LEADERBOARD] Saved {len(rows)} entries")

        return entry
