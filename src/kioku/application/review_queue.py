"""
Review queue builder.

Builds the due-items queue shown at the start of a review:
1. Keep records whose next_review_date has passed
2. Order the oldest-due first
3. Cap at the configured size
"""

import logging
from collections import Counter
from collections.abc import Iterable

from kioku.application.scheduler.engine import is_due, level_name
from kioku.domain.progress.models import ProgressRecord, ReviewItem, Skill

logger = logging.getLogger(__name__)


def build_review_queue(
    records: Iterable[ProgressRecord],
    now: int,
    limit: int | None = None,
) -> list[ReviewItem]:
    """
    Build the ordered queue of items due at `now`.

    Args:
        records: Progress records of one user.
        now: Reference time (ms).
        limit: Maximum queue length; unlimited if None.

    Returns:
        ReviewItems ordered by due date, then item_id.
    """
    due = [r for r in records if is_due(r, now)]
    due.sort(key=lambda r: (r.next_review_date, r.item_id))

    if limit is not None and len(due) > limit:
        logger.debug(f"Capping review queue at {limit} of {len(due)} due items")
        due = due[:limit]

    return [
        ReviewItem(
            item_id=r.item_id,
            due_date=r.next_review_date,
            srs_level=r.srs_level,
            review_type=Skill.MEANING,
        )
        for r in due
    ]


def summarize_levels(records: Iterable[ProgressRecord | ReviewItem]) -> dict[str, int]:
    """
    Count records (or queued items) per level name, in level order.
    """
    counts = Counter(r.srs_level for r in records)
    summary: dict[str, int] = {}
    for level in sorted(counts):
        name = level_name(level)
        summary[name] = summary.get(name, 0) + counts[level]
    return summary
