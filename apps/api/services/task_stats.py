"""
Task Statistics Aggregation

Rolling-window per-category statistics over a flat snapshot of task rows.
Shared by the Balance Score engine and anything else that needs to know how a
category has been going over the last N days.

Rules:
    - Tasks without a category are excluded from every per-category figure.
    - A task only counts as completed when status == "done" AND completed_at
      is set. A "done" task with no completed_at still counts toward the total.
    - "Now" is read once per aggregation so every day boundary inside one
      calculation agrees.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

import logging

from core.config import settings
from schemas import TaskRow

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass
class CategoryStats:
    """Per-category activity over the lookback window."""
    category_id: str
    category_name: str
    category_icon: str
    category_color: str
    total_tasks: int = 0
    completed_tasks: int = 0
    completion_rate: float = 0.0              # 0.0 - 1.0
    dropped_count: int = 0
    skipped_count: int = 0
    avg_days_to_complete: Optional[float] = None
    last_completed_days_ago: Optional[int] = None

    def to_dict(self) -> Dict:
        return {
            "categoryId": self.category_id,
            "categoryName": self.category_name,
            "categoryIcon": self.category_icon,
            "categoryColor": self.category_color,
            "totalTasks": self.total_tasks,
            "completedTasks": self.completed_tasks,
            "completionRate": self.completion_rate,
            "droppedCount": self.dropped_count,
            "skippedCount": self.skipped_count,
            "avgDaysToComplete": self.avg_days_to_complete,
            "lastCompletedDaysAgo": self.last_completed_days_ago,
        }


@dataclass
class _Accumulator:
    stats: CategoryStats
    completion_days: List[int] = field(default_factory=list)
    last_completed_at: Optional[datetime] = None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def is_completed(task: TaskRow) -> bool:
    """Completed means done with a completion timestamp; done alone is not enough."""
    return task.status == "done" and task.completed_at is not None


def days_to_complete(task: TaskRow) -> int:
    """Whole days from creation to completion, rounded up."""
    elapsed = (task.completed_at - task.created_at).total_seconds()
    return math.ceil(elapsed / SECONDS_PER_DAY)


def whole_days_between(earlier: datetime, later: datetime) -> int:
    """Whole days elapsed, rounded down."""
    return math.floor((later - earlier).total_seconds() / SECONDS_PER_DAY)


def filter_tasks_in_window(
    tasks: Iterable[TaskRow],
    lookback_days: int,
    now: datetime,
) -> List[TaskRow]:
    """Keep tasks created within the last ``lookback_days`` days of ``now``."""
    cutoff = now - timedelta(days=lookback_days)
    return [t for t in tasks if t.created_at >= cutoff]


def compute_category_stats(
    tasks: Iterable[TaskRow],
    now: Optional[datetime] = None,
    lookback_days: Optional[int] = None,
) -> List[CategoryStats]:
    """
    Aggregate tasks per category over a lookback window.

    Args:
        tasks: Task rows (already normalised by schemas.TaskRow)
        now: Reference instant; read from the clock once if omitted
        lookback_days: Window size in days (defaults to BALANCE_LOOKBACK_DAYS)

    Returns:
        One CategoryStats per category that has at least one task in the
        window, in order of first appearance.
    """
    now = now or utc_now()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    if lookback_days is None:
        lookback_days = settings.BALANCE_LOOKBACK_DAYS

    windowed = filter_tasks_in_window(tasks, lookback_days, now)
    by_category: Dict[str, _Accumulator] = {}

    for task in windowed:
        if not task.category_id or task.category is None:
            continue

        acc = by_category.get(task.category.id)
        if acc is None:
            acc = _Accumulator(
                stats=CategoryStats(
                    category_id=task.category.id,
                    category_name=task.category.name,
                    category_icon=task.category.icon,
                    category_color=task.category.color,
                )
            )
            by_category[task.category.id] = acc

        acc.stats.total_tasks += 1

        if is_completed(task):
            acc.stats.completed_tasks += 1
            acc.completion_days.append(days_to_complete(task))
            if acc.last_completed_at is None or task.completed_at > acc.last_completed_at:
                acc.last_completed_at = task.completed_at
        elif task.status == "dropped":
            acc.stats.dropped_count += 1
        elif task.status == "skipped":
            acc.stats.skipped_count += 1

    results: List[CategoryStats] = []
    for acc in by_category.values():
        s = acc.stats
        s.completion_rate = s.completed_tasks / s.total_tasks if s.total_tasks else 0.0
        if acc.completion_days:
            s.avg_days_to_complete = sum(acc.completion_days) / len(acc.completion_days)
        if acc.last_completed_at is not None:
            s.last_completed_days_ago = whole_days_between(acc.last_completed_at, now)
        results.append(s)

    logger.debug(
        f"Aggregated {len(windowed)} tasks into {len(results)} categories "
        f"over {lookback_days} days"
    )
    return results
