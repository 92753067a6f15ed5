"""
Life Balance Score

How well recent task activity lines up with the life priorities a user has
declared. Computed on demand from a snapshot of rows; nothing is read or
written here.

Architecture:
    Priorities ──> domain weights (importance / total importance)
    Tasks ──────> per-category stats over the lookback window
             ↓
    Per-domain score (0-100), joined to a category by name, case-insensitive
             ↓
    Overall score = round(sum(domain score * weight)), clamped to 0-100

Per-domain points when the domain has tasks:
    - Completion: completion rate * 70          (0-70)
    - Volume:     min(tasks / 3, 1) * 20        (0-20, saturates at 3 tasks)
    - Recency:    10 if last completion <= 3 days ago, 5 if <= 7, else 0

A domain with no tasks scores 10 when its weight is above 0.15 (a neglected
priority) and 50 otherwise (an idle low priority is acceptable).

Carry-forward: when the whole window has no tasks and a previous score exists,
the previous score is returned verbatim while the breakdown is still the fresh
zero-activity breakdown. Callers rely on this; the headline score may
therefore disagree with its own breakdown.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

import logging

from core.config import settings
from schemas import PriorityRow, TaskRow
from services.domain_weights import DomainWeight, calculate_domain_weights
from services.task_stats import CategoryStats, compute_category_stats, utc_now

logger = logging.getLogger(__name__)


# Point budgets per component (sum to 100)
COMPLETION_POINTS = 70
VOLUME_POINTS = 20
RECENCY_POINTS_RECENT = 10
RECENCY_POINTS_THIS_WEEK = 5

VOLUME_SATURATION_TASKS = 3
RECENT_COMPLETION_DAYS = 3
WEEK_COMPLETION_DAYS = 7

# Domains with no activity in the window
HIGH_PRIORITY_WEIGHT = 0.15
NEGLECTED_PRIORITY_SCORE = 10
IDLE_LOW_PRIORITY_SCORE = 50

SCORE_MIN = 0
SCORE_MAX = 100


@dataclass
class DomainScore:
    """One life domain's contribution to the Balance Score."""
    domain: str
    score: int                              # 0-100
    weight: float                           # 0-1
    task_count: int = 0
    completion_rate: float = 0.0            # 0-1
    category_icon: Optional[str] = None
    category_color: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "domain": self.domain,
            "score": self.score,
            "weight": self.weight,
            "taskCount": self.task_count,
            "completionRate": self.completion_rate,
            "categoryIcon": self.category_icon,
            "categoryColor": self.category_color,
        }


@dataclass
class BalanceScore:
    """Overall score plus the per-domain breakdown, in priority order."""
    score: float
    breakdown: List[DomainScore] = field(default_factory=list)
    carried_forward: bool = False

    @property
    def total_task_count(self) -> int:
        return sum(d.task_count for d in self.breakdown)

    def to_dict(self) -> Dict:
        return {
            "score": self.score,
            "breakdown": [d.to_dict() for d in self.breakdown],
        }


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (banker's rounding would drop points)."""
    return math.floor(value + 0.5)


def clamp_score(value: float) -> float:
    return max(SCORE_MIN, min(SCORE_MAX, value))


def completion_points(completion_rate: float) -> float:
    return completion_rate * COMPLETION_POINTS


def volume_points(total_tasks: int) -> float:
    return min(total_tasks / VOLUME_SATURATION_TASKS, 1) * VOLUME_POINTS


def recency_points(last_completed_days_ago: Optional[int]) -> int:
    if last_completed_days_ago is None:
        return 0
    if last_completed_days_ago <= RECENT_COMPLETION_DAYS:
        return RECENCY_POINTS_RECENT
    if last_completed_days_ago <= WEEK_COMPLETION_DAYS:
        return RECENCY_POINTS_THIS_WEEK
    return 0


def no_activity_score(weight: float) -> int:
    return NEGLECTED_PRIORITY_SCORE if weight > HIGH_PRIORITY_WEIGHT else IDLE_LOW_PRIORITY_SCORE


def score_domain(weight: DomainWeight, stats: Optional[CategoryStats]) -> DomainScore:
    """Score a single domain from its matching category stats (if any)."""
    if stats is None or stats.total_tasks == 0:
        return DomainScore(
            domain=weight.domain,
            score=no_activity_score(weight.weight),
            weight=weight.weight,
        )

    raw = (
        completion_points(stats.completion_rate)
        + volume_points(stats.total_tasks)
        + recency_points(stats.last_completed_days_ago)
    )
    return DomainScore(
        domain=weight.domain,
        score=int(clamp_score(round_half_up(raw))),
        weight=weight.weight,
        task_count=stats.total_tasks,
        completion_rate=stats.completion_rate,
        category_icon=stats.category_icon,
        category_color=stats.category_color,
    )


def _stats_by_name(category_stats: Iterable[CategoryStats]) -> Dict[str, CategoryStats]:
    return {s.category_name.lower(): s for s in category_stats}


def compute_balance_score(
    priorities: Sequence[PriorityRow],
    category_stats: Iterable[CategoryStats],
    previous_score: Optional[float] = None,
) -> BalanceScore:
    """
    Combine priority weights and category stats into a Balance Score.

    Args:
        priorities: The user's priorities (callers skip users with none)
        category_stats: Output of compute_category_stats for the window
        previous_score: Most recent persisted score, if any

    Returns:
        BalanceScore with the breakdown in priority order
    """
    weights = calculate_domain_weights(priorities)
    stats_by_name = _stats_by_name(category_stats)

    breakdown = [score_domain(w, stats_by_name.get(w.domain.lower())) for w in weights]
    overall = clamp_score(round_half_up(sum(d.score * d.weight for d in breakdown)))
    result = BalanceScore(score=overall, breakdown=breakdown)

    if result.total_task_count == 0 and previous_score is not None:
        logger.info(
            f"Balance score: no activity in window, carrying forward previous "
            f"score {previous_score} (fresh breakdown would give {overall})"
        )
        result.score = previous_score
        result.carried_forward = True
        return result

    logger.debug(
        "Balance breakdown: "
        + ", ".join(f"{d.domain}={d.score} (w={d.weight:.2f}, n={d.task_count})" for d in breakdown)
    )
    return result


class BalanceScoreCalculator:
    """
    Compute a user's Balance Score from raw rows.

    Pure: identical rows and ``now`` always give the same score, so redundant
    invocations for the same (user, date) are harmless.
    """

    def __init__(self, lookback_days: Optional[int] = None):
        if lookback_days is None:
            lookback_days = settings.BALANCE_LOOKBACK_DAYS
        self.lookback_days = lookback_days

    def compute(
        self,
        priorities: Sequence[PriorityRow],
        tasks: Iterable[TaskRow],
        previous_score: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> BalanceScore:
        now = now or utc_now()
        category_stats = compute_category_stats(tasks, now=now, lookback_days=self.lookback_days)
        result = compute_balance_score(priorities, category_stats, previous_score)

        logger.info(
            f"Balance score: score={result.score}, domains={len(result.breakdown)}, "
            f"tasks={result.total_task_count}, window={self.lookback_days}d, "
            f"carried_forward={result.carried_forward}",
            extra={
                "extra_fields": {
                    "score": result.score,
                    "carried_forward": result.carried_forward,
                    "task_count": result.total_task_count,
                    "lookback_days": self.lookback_days,
                }
            }
        )
        return result
