"""
Balance Score trend statistics over persisted daily snapshots.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from statistics import mean
from typing import Dict, Iterable, List, Optional, Sequence

from core.config import settings
from schemas import BalanceScoreRow, BalanceTrendPoint
from services.balance_score import round_half_up


TREND_DEADBAND = 3          # score points
TREND_WINDOW = 7            # points per comparison window
WEEKS_IN_STATS = 4


@dataclass
class BalanceTrendStats:
    average: int = 0
    highest: float = 0
    lowest: float = 0
    weekly_averages: List[Dict[str, int]] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "average": self.average,
            "highest": self.highest,
            "lowest": self.lowest,
            "weeklyAverages": self.weekly_averages,
        }


def latest_previous_score(rows: Iterable[BalanceScoreRow]) -> Optional[float]:
    """Score of the most recent snapshot, or None when there is none."""
    latest = max(rows, key=lambda r: r.computed_for_date, default=None)
    return latest.score if latest is not None else None


def rows_to_trend(rows: Iterable[BalanceScoreRow]) -> List[BalanceTrendPoint]:
    ordered = sorted(rows, key=lambda r: r.computed_for_date)
    return [BalanceTrendPoint(date=r.computed_for_date, score=r.score) for r in ordered]


def _direction(diff: float) -> str:
    if diff > TREND_DEADBAND:
        return "up"
    if diff < -TREND_DEADBAND:
        return "down"
    return "flat"


def calculate_trend_direction(trend: Sequence[BalanceTrendPoint]) -> str:
    """
    Compare the last 7 points to the 7 before them.

    With a week or less of history, compare the second half to the first.
    """
    if len(trend) < 2:
        return "flat"

    recent = trend[-TREND_WINDOW:]
    previous = trend[-2 * TREND_WINDOW:-TREND_WINDOW]

    if not previous:
        midpoint = len(trend) // 2
        first_half, second_half = trend[:midpoint], trend[midpoint:]
        if not first_half or not second_half:
            return "flat"
        return _direction(
            mean(p.score for p in second_half) - mean(p.score for p in first_half)
        )

    return _direction(mean(p.score for p in recent) - mean(p.score for p in previous))


def calculate_trend_stats(trend: Sequence[BalanceTrendPoint]) -> BalanceTrendStats:
    if not trend:
        return BalanceTrendStats()

    scores = [p.score for p in trend]
    weekly: List[Dict[str, int]] = []
    for week in range(WEEKS_IN_STATS):
        start = max(0, len(trend) - TREND_WINDOW * (week + 1))
        end = len(trend) - TREND_WINDOW * week
        if end <= 0:
            break
        bucket = scores[start:end]
        if bucket:
            weekly.insert(0, {"week": week + 1, "average": round_half_up(mean(bucket))})

    return BalanceTrendStats(
        average=round_half_up(mean(scores)),
        highest=max(scores),
        lowest=min(scores),
        weekly_averages=weekly,
    )


def change_from_yesterday(
    today_score: Optional[float],
    trend: Sequence[BalanceTrendPoint],
) -> Optional[float]:
    """Today's score minus the second-to-last trend point."""
    if today_score is None or len(trend) < 2:
        return None
    return today_score - trend[-2].score


def build_balance_trend_payload(
    rows: Iterable[BalanceScoreRow],
    today: date,
    days: Optional[int] = None,
) -> Dict:
    """
    Trend response body: snapshots from the last ``days`` days (inclusive of
    the cutoff date), their direction and summary statistics.
    """
    if days is None:
        days = settings.BALANCE_TREND_DAYS
    cutoff = today - timedelta(days=days)
    trend = rows_to_trend(r for r in rows if r.computed_for_date >= cutoff)

    return {
        "trend": [p.model_dump(mode="json") for p in trend],
        "direction": calculate_trend_direction(trend),
        "stats": calculate_trend_stats(trend).to_dict(),
    }
