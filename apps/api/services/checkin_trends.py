"""
Check-in trend statistics: sparklines, per-metric summaries and the trend
payload returned alongside correlation insights.
"""

from dataclasses import dataclass, field
from statistics import mean
from typing import Dict, List, Optional, Sequence

from core.config import settings
from schemas import SCALE_FIELDS, CHECKIN_SCALE_MAX, CHECKIN_SCALE_MIN, CheckinCorrelations, CheckinTrendPoint
from services.checkin_insights import generate_correlation_insights, insights_to_dict


SPARKLINE_TREND_DEADBAND = 0.5   # scale points

RANGE_DAYS = {
    "week": 7,
    "month": 30,
    "quarter": 90,
}
DEFAULT_RANGE = "week"


@dataclass
class SparklineData:
    values: List[int] = field(default_factory=list)
    labels: List[str] = field(default_factory=list)
    min: int = CHECKIN_SCALE_MIN
    max: int = CHECKIN_SCALE_MAX
    average: float = 0
    trend: str = "stable"       # up | down | stable

    def to_dict(self) -> Dict:
        return {
            "values": self.values,
            "labels": self.labels,
            "min": self.min,
            "max": self.max,
            "average": self.average,
            "trend": self.trend,
        }


def _validate_metric(metric: str) -> None:
    if metric not in SCALE_FIELDS:
        raise ValueError(f"Unknown check-in metric: {metric}")


def calculate_sparkline_data(points: Sequence[CheckinTrendPoint], metric: str) -> SparklineData:
    """Sparkline series for one metric; trend compares the second half to the first."""
    _validate_metric(metric)
    if not points:
        return SparklineData()

    values = [getattr(p, metric) for p in points]
    midpoint = len(values) // 2
    first_half, second_half = values[:midpoint], values[midpoint:]
    # An empty first half (a single point) averages 0
    first_avg = mean(first_half) if first_half else 0
    second_avg = mean(second_half)

    trend = "stable"
    if second_avg > first_avg + SPARKLINE_TREND_DEADBAND:
        trend = "up"
    elif second_avg < first_avg - SPARKLINE_TREND_DEADBAND:
        trend = "down"

    return SparklineData(
        values=values,
        labels=[p.date.isoformat() for p in points],
        min=min(values),
        max=max(values),
        average=mean(values),
        trend=trend,
    )


def calculate_checkin_summary(points: Sequence[CheckinTrendPoint]) -> Optional[Dict[str, Dict]]:
    """Average (1 dp), min and max per metric, or None without data."""
    if not points:
        return None

    summary = {}
    for metric in SCALE_FIELDS:
        values = [getattr(p, metric) for p in points]
        summary[metric] = {
            "average": round(mean(values), 1),
            "min": min(values),
            "max": max(values),
        }
    return summary


def range_to_days(range_name: Optional[str]) -> int:
    return RANGE_DAYS.get(range_name or DEFAULT_RANGE, RANGE_DAYS[DEFAULT_RANGE])


def build_trend_payload(
    points: Sequence[CheckinTrendPoint],
    range_name: str = DEFAULT_RANGE,
    correlations: Optional[CheckinCorrelations] = None,
) -> Dict:
    """
    Response body for a check-in trend request.

    Insights are only produced when correlations were supplied and the range
    holds enough check-ins to be worth analysing.
    """
    insights = None
    if correlations is not None and len(points) >= settings.MIN_CHECKINS_FOR_INSIGHTS:
        insights = insights_to_dict(generate_correlation_insights(correlations))

    return {
        "trend": [p.model_dump(mode="json") for p in points],
        "correlations": correlations.model_dump() if correlations is not None else None,
        "insights": insights,
        "summary": calculate_checkin_summary(points),
        "range": range_name,
        "days_with_data": len(points),
        "days_in_range": range_to_days(range_name),
    }
