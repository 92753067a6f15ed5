"""
Check-in Correlation Insights

Compares outcomes on high-condition days against low-condition days and turns
meaningful gaps into short, human-readable insights.

Cohort pairs:
    overwhelm_untriaged   untriaged inbox items, overwhelm >= 4 vs <= 2
    energy_productivity   tasks completed,       energy    >= 4 vs <= 2

Divergence thresholds:
    - Overwhelm: high-day average exceeds low-day average by more than 3 items
    - Energy:    high-day completions exceed 1.5x low-day completions (and > 0)

Fewer than MIN_CHECKINS_FOR_INSIGHTS check-ins yields a single need_more_data
insight and nothing else. No insight is forced when nothing diverges.

The insight cache is a value the caller passes in (last insights plus the
time they were computed); whether to persist it is the caller's business.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from statistics import mean
from typing import Dict, List, Optional, Sequence, Tuple

import logging
from scipy.stats import ttest_ind

from core.config import settings
from schemas import CheckinCorrelations, CheckinDayStats

logger = logging.getLogger(__name__)


class InsightType(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
    NEED_MORE_DATA = "need_more_data"


class InsightConfidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Cohort boundaries on the 1-5 scales
HIGH_CONDITION_MIN = 4
LOW_CONDITION_MAX = 2

# Divergence thresholds
UNTRIAGED_GAP_ITEMS = 3
COMPLETION_RATIO = 1.5

SIGNIFICANCE_LEVEL = 0.05
MIN_COHORT_SIZE_FOR_TEST = 2


@dataclass
class CorrelationInsight:
    id: str
    type: InsightType
    title: str
    description: str
    confidence: InsightConfidence = InsightConfidence.MEDIUM

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "description": self.description,
            "confidence": self.confidence.value,
        }


@dataclass
class CachedInsight:
    """Previously computed insights and when they were computed."""
    insights: List[CorrelationInsight]
    computed_at: datetime


NEED_MORE_DATA = CorrelationInsight(
    id="need_more_data",
    type=InsightType.NEED_MORE_DATA,
    title="Building your pattern library",
    description="Keep checking in daily. After a week, we'll show you personalized insights.",
    confidence=InsightConfidence.LOW,
)

PATTERN_FOUND = CorrelationInsight(
    id="pattern_found",
    type=InsightType.POSITIVE,
    title="Patterns are emerging",
    description="Your data is revealing what helps you thrive. Keep tracking!",
    confidence=InsightConfidence.MEDIUM,
)


def confidence_from_p_value(p_value: Optional[float]) -> InsightConfidence:
    if p_value is None:
        return InsightConfidence.MEDIUM
    if p_value < SIGNIFICANCE_LEVEL:
        return InsightConfidence.HIGH
    return InsightConfidence.LOW


def _format_count(value: float) -> str:
    return f"{round(value, 2):g}"


def overwhelm_untriaged_diverges(high: float, low: float) -> bool:
    return high > low + UNTRIAGED_GAP_ITEMS


def energy_productivity_diverges(high: float, low: float) -> bool:
    return high > low * COMPLETION_RATIO and high > 0


def generate_correlation_insights(
    correlations: CheckinCorrelations,
    min_checkins: Optional[int] = None,
) -> List[CorrelationInsight]:
    """
    Insights for a user's pre-aggregated cohort metrics.

    A missing cohort average is treated as 0.
    """
    if min_checkins is None:
        min_checkins = settings.MIN_CHECKINS_FOR_INSIGHTS
    if correlations.total_checkins < min_checkins:
        return [NEED_MORE_DATA]

    insights: List[CorrelationInsight] = []

    high_untriaged = correlations.high_overwhelm_avg_untriaged or 0
    low_untriaged = correlations.low_overwhelm_avg_untriaged or 0
    if overwhelm_untriaged_diverges(high_untriaged, low_untriaged):
        insights.append(CorrelationInsight(
            id="overwhelm_untriaged",
            type=InsightType.NEGATIVE,
            title="Inbox overflow = overwhelm",
            description=(
                f"High overwhelm days have {round(high_untriaged)} untriaged items "
                f"on average vs {round(low_untriaged)} on calm days."
            ),
            confidence=confidence_from_p_value(correlations.overwhelm_untriaged_p_value),
        ))

    high_completed = correlations.high_energy_tasks_completed or 0
    low_completed = correlations.low_energy_tasks_completed or 0
    if energy_productivity_diverges(high_completed, low_completed):
        insights.append(CorrelationInsight(
            id="energy_productivity",
            type=InsightType.POSITIVE,
            title="Energy drives completion",
            description=(
                f"You complete {_format_count(high_completed)} tasks on high-energy days "
                f"vs {_format_count(low_completed)} on low-energy days."
            ),
            confidence=confidence_from_p_value(correlations.energy_productivity_p_value),
        ))

    if insights:
        insights.append(PATTERN_FOUND)

    insight_ids = [i.id for i in insights]
    logger.info(
        f"Correlation insights: checkins={correlations.total_checkins}, insights={insight_ids}",
        extra={
            "extra_fields": {
                "total_checkins": correlations.total_checkins,
                "insight_ids": insight_ids,
            }
        }
    )
    return insights


# ---------------------------------------------------------------------------
# Cohort summarisation
# ---------------------------------------------------------------------------

def _cohort_mean(values: List[float]) -> Optional[float]:
    return mean(values) if values else None


def welch_p_value(high: List[float], low: List[float]) -> Optional[float]:
    """Two-sided Welch t-test p-value, or None when it cannot be computed."""
    if len(high) < MIN_COHORT_SIZE_FOR_TEST or len(low) < MIN_COHORT_SIZE_FOR_TEST:
        return None
    result = ttest_ind(high, low, equal_var=False)
    p_value = float(result.pvalue)
    # Zero variance in both cohorts leaves the statistic undefined
    if math.isnan(p_value):
        return None
    return p_value


def summarize_checkin_cohorts(days: Sequence[CheckinDayStats]) -> CheckinCorrelations:
    """Split check-in days into high/low cohorts and average their outcomes."""
    high_overwhelm = [d.untriaged_count for d in days if d.overwhelm >= HIGH_CONDITION_MIN]
    low_overwhelm = [d.untriaged_count for d in days if d.overwhelm <= LOW_CONDITION_MAX]
    high_energy = [d.completed_count for d in days if d.energy >= HIGH_CONDITION_MIN]
    low_energy = [d.completed_count for d in days if d.energy <= LOW_CONDITION_MAX]

    return CheckinCorrelations(
        high_overwhelm_avg_untriaged=_cohort_mean(high_overwhelm),
        low_overwhelm_avg_untriaged=_cohort_mean(low_overwhelm),
        high_energy_tasks_completed=_cohort_mean(high_energy),
        low_energy_tasks_completed=_cohort_mean(low_energy),
        total_checkins=len(days),
        overwhelm_untriaged_p_value=welch_p_value(high_overwhelm, low_overwhelm),
        energy_productivity_p_value=welch_p_value(high_energy, low_energy),
    )


# ---------------------------------------------------------------------------
# Passed-in cache
# ---------------------------------------------------------------------------

def is_cache_fresh(
    cached: Optional[CachedInsight],
    now: datetime,
    ttl_minutes: Optional[int] = None,
) -> bool:
    if cached is None:
        return False
    if ttl_minutes is None:
        ttl_minutes = settings.INSIGHT_CACHE_TTL_MINUTES

    computed_at = cached.computed_at
    if computed_at.tzinfo is None:
        computed_at = computed_at.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now - computed_at < timedelta(minutes=ttl_minutes)


def resolve_insights(
    cached: Optional[CachedInsight],
    correlations: CheckinCorrelations,
    now: datetime,
    ttl_minutes: Optional[int] = None,
) -> Tuple[List[CorrelationInsight], bool]:
    """
    Reuse fresh cached insights, otherwise compute new ones.

    Returns:
        (insights, from_cache)
    """
    if is_cache_fresh(cached, now, ttl_minutes):
        return cached.insights, True
    return generate_correlation_insights(correlations), False


def insights_to_dict(insights: Sequence[CorrelationInsight]) -> List[Dict]:
    return [i.to_dict() for i in insights]
