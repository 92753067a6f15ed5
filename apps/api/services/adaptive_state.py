"""
Adaptive State

Turns the triggers from a day's check-in into UI behaviour flags and a short,
ranked list of recommendations. There is no state machine: the state is a pure
function of the latest check-in, and no check-in means the neutral default.

Flags:
    simplifiedUIEnabled / reducedTasksMode   high overwhelm, high anxiety or combined stress
    suggestLowCognitiveLoad                  high overwhelm, high anxiety or low energy
    prioritizeShortTasks                     low energy
    showPlanningMicroStep                    low clarity

Recommendation ranking:
    Families are collected in trigger order (overwhelm/combined stress,
    anxiety, energy, clarity), stably sorted by priority (high before medium
    before low), de-duplicated by id and cut to MAX_RECOMMENDATIONS. With every
    trigger active this yields reduce_scope, brain_dump, breathing.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import logging

from core.config import settings
from schemas import DailyCheckin
from services.checkin_triggers import CheckinScales, TriggerKind, evaluate_triggers

logger = logging.getLogger(__name__)


class RecommendationType(str, Enum):
    ACTION = "action"
    SUGGESTION = "suggestion"
    RESOURCE = "resource"


class RecommendationPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ActionType(str, Enum):
    NAVIGATE = "navigate"
    ENABLE_FEATURE = "enable_feature"
    DISMISS = "dismiss"


PRIORITY_ORDER = {
    RecommendationPriority.HIGH: 0,
    RecommendationPriority.MEDIUM: 1,
    RecommendationPriority.LOW: 2,
}

# Task list limits
REDUCED_MODE_MAX_TASKS = 3
DEFAULT_MAX_TASKS = 10
DEFAULT_ESTIMATED_MINUTES = 30


@dataclass(frozen=True)
class AdaptiveRecommendation:
    id: str
    type: RecommendationType
    title: str
    description: str
    priority: RecommendationPriority
    action_type: Optional[ActionType] = None
    action_path: Optional[str] = None

    def to_dict(self) -> Dict:
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
        }
        if self.action_type is not None:
            data["actionType"] = self.action_type.value
        if self.action_path is not None:
            data["actionPath"] = self.action_path
        return data


REDUCE_SCOPE = AdaptiveRecommendation(
    id="reduce_scope",
    type=RecommendationType.ACTION,
    title="Focus on just 1 thing",
    description="When overwhelmed, pick your single most important task. Everything else can wait.",
    priority=RecommendationPriority.HIGH,
    action_type=ActionType.NAVIGATE,
    action_path="/focus?mode=single",
)
BRAIN_DUMP = AdaptiveRecommendation(
    id="brain_dump",
    type=RecommendationType.ACTION,
    title="Do a brain dump",
    description="Get everything out of your head and onto paper. You'll feel lighter.",
    priority=RecommendationPriority.HIGH,
    action_type=ActionType.NAVIGATE,
    action_path="/focus",
)
BREATHING = AdaptiveRecommendation(
    id="breathing",
    type=RecommendationType.RESOURCE,
    title="Take a breathing break",
    description="4-7-8 breathing can help calm your nervous system in just 2 minutes.",
    priority=RecommendationPriority.HIGH,
    action_type=ActionType.NAVIGATE,
    action_path="/brake",
)
SIMPLIFY_VIEW = AdaptiveRecommendation(
    id="simplify_view",
    type=RecommendationType.SUGGESTION,
    title="Simplified view enabled",
    description="We've hidden extra UI elements to reduce visual noise.",
    priority=RecommendationPriority.MEDIUM,
)
QUICK_WINS = AdaptiveRecommendation(
    id="quick_wins",
    type=RecommendationType.ACTION,
    title="Start with quick wins",
    description="Low energy? Tackle 2-minute tasks first to build momentum.",
    priority=RecommendationPriority.HIGH,
    action_type=ActionType.ENABLE_FEATURE,
    action_path="sort_by_duration",
)
ADMIN_TASKS = AdaptiveRecommendation(
    id="admin_tasks",
    type=RecommendationType.SUGGESTION,
    title="Admin tasks prioritized",
    description="We're showing shorter, simpler tasks that match your energy.",
    priority=RecommendationPriority.MEDIUM,
)
PLANNING_STEP = AdaptiveRecommendation(
    id="planning_step",
    type=RecommendationType.ACTION,
    title="Start with planning",
    description="When foggy, spend 5 minutes clarifying before doing.",
    priority=RecommendationPriority.HIGH,
    action_type=ActionType.NAVIGATE,
    action_path="/focus?step=context",
)
ALLY_CHECK = AdaptiveRecommendation(
    id="ally_check",
    type=RecommendationType.RESOURCE,
    title="Talk it through",
    description="Sometimes clarity comes from explaining your tasks to your Ally.",
    priority=RecommendationPriority.MEDIUM,
    action_type=ActionType.NAVIGATE,
    action_path="/ally",
)

# (triggers that activate the family, recommendations in the family)
RECOMMENDATION_FAMILIES: List[Tuple[frozenset, Tuple[AdaptiveRecommendation, ...]]] = [
    (frozenset({TriggerKind.HIGH_OVERWHELM, TriggerKind.COMBINED_STRESS}), (REDUCE_SCOPE, BRAIN_DUMP)),
    (frozenset({TriggerKind.HIGH_ANXIETY}), (BREATHING, SIMPLIFY_VIEW)),
    (frozenset({TriggerKind.LOW_ENERGY}), (QUICK_WINS, ADMIN_TASKS)),
    (frozenset({TriggerKind.LOW_CLARITY}), (PLANNING_STEP, ALLY_CHECK)),
]


@dataclass
class AdaptiveState:
    triggers: List[TriggerKind] = field(default_factory=list)
    simplified_ui_enabled: bool = False
    reduced_tasks_mode: bool = False
    suggest_low_cognitive_load: bool = False
    prioritize_short_tasks: bool = False
    show_planning_micro_step: bool = False
    recommendations: List[AdaptiveRecommendation] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "triggers": [t.value for t in self.triggers],
            "simplifiedUIEnabled": self.simplified_ui_enabled,
            "reducedTasksMode": self.reduced_tasks_mode,
            "suggestLowCognitiveLoad": self.suggest_low_cognitive_load,
            "prioritizeShortTasks": self.prioritize_short_tasks,
            "showPlanningMicroStep": self.show_planning_micro_step,
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


def generate_recommendations(
    triggers: Sequence[TriggerKind],
    limit: Optional[int] = None,
) -> List[AdaptiveRecommendation]:
    """Ranked, de-duplicated recommendations for a trigger set (at most ``limit``)."""
    if limit is None:
        limit = settings.MAX_RECOMMENDATIONS
    active = set(triggers)

    candidates: List[AdaptiveRecommendation] = []
    seen = set()
    for family_triggers, family in RECOMMENDATION_FAMILIES:
        if not active & family_triggers:
            continue
        for rec in family:
            if rec.id not in seen:
                seen.add(rec.id)
                candidates.append(rec)

    # sorted() is stable, so trigger order breaks priority ties
    candidates = sorted(candidates, key=lambda r: PRIORITY_ORDER[r.priority])
    return candidates[:limit]


def adaptive_state_from_triggers(triggers: Sequence[TriggerKind]) -> AdaptiveState:
    active = set(triggers)
    high_stress = bool(active & {TriggerKind.HIGH_OVERWHELM, TriggerKind.HIGH_ANXIETY})
    combined_stress = TriggerKind.COMBINED_STRESS in active
    low_energy = TriggerKind.LOW_ENERGY in active

    return AdaptiveState(
        triggers=list(triggers),
        simplified_ui_enabled=high_stress or combined_stress,
        reduced_tasks_mode=high_stress or combined_stress,
        suggest_low_cognitive_load=high_stress or low_energy,
        prioritize_short_tasks=low_energy,
        show_planning_micro_step=TriggerKind.LOW_CLARITY in active,
        recommendations=generate_recommendations(triggers),
    )


def compute_adaptive_state(checkin: Optional[CheckinScales]) -> AdaptiveState:
    """Full adaptive state for the latest check-in (neutral when there is none)."""
    if checkin is None:
        return AdaptiveState()

    state = adaptive_state_from_triggers(evaluate_triggers(checkin))
    if state.triggers:
        triggers = [t.value for t in state.triggers]
        recommendation_ids = [r.id for r in state.recommendations]
        logger.info(
            f"Adaptive mode: triggers={triggers}, recommendations={recommendation_ids}",
            extra={
                "extra_fields": {
                    "triggers": triggers,
                    "recommendation_ids": recommendation_ids,
                    "reduced_tasks_mode": state.reduced_tasks_mode,
                }
            }
        )
    return state


def filter_tasks_for_adaptive_state(
    tasks: Sequence[Mapping[str, Any]],
    state: AdaptiveState,
    max_tasks: int = DEFAULT_MAX_TASKS,
) -> List[Mapping[str, Any]]:
    """
    Trim and reorder a task list to match the adaptive state.

    Tasks are plain rows; ``energy_required`` and ``estimated_minutes`` are
    optional keys.
    """
    filtered = list(tasks)

    if state.reduced_tasks_mode:
        max_tasks = min(max_tasks, REDUCED_MODE_MAX_TASKS)

    if state.suggest_low_cognitive_load:
        filtered = [
            t for t in filtered
            if (t.get("energy_required") or "").lower() != "high"
        ]

    if state.prioritize_short_tasks:
        filtered.sort(
            key=lambda t: t.get("estimated_minutes")
            if t.get("estimated_minutes") is not None
            else DEFAULT_ESTIMATED_MINUTES
        )

    return filtered[:max_tasks]


# ---------------------------------------------------------------------------
# Check-in status
# ---------------------------------------------------------------------------

def has_checked_in_today(latest: Optional[DailyCheckin], today: date) -> bool:
    return latest is not None and latest.date == today


def time_since_last_checkin(
    latest: Optional[DailyCheckin],
    now: datetime,
) -> Tuple[float, bool]:
    """
    Hours since the last check-in (measured from midnight UTC of its date)
    and whether the user should be prompted to check in again.
    """
    if latest is None:
        return math.inf, True

    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    checked_in_at = datetime.combine(latest.date, time.min, tzinfo=timezone.utc)
    hours = (now - checked_in_at).total_seconds() / 3600
    return hours, hours >= settings.CHECKIN_PROMPT_AFTER_HOURS


def build_latest_checkin_payload(latest: Optional[DailyCheckin], today: date) -> Dict:
    """Response body for "latest check-in + adaptive state"."""
    checkin = None
    is_today = has_checked_in_today(latest, today)
    if latest is not None:
        checkin = latest.model_dump(mode="json")
        checkin["is_today"] = is_today

    return {
        "checkin": checkin,
        "needs_checkin_today": not is_today,
        "adaptive_state": compute_adaptive_state(latest).to_dict(),
    }
