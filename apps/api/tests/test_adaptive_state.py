"""
Tests for the adaptive state: UI flags, recommendation ranking, task
filtering and check-in status helpers.
"""

import math
import pytest
from datetime import date, datetime, timezone

from services.adaptive_state import (
    ActionType,
    AdaptiveState,
    adaptive_state_from_triggers,
    build_latest_checkin_payload,
    compute_adaptive_state,
    filter_tasks_for_adaptive_state,
    generate_recommendations,
    has_checked_in_today,
    time_since_last_checkin,
)
from services.checkin_triggers import TriggerKind


ALL_SINGLE = [
    TriggerKind.HIGH_OVERWHELM,
    TriggerKind.HIGH_ANXIETY,
    TriggerKind.LOW_ENERGY,
    TriggerKind.LOW_CLARITY,
]


class TestAdaptiveFlags:

    def test_null_checkin_is_neutral(self):
        state = compute_adaptive_state(None)
        assert state.triggers == []
        assert not state.simplified_ui_enabled
        assert not state.reduced_tasks_mode
        assert not state.prioritize_short_tasks
        assert not state.show_planning_micro_step
        assert not state.suggest_low_cognitive_load
        assert state.recommendations == []

    def test_neutral_checkin_matches_null(self, make_checkin):
        assert compute_adaptive_state(make_checkin()).to_dict() == compute_adaptive_state(None).to_dict()

    def test_high_stress_simplifies_ui(self, make_checkin):
        state = compute_adaptive_state(make_checkin(overwhelm=5, anxiety=4, energy=2, clarity=2))
        assert state.simplified_ui_enabled
        assert state.reduced_tasks_mode

    def test_combined_stress_without_high_stress_still_reduces(self, make_checkin):
        state = compute_adaptive_state(make_checkin(energy=1, clarity=1))
        assert TriggerKind.COMBINED_STRESS in state.triggers
        assert state.simplified_ui_enabled
        assert state.reduced_tasks_mode

    def test_low_energy_prioritises_short_tasks(self, make_checkin):
        state = compute_adaptive_state(make_checkin(overwhelm=2, anxiety=2, energy=1, clarity=4))
        assert state.prioritize_short_tasks
        assert state.suggest_low_cognitive_load
        assert not state.simplified_ui_enabled

    def test_low_clarity_shows_planning_step(self, make_checkin):
        state = compute_adaptive_state(make_checkin(overwhelm=2, anxiety=2, energy=4, clarity=1))
        assert state.show_planning_micro_step
        assert not state.prioritize_short_tasks

    def test_single_high_anxiety(self):
        state = adaptive_state_from_triggers([TriggerKind.HIGH_ANXIETY])
        assert state.simplified_ui_enabled
        assert state.suggest_low_cognitive_load
        assert not state.show_planning_micro_step


class TestRecommendations:

    def test_empty_triggers(self):
        assert generate_recommendations([]) == []

    def test_high_overwhelm_reduces_scope(self):
        ids = [r.id for r in generate_recommendations([TriggerKind.HIGH_OVERWHELM])]
        assert "reduce_scope" in ids

    def test_high_anxiety_breathing(self):
        ids = [r.id for r in generate_recommendations([TriggerKind.HIGH_ANXIETY])]
        assert ids == ["breathing", "simplify_view"]

    def test_combined_stress_alone_reduces_scope(self):
        ids = [r.id for r in generate_recommendations([TriggerKind.COMBINED_STRESS])]
        assert ids == ["reduce_scope", "brain_dump"]

    def test_capped_at_three_with_documented_order(self):
        recs = generate_recommendations(ALL_SINGLE + [TriggerKind.COMBINED_STRESS])
        assert [r.id for r in recs] == ["reduce_scope", "brain_dump", "breathing"]

    def test_high_priority_ranked_before_medium(self):
        recs = generate_recommendations([TriggerKind.LOW_ENERGY, TriggerKind.LOW_CLARITY])
        assert [r.id for r in recs] == ["quick_wins", "planning_step", "admin_tasks"]

    def test_no_duplicates_when_overwhelm_and_combined(self):
        recs = generate_recommendations([TriggerKind.HIGH_OVERWHELM, TriggerKind.COMBINED_STRESS])
        ids = [r.id for r in recs]
        assert len(ids) == len(set(ids))

    @pytest.mark.parametrize("size", range(0, 5))
    def test_never_more_than_three(self, size):
        assert len(generate_recommendations(ALL_SINGLE[:size])) <= 3

    def test_explicit_zero_limit_is_honoured(self):
        assert generate_recommendations(ALL_SINGLE, limit=0) == []

    def test_explicit_limit(self):
        assert [r.id for r in generate_recommendations(ALL_SINGLE, limit=1)] == ["reduce_scope"]

    def test_to_dict_omits_missing_action(self):
        recs = generate_recommendations([TriggerKind.HIGH_ANXIETY])
        simplify = recs[1].to_dict()
        assert "actionType" not in simplify
        assert recs[0].to_dict()["actionType"] == "navigate"

    def test_quick_wins_enables_feature(self):
        rec = generate_recommendations([TriggerKind.LOW_ENERGY])[0]
        assert rec.action_type == ActionType.ENABLE_FEATURE


class TestStateSerialization:

    def test_to_dict_shape(self, make_checkin):
        data = compute_adaptive_state(make_checkin(overwhelm=4)).to_dict()
        assert data["triggers"] == ["high_overwhelm"]
        assert data["simplifiedUIEnabled"] is True
        assert data["reducedTasksMode"] is True
        assert data["prioritizeShortTasks"] is False
        assert data["showPlanningMicroStep"] is False
        assert [r["id"] for r in data["recommendations"]] == ["reduce_scope", "brain_dump"]


class TestTaskFiltering:

    TASKS = [
        {"id": "a", "estimated_minutes": 45, "energy_required": "high"},
        {"id": "b", "estimated_minutes": 5, "energy_required": "low"},
        {"id": "c", "estimated_minutes": None, "energy_required": None},
        {"id": "d", "estimated_minutes": 15, "energy_required": "Medium"},
        {"id": "e", "estimated_minutes": 60},
    ]

    def test_neutral_state_keeps_order(self):
        result = filter_tasks_for_adaptive_state(self.TASKS, AdaptiveState())
        assert [t["id"] for t in result] == ["a", "b", "c", "d", "e"]

    def test_reduced_mode_caps_at_three(self):
        state = adaptive_state_from_triggers([TriggerKind.COMBINED_STRESS])
        assert len(filter_tasks_for_adaptive_state(self.TASKS, state)) == 3

    def test_low_energy_drops_high_energy_and_sorts_by_duration(self):
        state = adaptive_state_from_triggers([TriggerKind.LOW_ENERGY])
        result = filter_tasks_for_adaptive_state(self.TASKS, state)
        # missing duration sorts as 30 minutes
        assert [t["id"] for t in result] == ["b", "d", "c", "e"]

    def test_max_tasks(self):
        result = filter_tasks_for_adaptive_state(self.TASKS, AdaptiveState(), max_tasks=2)
        assert len(result) == 2


class TestCheckinStatus:

    def test_has_checked_in_today(self, make_checkin):
        assert has_checked_in_today(make_checkin(date="2024-06-15"), date(2024, 6, 15))
        assert not has_checked_in_today(make_checkin(date="2024-06-14"), date(2024, 6, 15))
        assert not has_checked_in_today(None, date(2024, 6, 15))

    def test_time_since_last_checkin(self, make_checkin):
        now = datetime(2024, 6, 15, 21, 0, tzinfo=timezone.utc)
        hours, should_prompt = time_since_last_checkin(make_checkin(date="2024-06-15"), now)
        assert hours == pytest.approx(21)
        assert should_prompt

    def test_recent_checkin_does_not_prompt(self, make_checkin):
        now = datetime(2024, 6, 15, 9, 0, tzinfo=timezone.utc)
        hours, should_prompt = time_since_last_checkin(make_checkin(date="2024-06-15"), now)
        assert hours == pytest.approx(9)
        assert not should_prompt

    def test_no_checkin_prompts(self):
        hours, should_prompt = time_since_last_checkin(None, datetime(2024, 6, 15, tzinfo=timezone.utc))
        assert math.isinf(hours)
        assert should_prompt

    def test_latest_checkin_payload(self, make_checkin):
        payload = build_latest_checkin_payload(make_checkin(energy=1), date(2024, 6, 15))
        assert payload["checkin"]["is_today"] is True
        assert payload["checkin"]["date"] == "2024-06-15"
        assert payload["needs_checkin_today"] is False
        assert payload["adaptive_state"]["triggers"] == ["low_energy"]

    def test_latest_checkin_payload_without_checkin(self):
        payload = build_latest_checkin_payload(None, date(2024, 6, 15))
        assert payload["checkin"] is None
        assert payload["needs_checkin_today"] is True
        assert payload["adaptive_state"]["triggers"] == []
