"""
Pytest configuration and fixtures

The engines are pure functions over row snapshots, so fixtures only build
rows. Every test gets the same frozen "now" to keep day arithmetic exact.
"""
import pytest
import sys
import os
from datetime import datetime, timedelta, timezone
from itertools import count

# Add the parent directory to the path so we can import from services
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from schemas import CategoryRow, DailyCheckin, PriorityRow, TaskRow


FROZEN_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

_ids = count(1)


@pytest.fixture
def now():
    """Fixed reference instant for every window calculation."""
    return FROZEN_NOW


@pytest.fixture
def make_category():
    def _make(name="Work", icon="💼", color="#1D9BF0", category_id=None):
        return CategoryRow(id=category_id or f"cat-{name.lower()}", name=name, icon=icon, color=color)
    return _make


@pytest.fixture
def make_task(make_category):
    """
    Build a TaskRow relative to FROZEN_NOW.

    ``created_days_ago`` / ``completed_days_ago`` are fractional days before
    now; ``category`` may be a name, a CategoryRow or None.
    """
    def _make(
        status="active",
        category="Work",
        created_days_ago=5.0,
        completed_days_ago=None,
        task_id=None,
    ):
        if isinstance(category, str):
            category = make_category(category)
        completed_at = None
        if completed_days_ago is not None:
            completed_at = FROZEN_NOW - timedelta(days=completed_days_ago)
        return TaskRow(
            id=task_id or f"task-{next(_ids)}",
            status=status,
            category_id=category.id if category else None,
            created_at=FROZEN_NOW - timedelta(days=created_days_ago),
            completed_at=completed_at,
            category=category,
        )
    return _make


@pytest.fixture
def make_priority():
    def _make(domain="Work", importance_score=5, rank=1):
        return PriorityRow(domain=domain, rank=rank, importance_score=importance_score)
    return _make


@pytest.fixture
def make_checkin():
    def _make(overwhelm=3, anxiety=3, energy=3, clarity=3, date="2024-06-15", note=None):
        return DailyCheckin(
            id="checkin-1",
            user_id="u1",
            date=date,
            overwhelm=overwhelm,
            anxiety=anxiety,
            energy=energy,
            clarity=clarity,
            note=note,
        )
    return _make
